from __future__ import annotations

from pathlib import Path

import pytest

from core.config import AppSettings, _parse_env_lines, write_user_env_vars


def test_write_user_env_vars_merges_existing_values(tmp_path: Path) -> None:
    env_path = tmp_path / "cfg" / ".env"
    write_user_env_vars({"ABYSSAL_DECK_AI_MODEL": "m1", "ABYSSAL_DECK_AI_API_KEY": "k1"}, env_path=env_path)
    write_user_env_vars({"ABYSSAL_DECK_AI_MODEL": "m2"}, env_path=env_path)

    values = _parse_env_lines(env_path.read_text(encoding="utf-8"))
    assert values == {"ABYSSAL_DECK_AI_API_KEY": "k1", "ABYSSAL_DECK_AI_MODEL": "m2"}


def test_parse_env_lines_skips_comments_and_quotes() -> None:
    text = "# comment\nA='1'\n\nB=\"two\"\ninvalid line\n"
    assert _parse_env_lines(text) == {"A": "1", "B": "two"}


def test_settings_read_prefixed_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ABYSSAL_DECK_AI_MODEL", "env-model")
    monkeypatch.setenv("ABYSSAL_DECK_UPLINK_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("ABYSSAL_DECK_DATA_DIR", str(tmp_path))

    settings = AppSettings()

    assert settings.ai_model == "env-model"
    assert settings.uplink_timeout_seconds == 2.5
    assert settings.data_dir == tmp_path


def test_settings_defaults() -> None:
    settings = AppSettings(_env_file=None)
    assert settings.ai_image_model
    assert settings.log_level == "WARNING"
