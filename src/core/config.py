"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/IA/almacenamiento) lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "abyssal-deck"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "abyssal-deck"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "abyssal-deck"
    return Path.home() / ".config" / "abyssal-deck"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        try:
            existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))
        except OSError:
            existing = {}

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# abyssal-deck user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="ABYSSAL_DECK_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    ai_api_key: str | None = Field(
        default=None,
        description="API key del proveedor IA (compatible OpenAI).",
    )
    ai_base_url: str = Field(
        default="https://api.openai.com/v1",
        min_length=8,
        description="Base URL compatible OpenAI.",
    )
    ai_model: str = Field(
        default="gpt-4o-mini",
        min_length=1,
        description="Modelo para texto, código, riesgo y ledger.",
    )
    ai_search_model: str = Field(
        default="gpt-4o-mini-search-preview",
        min_length=1,
        description="Modelo con búsqueda web (Scribe, fallback del crawler, OSINT).",
    )
    ai_image_model: str = Field(
        default="dall-e-3",
        min_length=1,
        description="Modelo de generación de imágenes.",
    )
    ai_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout para llamadas al proveedor IA (segundos).",
    )

    uplink_timeout_seconds: float = Field(
        default=4.0,
        gt=0,
        description="Timeout de la conexión directa del crawler (segundos).",
    )
    user_agent: str = Field(
        default="abyssal-deck/0.1 (+https://local)",
        min_length=1,
        description="User-Agent para la conexión directa.",
    )

    data_dir: Path = Field(
        default_factory=lambda: get_user_config_dir() / "data",
        description="Directorio donde se persisten historiales, borradores y reglas.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging de la CLI.",
    )
