from __future__ import annotations

import base64
import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from adapters.json_exporter import export_code_file, export_image, export_osint_reports
from adapters.report_exporter import export_osint_html, render_osint_html
from core.domain.models import CodeFile, OsintReport, ScanResult
from tests.helpers import osint_payload


def _results() -> list[ScanResult]:
    return [
        ScanResult(target="example.com", report=OsintReport.model_validate(osint_payload("example.com"))),
        ScanResult(target="ghost", error="Scan failed: No intelligence retrieved."),
    ]


def test_export_code_file_writes_base_name_only(tmp_path: Path) -> None:
    path = export_code_file(file=CodeFile(name="src/app.js", content="run();"), output_dir=tmp_path)
    assert path == tmp_path / "app.js"
    assert path.read_text(encoding="utf-8") == "run();"


def test_export_osint_reports_only_successes(tmp_path: Path) -> None:
    now = datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
    path = export_osint_reports(results=_results(), output_dir=tmp_path, now=now)

    assert path is not None
    assert path.name == f"osint_harbinger_report_{int(now.timestamp() * 1000)}.json"
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["export_timestamp"] == "2026-01-02T03:04:05.678Z"
    assert [r["target"] for r in payload["reports"]] == ["example.com"]


def test_export_osint_reports_writes_nothing_without_successes(tmp_path: Path) -> None:
    only_failures = [ScanResult(target="ghost", error="x")]
    assert export_osint_reports(results=only_failures, output_dir=tmp_path) is None
    assert list(tmp_path.iterdir()) == []


def test_export_image_decodes_data_uri(tmp_path: Path) -> None:
    raw = b"\x89PNG\r\n\x1a\nfake"
    uri = "data:image/png;base64," + base64.b64encode(raw).decode("ascii")
    path = export_image(data_uri=uri, output_path=tmp_path / "out" / "vision.png")
    assert path.read_bytes() == raw


def test_export_image_rejects_non_image_uri(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        export_image(data_uri="data:text/plain;base64,aGk=", output_path=tmp_path / "x.png")


def test_render_osint_html_contains_every_target(tmp_path: Path) -> None:
    html = render_osint_html(results=_results())
    assert "Report for: example.com" in html
    assert "Example Org" in html
    assert "Scan Anomaly Detected:" in html
    assert "1 report(s)" in html

    path = export_osint_html(results=_results(), output_path=tmp_path / "report.html")
    assert "OSINT HARBINGER" in path.read_text(encoding="utf-8")
