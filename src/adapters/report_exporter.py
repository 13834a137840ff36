"""Exportación de reportes OSINT a HTML/PDF.

Por qué está en adapters:
- PDF/HTML son detalles de infraestructura (WeasyPrint/Jinja2).
- El Core solo conoce los modelos `ScanResult` / `OsintReport`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.domain.models import ScanResult

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def _get_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
    )


def render_osint_html(*, results: Sequence[ScanResult]) -> str:
    """Renderiza un HTML autocontenido con un bloque por objetivo."""

    generated_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
    succeeded = [r for r in results if r.report is not None]
    failed = [r for r in results if r.report is None]

    template = _get_env().get_template("osint_report.html")
    return template.render(
        results=list(results),
        generated_at=generated_at,
        succeeded_count=len(succeeded),
        failed_count=len(failed),
    )


def export_osint_html(*, results: Sequence[ScanResult], output_path: Path) -> Path:
    """Exporta como HTML.

    Sirve como fallback cuando el render PDF no está soportado por el entorno.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_osint_html(results=results), encoding="utf-8")
    return output_path


def export_osint_pdf(*, results: Sequence[ScanResult], output_path: Path) -> Path:
    """Exporta como PDF (sincrónico: WeasyPrint es CPU/IO local)."""

    # Import diferido: WeasyPrint necesita Pango en el sistema y su ausencia no
    # debe romper el resto de la CLI (el llamador cae a HTML).
    from weasyprint import HTML  # noqa: PLC0415

    output_path.parent.mkdir(parents=True, exist_ok=True)
    html = render_osint_html(results=results)
    HTML(string=html, base_url=str(_TEMPLATES_DIR)).write_pdf(str(output_path))
    return output_path
