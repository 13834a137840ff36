"""Exportación de resultados a ficheros.

Por qué aquí:
- Escribir a disco es infraestructura; el Core solo conoce los modelos.
- Tres artefactos: un fichero de texto por fichero de código seleccionado, la
  imagen decodificada de un data URI y un JSON agregado con los reportes OSINT
  exitosos.
"""

from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime, timezone
from pathlib import Path, PurePath
from typing import Sequence

from core.domain.models import CodeFile, ScanResult


def export_code_file(*, file: CodeFile, output_dir: Path) -> Path:
    """Escribe `file.content` como texto plano bajo `output_dir`."""

    # Solo el nombre base: el modelo puede devolver rutas como 'src/app.js'.
    safe_name = PurePath(file.name).name or "untitled.txt"
    output_path = output_dir / safe_name
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(file.content, encoding="utf-8")
    return output_path


def export_osint_reports(
    *,
    results: Sequence[ScanResult],
    output_dir: Path,
    now: datetime | None = None,
) -> Path | None:
    """Exporta los reportes exitosos a `osint_harbinger_report_<epoch_ms>.json`.

    Devuelve None (sin escribir nada) si no hay ningún reporte exitoso.
    """

    reports = [r.report.model_dump(mode="json") for r in results if r.report is not None]
    if not reports:
        return None

    now = now or datetime.now(timezone.utc)
    payload = {
        "export_timestamp": now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "reports": reports,
    }
    output_path = output_dir / f"osint_harbinger_report_{int(now.timestamp() * 1000)}.json"
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2) + "\n",
        encoding="utf-8",
    )
    return output_path


def export_image(*, data_uri: str, output_path: Path) -> Path:
    """Decodifica un `data:image/...;base64,` y lo escribe en binario."""

    header, _, encoded = data_uri.partition(",")
    if not header.startswith("data:image/") or ";base64" not in header:
        raise ValueError("Not a base64 image data URI.")
    try:
        raw = base64.b64decode(encoded, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Corrupted image payload: {exc}") from exc
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(raw)
    return output_path
