"""Entry point de desarrollo (sin pip install).

Permite ejecutar la CLI con:
- `python -m main scribe "..."` desde la raíz del repo.

Motivo:
- El código vive en `src/` (layout tipo "src"), así que sin instalación
  editable Python no encuentra `cli`, `core`, etc.
"""

from __future__ import annotations

import sys
from pathlib import Path


def main() -> None:
    src = Path(__file__).resolve().parent / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
