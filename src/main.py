"""Script de ejecución desde `src/`.

Por qué existe:
- `python -m main shell` con `src/` como directorio de trabajo.
- Mantiene un entrypoint simple además del script `abyssal-deck`.
"""

from __future__ import annotations

import sys

# Rich imprime glifos (▶, ●, ·) que cp1252 no soporta en consolas Windows.
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")

from cli.main import run


def main() -> None:
    run()


if __name__ == "__main__":
    main()
