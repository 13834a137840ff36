"""Persistencia local clave-valor.

Por qué dos implementaciones:
- `JsonFileStorage`: un fichero `<slot>.json` por slot bajo `data_dir`
  (el equivalente en disco del localStorage del navegador).
- `MemoryStorage`: para tests y ejecuciones efímeras.

Ambas implementan `core.interfaces.storage.KeyValueStorage`.
"""

from __future__ import annotations

import re
from pathlib import Path

from core.config import AppSettings
from core.interfaces.storage import KeyValueStorage

_SAFE_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileStorage(KeyValueStorage):
    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._root / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Escritura atómica (tmp + replace).
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class MemoryStorage(KeyValueStorage):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


def build_storage(settings: AppSettings | None = None) -> JsonFileStorage:
    settings = settings or AppSettings()
    return JsonFileStorage(settings.data_dir)
