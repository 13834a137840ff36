"""Contrato de almacenamiento clave-valor.

Equivale al `localStorage` del navegador: cada slot guarda un string JSON.
La ausencia de un slot equivale a "vacío".
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStorage(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...
