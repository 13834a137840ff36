"""Resultado discriminado de una llamada remota.

Por qué existe:
- El dispatcher es el único borde que puede fallar; los llamadores solo
  ramifican entre éxito y fallo, nunca inspeccionan excepciones crudas.
- Nunca parcialmente válido: o hay `value` completamente parseado o hay `error`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RemoteResult(Generic[T]):
    value: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: T) -> "RemoteResult[T]":
        return cls(value=value, error=None)

    @classmethod
    def failure(cls, message: str) -> "RemoteResult[T]":
        return cls(value=None, error=message)

    @property
    def ok(self) -> bool:
        return self.error is None
