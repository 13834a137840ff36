"""Excepciones del dominio.

Solo dos capas pueden lanzar:
- `GatewayError`: dentro del adaptador IA (config ausente, respuesta vacía).
  El dispatcher la captura y la traduce a un mensaje de fallo.
- `ValidationFailed`: formulario con errores; se detecta antes de cualquier
  llamada remota.
"""

from __future__ import annotations


class DeckError(Exception):
    """Base de errores de abyssal-deck."""


class GatewayError(DeckError):
    """Fallo en la frontera con el proveedor IA."""


class ValidationFailed(DeckError):
    """Un formulario tiene errores de validación."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))
