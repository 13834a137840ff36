"""Contrato con el proveedor IA.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- El dispatcher depende de esta abstracción; los tests inyectan un fake en vez
  del SDK real.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass
class Completion:
    """Respuesta de texto del modelo, con fuentes web si hubo búsqueda."""

    text: str
    sources: list[str] = field(default_factory=list)


@dataclass
class ImageReply:
    """Respuesta de generación de imagen: data URI o texto (rechazo)."""

    data_uri: str | None = None
    text: str = ""


@runtime_checkable
class ModelGateway(Protocol):
    """Contrato mínimo para el backend generativo.

    Reglas de diseño:
    - Asíncrono: cada llamada es I/O de red.
    - Puede lanzar cualquier excepción; el dispatcher es quien la absorbe.
    """

    async def complete(
        self,
        prompt: str,
        *,
        system: str | None = None,
        search: bool = False,
        json_mode: bool = False,
    ) -> Completion:
        ...

    async def generate_image(self, prompt: str) -> ImageReply:
        ...
