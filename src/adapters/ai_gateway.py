"""Adaptador del proveedor IA (SDK OpenAI, cualquier base URL compatible).

Responsabilidad:
- Construir el cliente `AsyncOpenAI` a partir de `AppSettings`.
- Enviar una instrucción (texto o JSON) con directivas opcionales de búsqueda
  web / salida JSON, y devolver el texto + las fuentes citadas.
- Generar imágenes y devolverlas como data URI.

No reintenta: cada acción del usuario es exactamente una llamada remota
(`max_retries=0`). Los errores se propagan; el dispatcher los traduce.
"""

from __future__ import annotations

import logging
from typing import Any

from openai import AsyncOpenAI

from core.config import AppSettings
from core.domain.errors import GatewayError
from core.interfaces.gateway import Completion, ImageReply, ModelGateway

logger = logging.getLogger(__name__)


def _is_local_base_url(url: str) -> bool:
    url_l = (url or "").strip().lower()
    return url_l.startswith("http://localhost") or url_l.startswith("http://127.0.0.1") or url_l.startswith(
        "http://0.0.0.0"
    )


def build_openai_client(settings: AppSettings) -> AsyncOpenAI:
    api_key = (settings.ai_api_key or "").strip()
    if not api_key:
        # Providers locales (Ollama, LM Studio...) aceptan una key dummy.
        if not _is_local_base_url(settings.ai_base_url):
            raise GatewayError("missing_ai_api_key")
        api_key = "local"
    return AsyncOpenAI(
        api_key=api_key,
        base_url=settings.ai_base_url,
        timeout=settings.ai_timeout_seconds,
        max_retries=0,
    )


def _extract_sources(message: Any) -> list[str]:
    """URLs citadas (`url_citation`) en orden de aparición, con duplicados."""

    out: list[str] = []
    for ann in getattr(message, "annotations", None) or []:
        if getattr(ann, "type", None) != "url_citation":
            continue
        citation = getattr(ann, "url_citation", None)
        url = getattr(citation, "url", None)
        if isinstance(url, str) and url:
            out.append(url)
    return out


class OpenAIGateway(ModelGateway):
    """Implementación de `ModelGateway` sobre el SDK OpenAI."""

    def __init__(self, settings: AppSettings | None = None, *, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings or AppSettings()
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        # Perezoso: sin API key la CLI sigue funcionando (historial, reglas...).
        if self._client is None:
            self._client = build_openai_client(self._settings)
        return self._client

    async def complete(
        self,
        prompt: str,
        *,
        system: str | None = None,
        search: bool = False,
        json_mode: bool = False,
    ) -> Completion:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs: dict[str, Any] = {}
        if search:
            # Los modelos *-search-preview no aceptan temperature ni response_format json_object.
            model = self._settings.ai_search_model
            kwargs["web_search_options"] = {}
        else:
            model = self._settings.ai_model
            kwargs["temperature"] = 0.7
            if json_mode:
                kwargs["response_format"] = {"type": "json_object"}

        logger.debug("complete model=%s search=%s json=%s", model, search, json_mode)
        response = await self.client.chat.completions.create(
            model=model,
            messages=messages,  # type: ignore[arg-type]
            **kwargs,
        )
        if not response.choices:
            raise GatewayError("empty_choices")
        message = response.choices[0].message
        return Completion(
            text=(message.content or "").strip(),
            sources=_extract_sources(message),
        )

    async def generate_image(self, prompt: str) -> ImageReply:
        model = self._settings.ai_image_model
        kwargs: dict[str, Any] = {}
        if model.lower().startswith("dall-e"):
            kwargs["response_format"] = "b64_json"

        response = await self.client.images.generate(model=model, prompt=prompt, n=1, **kwargs)
        items = list(response.data or [])
        text_parts: list[str] = []
        for item in items:
            b64 = getattr(item, "b64_json", None)
            if b64:
                fmt = getattr(response, "output_format", None) or "png"
                return ImageReply(data_uri=f"data:image/{fmt};base64,{b64}")
            revised = getattr(item, "revised_prompt", None)
            if isinstance(revised, str) and revised:
                text_parts.append(revised)
        return ImageReply(data_uri=None, text="".join(text_parts))
