"""Normalización de respuestas del modelo.

El backend es un productor de JSON poco fiable: a veces envuelve la respuesta
en fences Markdown, a veces la mezcla con prosa. Estas utilidades recuperan el
payload o fallan con `ValueError`; nunca devuelven algo parcialmente válido.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterable

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?|\n?```", re.IGNORECASE)

PREVIEW_LIMIT = 500


def strip_code_fences(text: str) -> str:
    """Elimina fences ```json / ``` en cualquier posición."""

    return _FENCE_RE.sub("", text or "").strip()


def extract_first_json_object(text: str) -> str | None:
    """Devuelve el primer objeto JSON balanceado y parseable dentro de `text`.

    Recorre el texto contando llaves y respetando strings (con escapes), de modo
    que una `}` dentro de un valor no corta el objeto antes de tiempo.
    """

    if not text:
        return None

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for idx in range(start, len(text)):
            ch = text[idx]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    candidate = text[start : idx + 1]
                    try:
                        json.loads(candidate)
                        return candidate
                    except json.JSONDecodeError:
                        break
        start = text.find("{", start + 1)
    return None


def parse_json_payload(text: str) -> Any:
    """Parseo estricto tras quitar fences; si falla, rescate por llaves."""

    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    candidate = extract_first_json_object(text)
    if candidate is None:
        raise ValueError("Could not locate a valid JSON object in the model response.")
    return json.loads(candidate)


def dedupe_sources(urls: Iterable[str]) -> list[str]:
    """Deduplica manteniendo el orden de primera aparición."""

    seen: set[str] = set()
    out: list[str] = []
    for url in urls:
        if not url or url in seen:
            continue
        seen.add(url)
        out.append(url)
    return out


def preview_text(text: str, limit: int = PREVIEW_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
