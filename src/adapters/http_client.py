"""Wrapper de httpx para la conexión directa ("direct uplink").

Por qué un wrapper:
- Estandariza timeout, headers y redirecciones del crawler.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

import httpx
from bs4 import BeautifulSoup

from core.config import AppSettings

DIRECT_ACCEPT = "text/html,application/json,text/plain"


def build_async_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    El timeout es el de la conexión directa (4 s): es el único timeout fijo
    de todo el sistema.
    """

    settings = settings or AppSettings()
    headers = {
        "User-Agent": settings.user_agent,
        "Accept": DIRECT_ACCEPT,
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.uplink_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def extract_page_title(html: str) -> str | None:
    """<title> del documento, o `<meta property="og:title">` si no hay título."""

    if not html:
        return None

    soup = BeautifulSoup(html, "html.parser")
    if soup.title and soup.title.string and soup.title.string.strip():
        return soup.title.string.strip()

    og = soup.find("meta", attrs={"property": "og:title"})
    if og and og.get("content"):
        return str(og.get("content")).strip() or None
    return None
