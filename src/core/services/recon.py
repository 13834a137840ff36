"""URL reconnaissance (Shadow Crawler) and OSINT lookup (OSINT Harbinger).

Both tools accept several targets at once. Each target is dispatched
independently and concurrently; per-item wrappers turn any exception into an
in-band error record, so one bad target cannot fail or reorder the batch.
Results are recombined positionally: result *i* belongs to input *i*.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Sequence

import httpx

from adapters.http_client import build_async_client, extract_page_title
from core.config import AppSettings
from core.domain.errors import GatewayError
from core.domain.models import CrawlResult, OsintReport, ScanResult
from core.domain.results import RemoteResult
from core.interfaces.gateway import ModelGateway
from core.services.parsing import (
    extract_first_json_object,
    parse_json_payload,
    preview_text,
    strip_code_fences,
)

logger = logging.getLogger(__name__)

DIRECT_UPLINK = "Direct Uplink (Client-Side)"
NEURAL_LINK = "Neural Search Link (Grounding)"

OSINT_EMPTY_REPLY = "Scan failed: No intelligence retrieved."
OSINT_CORRUPTED = "Scan failed: Intelligence data stream corrupted."
OSINT_FAILURE = "OSINT scan failed: Network uplink severed."


# ---------------------------------------------------------------------------
# Shadow Crawler
# ---------------------------------------------------------------------------


async def direct_uplink(*, client: httpx.AsyncClient, url: str) -> CrawlResult:
    """Plain GET. Any HTTP status counts as a successful fetch."""

    response = await client.get(url)
    text = response.text
    title = None
    if "html" in response.headers.get("content-type", "").lower():
        title = extract_page_title(text)
    return CrawlResult(
        original_url=url,
        final_url=str(response.url),
        status_code=response.status_code,
        content_length=len(text),
        content_preview=preview_text(text),
        error_message=None,
        proxy_location=DIRECT_UPLINK,
        page_title=title,
    )


def _neural_prompt(url: str, country: str, city: str) -> str:
    location_context = ""
    if country or city:
        location_context = f"Context: The user is interested in this target relevant to {city}, {country}.\n"
    return (
        f"TARGET_URL: {url}\n"
        f"{location_context}"
        "TASK: Perform a real-time reconnaissance of this URL using web search.\n"
        "REQUIREMENTS:\n"
        "1. Retrieve the ACTUAL content summary, latest news, or main page text of the target URL.\n"
        "2. Do NOT simulate or hallucinate data. Use only real information found via the search tool.\n"
        "3. If the site is down or not found, report status_code 404.\n"
        "4. If found, report status_code 200.\n"
        "5. In 'content_preview', provide a detailed summary of what is currently on the site.\n\n"
        "Return ONLY a JSON object with keys: original_url, final_url, status_code (integer), "
        "content_length (integer), content_preview, error_message (null)."
    )


async def neural_search(*, gateway: ModelGateway, url: str, country: str = "", city: str = "") -> CrawlResult:
    completion = await gateway.complete(_neural_prompt(url, country, city), search=True, json_mode=True)
    if not completion.text:
        raise GatewayError("Neural link returned void.")
    data = parse_json_payload(completion.text)
    if not isinstance(data, dict):
        raise ValueError("Neural link returned a non-object payload.")
    return CrawlResult.model_validate(
        {
            **data,
            "original_url": url,
            "proxy_location": NEURAL_LINK,
            "error_message": None,
        }
    )


def unreachable_result(url: str, reason: str) -> CrawlResult:
    return CrawlResult(
        original_url=url,
        final_url=url,
        status_code=0,
        content_length=0,
        content_preview="",
        error_message=(
            "Target unreachable. Direct Uplink failed (CORS/Network). "
            f"Neural Link failed: {reason or 'Unknown'}"
        ),
        proxy_location="N/A",
    )


async def crawl_url(
    *,
    gateway: ModelGateway,
    url: str,
    country: str = "",
    city: str = "",
    settings: AppSettings | None = None,
    client: httpx.AsyncClient | None = None,
) -> CrawlResult:
    """Direct uplink with a fixed timeout, then neural search, then a failure record."""

    settings = settings or AppSettings()
    try:
        if client is None:
            async with build_async_client(settings) as own_client:
                return await asyncio.wait_for(
                    direct_uplink(client=own_client, url=url),
                    timeout=settings.uplink_timeout_seconds,
                )
        return await asyncio.wait_for(
            direct_uplink(client=client, url=url),
            timeout=settings.uplink_timeout_seconds,
        )
    except Exception as direct_exc:
        logger.info("Direct uplink to %s failed (%s); falling back to neural search", url, direct_exc)

    try:
        return await neural_search(gateway=gateway, url=url, country=country, city=city)
    except Exception as ai_exc:
        logger.warning("Neural search for %s failed: %s", url, ai_exc)
        return unreachable_result(url, str(ai_exc))


def crawler_crash_result(url: str, exc: BaseException) -> CrawlResult:
    return CrawlResult(
        original_url=url,
        final_url=url,
        status_code=-1,
        content_length=0,
        content_preview=f"Critical failure during crawl operation: {exc}",
        error_message="The crawler failed to execute the request.",
        proxy_location="Unknown",
    )


async def crawl_urls(
    *,
    gateway: ModelGateway,
    urls: Sequence[str],
    country: str = "",
    city: str = "",
    settings: AppSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[CrawlResult]:
    settings = settings or AppSettings()

    async with build_async_client(settings, transport=transport) as client:

        async def safe_crawl(url: str) -> CrawlResult:
            try:
                return await crawl_url(
                    gateway=gateway,
                    url=url,
                    country=country,
                    city=city,
                    settings=settings,
                    client=client,
                )
            except Exception as exc:
                logger.error("Crawler crashed on %s: %s", url, exc)
                return crawler_crash_result(url, exc)

        return list(await asyncio.gather(*(safe_crawl(url) for url in urls)))


# ---------------------------------------------------------------------------
# OSINT Harbinger
# ---------------------------------------------------------------------------


def _osint_prompt(target: str) -> str:
    schema = {
        "target": target,
        "google_search": {
            "search_url": "Primary URL found (e.g. official site)",
            "summary": "Comprehensive summary of findings...",
            "error": None,
        },
        "domain_info": {
            "status": "Active, Inactive, or Unknown",
            "whois_data": {
                "organization": "string or null",
                "creation_date": "string or null",
                "expiration_date": "string or null",
                "name_servers": ["ns1", "ns2"],
            },
            "error": None,
        },
        "social_media_presence": {
            "profiles": {
                "twitter": {"url": "string", "found": False},
                "linkedin": {"url": "string", "found": False},
                "github": {"url": "string", "found": False},
            }
        },
    }
    return (
        f'TARGET: "{target}"\n\n'
        "MISSION: Perform a real-time open-source intelligence (OSINT) investigation using web search.\n\n"
        "DIRECTIVES:\n"
        "1. Identity Verification: Determine if the target is a person, organization, or domain.\n"
        "2. Web Presence: Find the primary website and provide a detailed summary of the entity.\n"
        "3. Domain Reconnaissance: If the target is a domain (e.g., 'example.com'), use search results to find "
        "public registration details (Organization, Creation Date, etc.). If it's a person, 'whois_data' can be null.\n"
        "4. Social footprint: Locate official profiles on Twitter (X), LinkedIn, and GitHub.\n\n"
        "OUTPUT REQUIREMENT:\n"
        "Return ONLY a raw JSON object. Do not include Markdown formatting (no ```json fences).\n"
        "The JSON must strictly match this schema (name_servers may be null):\n"
        f"{json.dumps(schema, indent=2)}"
    )


def parse_osint_reply(text: str, *, target: str) -> OsintReport:
    """Strip fences and parse; failing that, salvage the first brace-matched object.

    Raises `ValueError` when neither yields a valid report.
    """

    try:
        report = OsintReport.model_validate_json(strip_code_fences(text))
    except ValueError:
        candidate = extract_first_json_object(text)
        if candidate is None:
            raise ValueError(OSINT_CORRUPTED) from None
        report = OsintReport.model_validate_json(candidate)
    if not report.target:
        report.target = target
    return report


async def run_osint_scan(*, gateway: ModelGateway, target: str) -> RemoteResult[OsintReport]:
    try:
        completion = await gateway.complete(_osint_prompt(target), search=True)
    except Exception as exc:
        logger.warning("OSINT scan of %s failed: %s", target, exc)
        return RemoteResult.failure(OSINT_FAILURE)

    if not completion.text:
        return RemoteResult.failure(OSINT_EMPTY_REPLY)

    try:
        return RemoteResult.success(parse_osint_reply(completion.text, target=target))
    except ValueError as exc:
        logger.warning("OSINT reply for %s could not be parsed: %s", target, exc)
        return RemoteResult.failure(OSINT_CORRUPTED)


async def run_osint_scans(*, gateway: ModelGateway, targets: Sequence[str]) -> list[ScanResult]:
    async def safe_scan(target: str) -> ScanResult:
        try:
            result = await run_osint_scan(gateway=gateway, target=target)
        except Exception as exc:
            logger.error("OSINT scan crashed on %s: %s", target, exc)
            return ScanResult(target=target, error=OSINT_FAILURE)
        if result.ok:
            return ScanResult(target=target, report=result.value)
        return ScanResult(target=target, error=result.error)

    return list(await asyncio.gather(*(safe_scan(t) for t in targets)))
