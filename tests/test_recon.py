from __future__ import annotations

import json

import httpx
import pytest

from core.config import AppSettings
from core.services import recon
from core.services.recon import (
    DIRECT_UPLINK,
    NEURAL_LINK,
    OSINT_CORRUPTED,
    OSINT_EMPTY_REPLY,
    OSINT_FAILURE,
    crawl_urls,
    run_osint_scans,
)
from tests.helpers import FakeGateway, osint_payload

_PAGE = "<html><head><title>B Site</title></head><body>" + "b" * 600 + "</body></html>"


def _transport(handler) -> httpx.MockTransport:
    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_crawl_urls_isolates_failures_and_keeps_order() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "a.test":
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, text=_PAGE, headers={"content-type": "text/html"})

    gateway = FakeGateway(RuntimeError("search offline"))
    results = await crawl_urls(
        gateway=gateway,
        urls=["https://a.test", "https://b.test"],
        settings=AppSettings(),
        transport=_transport(handler),
    )

    assert len(results) == 2
    assert [r.original_url for r in results] == ["https://a.test", "https://b.test"]

    failed, ok = results
    assert failed.status_code == 0
    assert failed.proxy_location == "N/A"
    assert failed.error_message.endswith("Neural Link failed: search offline")

    assert ok.status_code == 200
    assert ok.proxy_location == DIRECT_UPLINK
    assert ok.page_title == "B Site"
    assert ok.content_length == len(_PAGE)
    assert ok.content_preview.endswith("...")
    assert len(ok.content_preview) == 503


@pytest.mark.asyncio
async def test_crawl_falls_back_to_neural_search() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("cors", request=request)

    reply = {
        "original_url": "ignored",
        "final_url": "https://c.test/",
        "status_code": 200,
        "content_length": 42,
        "content_preview": "Latest news",
        "error_message": "should be cleared",
    }
    gateway = FakeGateway(reply)
    results = await crawl_urls(
        gateway=gateway,
        urls=["https://c.test"],
        country="DE",
        city="Berlin",
        settings=AppSettings(),
        transport=_transport(handler),
    )

    (result,) = results
    assert result.original_url == "https://c.test"
    assert result.proxy_location == NEURAL_LINK
    assert result.error_message is None
    assert result.content_preview == "Latest news"
    assert gateway.calls[0].search is True
    assert "Berlin, DE" in gateway.calls[0].prompt


@pytest.mark.asyncio
async def test_crawl_non_2xx_status_is_still_a_direct_result() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="missing", headers={"content-type": "text/plain"})

    (result,) = await crawl_urls(
        gateway=FakeGateway(),
        urls=["https://d.test/x"],
        settings=AppSettings(),
        transport=_transport(handler),
    )
    assert result.status_code == 404
    assert result.proxy_location == DIRECT_UPLINK
    assert result.page_title is None


@pytest.mark.asyncio
async def test_osint_batch_keeps_per_target_outcomes() -> None:
    def reply(prompt: str):
        if '"broken.test"' in prompt:
            return "nothing useful here"
        if '"empty.test"' in prompt:
            return ""
        if '"down.test"' in prompt:
            return RuntimeError("uplink")
        return "```json\n" + json.dumps(osint_payload("example.com")) + "\n```"

    gateway = FakeGateway(reply)
    targets = ["example.com", "broken.test", "empty.test", "down.test"]
    results = await run_osint_scans(gateway=gateway, targets=targets)

    assert [r.target for r in results] == targets
    assert results[0].report is not None
    assert results[0].report.domain_info.whois_data.organization == "Example Org"
    assert results[1].error == OSINT_CORRUPTED
    assert results[2].error == OSINT_EMPTY_REPLY
    assert results[3].error == OSINT_FAILURE
    assert all(call.search for call in gateway.calls)


@pytest.mark.asyncio
async def test_crawl_batch_survives_a_crashing_target(monkeypatch) -> None:
    original = recon.crawl_url

    async def flaky_crawl(**kwargs):
        if kwargs["url"] == "https://boom.test":
            raise RuntimeError("kaboom")
        return await original(**kwargs)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=_PAGE, headers={"content-type": "text/html"})

    monkeypatch.setattr(recon, "crawl_url", flaky_crawl)
    urls = ["https://a.test", "https://boom.test", "https://c.test"]
    results = await crawl_urls(gateway=FakeGateway(), urls=urls, settings=AppSettings(), transport=_transport(handler))

    assert [r.original_url for r in results] == urls
    crashed = results[1]
    assert crashed.status_code == -1
    assert crashed.proxy_location == "Unknown"
    assert crashed.content_preview.endswith("kaboom")
    assert crashed.error_message == "The crawler failed to execute the request."
    assert [results[0].status_code, results[2].status_code] == [200, 200]
    assert results[2].proxy_location == DIRECT_UPLINK


@pytest.mark.asyncio
async def test_osint_batch_survives_a_crashing_target(monkeypatch) -> None:
    original = recon.run_osint_scan

    async def flaky_scan(*, gateway, target):
        if target == "boom.test":
            raise RuntimeError("kaboom")
        return await original(gateway=gateway, target=target)

    monkeypatch.setattr(recon, "run_osint_scan", flaky_scan)
    gateway = FakeGateway(lambda prompt: json.dumps(osint_payload("example.com")))
    targets = ["a.test", "boom.test", "c.test"]
    results = await run_osint_scans(gateway=gateway, targets=targets)

    assert [r.target for r in results] == targets
    assert results[1].error == OSINT_FAILURE
    assert results[1].report is None
    assert results[0].report is not None and results[2].report is not None
    assert len(gateway.calls) == 2
