"""Shared test helpers and stub classes.

Import from here instead of duplicating these stubs in individual test files:

    from tests.helpers import FakeGateway
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Callable, Union

from core.interfaces.gateway import Completion, ImageReply

Reply = Union[str, Completion, BaseException, Callable[[str], Any]]


@dataclass
class GatewayCall:
    prompt: str
    system: str | None
    search: bool
    json_mode: bool


def _resolve(reply: Any, prompt: str) -> Completion:
    if isinstance(reply, BaseException):
        raise reply
    if callable(reply):
        return _resolve(reply(prompt), prompt)
    if isinstance(reply, Completion):
        return reply
    if isinstance(reply, (dict, list)):
        return Completion(text=json.dumps(reply))
    return Completion(text=str(reply))


class FakeGateway:
    """`ModelGateway` stub.

    Replies are consumed in order; the last one repeats once the queue is
    down to a single item. A reply may be a string, a dict/list (serialized as
    JSON), a `Completion`, an exception instance (raised) or a callable taking
    the prompt and returning any of those.
    """

    def __init__(self, *replies: Any, image: ImageReply | BaseException | None = None) -> None:
        self._replies = list(replies)
        self._image = image
        self.calls: list[GatewayCall] = []
        self.image_prompts: list[str] = []

    async def complete(
        self,
        prompt: str,
        *,
        system: str | None = None,
        search: bool = False,
        json_mode: bool = False,
    ) -> Completion:
        self.calls.append(GatewayCall(prompt=prompt, system=system, search=search, json_mode=json_mode))
        await asyncio.sleep(0)
        if not self._replies:
            return Completion(text="")
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        return _resolve(reply, prompt)

    async def generate_image(self, prompt: str) -> ImageReply:
        self.image_prompts.append(prompt)
        await asyncio.sleep(0)
        if isinstance(self._image, BaseException):
            raise self._image
        return self._image or ImageReply()


def osint_payload(target: str, *, summary: str = "Found it.") -> dict[str, Any]:
    return {
        "target": target,
        "google_search": {"search_url": f"https://{target}", "summary": summary, "error": None},
        "domain_info": {
            "status": "Active",
            "whois_data": {
                "organization": "Example Org",
                "creation_date": "1995-08-14",
                "expiration_date": None,
                "name_servers": ["ns1.example.com"],
            },
            "error": None,
        },
        "social_media_presence": {
            "profiles": {
                "twitter": {"url": None, "found": False},
                "github": {"url": f"https://github.com/{target}", "found": True},
            }
        },
    }


def ledger_backend(prompt: str) -> dict[str, Any]:
    """Backend double that applies the two approval rules stated in the prompt."""

    details = json.loads(prompt.split("Transaction Details: ", 1)[1].split(".\n", 1)[0])
    note = (details.get("privateNote") or "").lower()
    if details["amount"] > 50000:
        return {"status": "error", "message": "Transaction limit exceeded for this tier"}
    if any(k in note for k in ("hack", "exploit", "stealth", "bypass")):
        return {"status": "error", "message": "Security policy violation detected"}
    return {
        "status": "success",
        "message": "Authorized",
        "details": "CONF-001",
        "payment": {
            "id": "0xabc123",
            "amount": details["amount"],
            "customerId": details["customerId"],
            "created_at": "2026-01-01T00:00:00Z",
        },
    }
