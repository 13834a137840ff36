from __future__ import annotations

import pytest

from core.services.parsing import (
    dedupe_sources,
    extract_first_json_object,
    parse_json_payload,
    preview_text,
    strip_code_fences,
)
from core.services.recon import OSINT_CORRUPTED, parse_osint_reply


def test_strip_code_fences_removes_json_fence() -> None:
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'


def test_parse_json_payload_plain_and_fenced() -> None:
    assert parse_json_payload('{"files": []}') == {"files": []}
    assert parse_json_payload('```json\n[{"id": "m1"}]\n```') == [{"id": "m1"}]


def test_parse_json_payload_salvages_object_from_prose() -> None:
    text = 'Sure! Here is the data: {"status": "success", "message": "ok"} Let me know.'
    assert parse_json_payload(text) == {"status": "success", "message": "ok"}


def test_parse_json_payload_raises_without_object() -> None:
    with pytest.raises(ValueError):
        parse_json_payload("no json at all")


def test_extract_first_json_object_ignores_braces_inside_strings() -> None:
    text = 'prefix {"summary": "uses } and { inside", "n": 1} suffix {"other": 2}'
    assert extract_first_json_object(text) == '{"summary": "uses } and { inside", "n": 1}'


def test_extract_first_json_object_skips_unparseable_candidate() -> None:
    text = "{not json} then {\"ok\": true}"
    assert extract_first_json_object(text) == '{"ok": true}'


def test_parse_osint_reply_with_fences() -> None:
    text = '```json\n{"target": "example.com", "google_search": {"summary": "A site"}}\n```'
    report = parse_osint_reply(text, target="example.com")
    assert report.target == "example.com"
    assert report.google_search.summary == "A site"


def test_parse_osint_reply_embedded_in_prose_fills_target() -> None:
    text = 'Here is what I found:\n{"domain_info": {"status": "Active", "whois_data": null}}\nHope it helps.'
    report = parse_osint_reply(text, target="acme")
    assert report.target == "acme"
    assert report.domain_info.status == "Active"
    assert report.domain_info.whois_data is None


def test_parse_osint_reply_garbage_raises_corrupted() -> None:
    with pytest.raises(ValueError, match=OSINT_CORRUPTED):
        parse_osint_reply("the void stares back", target="x")


def test_dedupe_sources_keeps_first_occurrence_order() -> None:
    assert dedupe_sources(["b", "a", "b", "", "c", "a"]) == ["b", "a", "c"]


def test_preview_text_truncates_with_ellipsis() -> None:
    assert preview_text("x" * 10, limit=4) == "xxxx..."
    assert preview_text("short", limit=10) == "short"
