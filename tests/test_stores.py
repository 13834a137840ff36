from __future__ import annotations

import json
from pathlib import Path

import pytest

from adapters.storage import JsonFileStorage, MemoryStorage
from core.domain.models import (
    CodeFile,
    LedgerEntry,
    ScribeEntry,
    WeaveEntry,
)
from core.domain.tools import SCRIBE_DRAFT_KEY, SENTINEL_RULES_KEY, Tool
from core.services.drafts import DraftStore
from core.services.history import HistoryStore
from core.services.rules import DynamicRuleStore


# --- storage ---------------------------------------------------------------


def test_json_file_storage_round_trip(tmp_path: Path) -> None:
    storage = JsonFileStorage(tmp_path / "data")
    assert storage.get("slot") is None

    storage.set("slot", '{"a": 1}')
    assert storage.get("slot") == '{"a": 1}'
    assert (tmp_path / "data" / "slot.json").is_file()

    storage.delete("slot")
    assert storage.get("slot") is None
    storage.delete("slot")


def test_json_file_storage_rejects_path_like_keys(tmp_path: Path) -> None:
    storage = JsonFileStorage(tmp_path)
    with pytest.raises(ValueError):
        storage.set("../escape", "{}")


# --- history ---------------------------------------------------------------


def test_history_round_trips_through_storage(tmp_path: Path) -> None:
    storage = JsonFileStorage(tmp_path)
    store = HistoryStore.for_tool(Tool.CODE_WEAVER, storage)
    entry = WeaveEntry(prompt="todo app", files=[CodeFile(name="index.html", content="<html></html>", language="html")])
    store.append(entry)

    reloaded = HistoryStore.for_tool(Tool.CODE_WEAVER, JsonFileStorage(tmp_path))
    assert len(reloaded) == 1
    restored = reloaded.entries[0]
    assert restored.id == entry.id
    assert restored.timestamp == entry.timestamp
    assert restored.files[0].name == "index.html"


def test_history_is_most_recent_first() -> None:
    store = HistoryStore.for_tool(Tool.SHADOW_SCRIBE, MemoryStorage())
    first = store.append(ScribeEntry(prompt="one", response="1"))
    second = store.append(ScribeEntry(prompt="two", response="2"))
    assert [e.id for e in store.entries] == [second.id, first.id]


def test_history_uses_tool_slot_key() -> None:
    storage = MemoryStorage()
    store = HistoryStore.for_tool(Tool.ABYSSAL_LEDGER, storage)
    store.append(LedgerEntry(amount=10, customer_id="c", status="error"))

    payload = json.loads(storage.data["abyssal_ledger_transactions"])
    assert payload[0]["hash"] == "FAILED_TX_HASH"


def test_history_delete_removes_exactly_one() -> None:
    store = HistoryStore.for_tool(Tool.SHADOW_SCRIBE, MemoryStorage())
    keep = store.append(ScribeEntry(prompt="keep", response="k"))
    drop = store.append(ScribeEntry(prompt="drop", response="d"))

    assert store.delete(drop.id) is True
    assert [e.id for e in store.entries] == [keep.id]
    assert store.delete("missing") is False
    assert len(store) == 1


def test_history_purge_requires_confirmation() -> None:
    storage = MemoryStorage()
    store = HistoryStore.for_tool(Tool.SHADOW_SCRIBE, storage)
    store.append(ScribeEntry(prompt="p", response="r"))

    assert store.purge(confirm=lambda: False) is False
    assert len(store) == 1

    assert store.purge(confirm=lambda: True) is True
    assert store.entries == []
    assert json.loads(storage.data[Tool.SHADOW_SCRIBE.history_key]) == []


def test_history_corrupt_slot_loads_empty() -> None:
    storage = MemoryStorage({Tool.SHADOW_SCRIBE.history_key: "{not a list"})
    store = HistoryStore.for_tool(Tool.SHADOW_SCRIBE, storage)
    assert store.entries == []


def test_history_notifies_subscribers_until_unsubscribed() -> None:
    store = HistoryStore.for_tool(Tool.SHADOW_SCRIBE, MemoryStorage())
    seen: list[int] = []
    unsubscribe = store.subscribe(lambda entries: seen.append(len(entries)))

    store.append(ScribeEntry(prompt="a", response="a"))
    unsubscribe()
    store.append(ScribeEntry(prompt="b", response="b"))

    assert seen == [1]


# --- drafts ----------------------------------------------------------------


def test_draft_store_round_trip_and_corrupt_slot() -> None:
    storage = MemoryStorage()
    drafts = DraftStore(storage)
    assert drafts.load().prompt == ""

    drafts.save("write a haiku", "markdown")
    loaded = DraftStore(storage).load()
    assert loaded.prompt == "write a haiku"
    assert loaded.format == "markdown"

    storage.set(SCRIBE_DRAFT_KEY, "garbage")
    assert DraftStore(storage).load().prompt == ""


# --- dynamic rules ---------------------------------------------------------


def test_rules_add_and_remove_without_duplicates() -> None:
    storage = MemoryStorage()
    rules = DynamicRuleStore(storage)

    assert rules.add_ip(" 10.0.0.1 ") is True
    assert rules.add_ip("10.0.0.1") is False
    assert rules.add_ip("   ") is False
    assert rules.add_keyword("skimming") is True
    assert rules.rules.bad_ips == ["10.0.0.1"]

    stored = json.loads(storage.data[SENTINEL_RULES_KEY])
    assert stored["badIps"] == ["10.0.0.1"]
    assert stored["keywords"] == ["skimming"]

    assert rules.remove_ip("10.0.0.1") is True
    assert rules.remove_ip("10.0.0.1") is False
    assert DynamicRuleStore(storage).rules.bad_ips == []


def test_rules_patterns_require_all_fields() -> None:
    rules = DynamicRuleStore(MemoryStorage())

    assert rules.add_pattern(transaction_type="", min_amount="100", description_keywords="x") is None
    assert rules.add_pattern(transaction_type="wire_transfer", min_amount="abc", description_keywords="x") is None

    pattern = rules.add_pattern(transaction_type="wire_transfer", min_amount="5000", description_keywords="urgent")
    assert pattern is not None
    assert pattern.min_amount == 5000
    assert rules.remove_pattern(pattern.id) is True
    assert rules.rules.patterns == []


def test_rules_snapshot_is_a_copy() -> None:
    rules = DynamicRuleStore(MemoryStorage())
    snapshot = rules.rules
    snapshot.keywords.append("mutated")
    assert rules.rules.keywords == []


def test_rules_corrupt_slot_resets() -> None:
    storage = MemoryStorage({SENTINEL_RULES_KEY: "[1, 2"})
    rules = DynamicRuleStore(storage)
    assert rules.rules.bad_ips == []
    assert SENTINEL_RULES_KEY not in storage.data


# --- undecodable slot files ------------------------------------------------


def test_undecodable_history_file_loads_empty(tmp_path: Path) -> None:
    (tmp_path / f"{Tool.SHADOW_SCRIBE.history_key}.json").write_bytes(b"[\xff\xfe garbage")

    store = HistoryStore.for_tool(Tool.SHADOW_SCRIBE, JsonFileStorage(tmp_path))
    assert store.entries == []

    store.append(ScribeEntry(prompt="fresh", response="ok"))
    assert len(HistoryStore.for_tool(Tool.SHADOW_SCRIBE, JsonFileStorage(tmp_path))) == 1


def test_undecodable_rules_file_is_reset(tmp_path: Path) -> None:
    slot = tmp_path / f"{SENTINEL_RULES_KEY}.json"
    slot.write_bytes(b"\xff")

    rules = DynamicRuleStore(JsonFileStorage(tmp_path))

    assert rules.rules.bad_ips == []
    assert not slot.exists()


def test_undecodable_draft_file_is_ignored(tmp_path: Path) -> None:
    (tmp_path / f"{SCRIBE_DRAFT_KEY}.json").write_bytes(b"[\xff\xfe")
    assert DraftStore(JsonFileStorage(tmp_path)).load().prompt == ""
