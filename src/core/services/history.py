"""Per-tool history stores.

Each tool owns one storage slot holding a JSON array of its entries,
most-recent-first. The store is the only writer of that slot: every mutation
rewrites the whole list, and a slot that cannot be parsed on load is treated as
empty history (logged, never raised) so a corrupt file can't block the UI.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from core.domain.models import (
    CrawlEntry,
    HistoryEntry,
    LedgerEntry,
    OsintEntry,
    ScribeEntry,
    SentinelEntry,
    VisionEntry,
    WeaveEntry,
)
from core.domain.tools import Tool
from core.interfaces.storage import KeyValueStorage

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=HistoryEntry)
S = TypeVar("S")

ENTRY_MODELS: dict[Tool, type[HistoryEntry]] = {
    Tool.SHADOW_SCRIBE: ScribeEntry,
    Tool.ABYSSAL_VISION: VisionEntry,
    Tool.CODE_WEAVER: WeaveEntry,
    Tool.SPECTER_SENTINEL: SentinelEntry,
    Tool.SHADOW_CRAWLER: CrawlEntry,
    Tool.OSINT_HARBINGER: OsintEntry,
    Tool.ABYSSAL_LEDGER: LedgerEntry,
}


class Observable(Generic[S]):
    """Minimal subscribe/notify helper shared by the stores."""

    def __init__(self) -> None:
        self._listeners: list[Callable[[S], None]] = []

    def subscribe(self, listener: Callable[[S], None]) -> Callable[[], None]:
        """Register `listener`; returns a callable that unsubscribes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, state: S) -> None:
        for listener in list(self._listeners):
            listener(state)


class HistoryStore(Observable[list[E]], Generic[E]):
    """Append-only (prepend) log of past invocations for one tool."""

    def __init__(self, storage: KeyValueStorage, key: str, model: type[E]) -> None:
        super().__init__()
        self._storage = storage
        self._key = key
        self._adapter: TypeAdapter[list[E]] = TypeAdapter(list[model])  # type: ignore[valid-type]
        self._entries: list[E] = self._load()

    @classmethod
    def for_tool(cls, tool: Tool, storage: KeyValueStorage) -> "HistoryStore[HistoryEntry]":
        return cls(storage, tool.history_key, ENTRY_MODELS[tool])  # type: ignore[arg-type]

    @property
    def entries(self) -> list[E]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: E) -> E:
        self._entries.insert(0, entry)
        self._commit()
        return entry

    def delete(self, entry_id: str) -> bool:
        remaining = [e for e in self._entries if e.id != entry_id]
        if len(remaining) == len(self._entries):
            return False
        self._entries = remaining
        self._commit()
        return True

    def purge(self, *, confirm: Callable[[], bool]) -> bool:
        """Wipe every entry, only if `confirm()` returns True."""

        if not confirm():
            return False
        self._entries = []
        self._commit()
        return True

    def _load(self) -> list[E]:
        try:
            raw = self._storage.get(self._key)
            if raw is None or not raw.strip():
                return []
            return self._adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding corrupt history slot %r: %s", self._key, exc.errors()[:1])
            return []
        except UnicodeDecodeError as exc:
            logger.warning("Discarding undecodable history slot %r: %s", self._key, exc)
            return []

    def _commit(self) -> None:
        self._storage.set(self._key, self._adapter.dump_json(self._entries).decode("utf-8"))
        self._notify(self.entries)
