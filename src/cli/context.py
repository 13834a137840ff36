"""Runtime wiring for the CLI.

Por qué un contexto explícito:
- Los comandos no construyen adapters por su cuenta: settings, storage y
  gateway se crean una vez y se inyectan.
- Los tests sustituyen el contexto entero (MemoryStorage + gateway falso) con
  `set_context`, sin tocar variables de entorno ni red.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from rich.console import Console
from rich.logging import RichHandler

from adapters.ai_gateway import OpenAIGateway
from adapters.storage import build_storage
from core.config import AppSettings
from core.domain.models import HistoryEntry
from core.domain.tools import TOOL_ORDER, Tool
from core.interfaces.gateway import ModelGateway
from core.interfaces.storage import KeyValueStorage
from core.services.drafts import DraftStore
from core.services.guard import RequestGuard
from core.services.history import HistoryStore
from core.services.rules import DynamicRuleStore
from core.services.weaver import PreviewBuilder


def configure_logging(level: str = "WARNING") -> None:
    """Route stdlib logging through Rich on stderr."""

    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    root.addHandler(
        RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
    )
    root.setLevel(level.upper())


@dataclass
class DeckContext:
    settings: AppSettings
    storage: KeyValueStorage
    gateway: ModelGateway
    console: Console = field(default_factory=Console)
    guards: dict[Tool, RequestGuard] = field(default_factory=dict)
    preview: PreviewBuilder | None = None
    _histories: dict[Tool, HistoryStore[HistoryEntry]] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        for tool in TOOL_ORDER:
            self.guards.setdefault(tool, RequestGuard(tool.slug))
        if self.preview is None:
            self.preview = PreviewBuilder(self.settings.data_dir / "previews")

    def history(self, tool: Tool) -> HistoryStore[HistoryEntry]:
        store = self._histories.get(tool)
        if store is None:
            store = HistoryStore.for_tool(tool, self.storage)
            self._histories[tool] = store
        return store

    @property
    def rules(self) -> DynamicRuleStore:
        return DynamicRuleStore(self.storage)

    @property
    def drafts(self) -> DraftStore:
        return DraftStore(self.storage)


def build_context(settings: AppSettings | None = None) -> DeckContext:
    settings = settings or AppSettings()
    return DeckContext(
        settings=settings,
        storage=build_storage(settings),
        gateway=OpenAIGateway(settings),
    )


_CONTEXT: DeckContext | None = None


def get_context() -> DeckContext:
    global _CONTEXT
    if _CONTEXT is None:
        _CONTEXT = build_context()
    return _CONTEXT


def set_context(context: DeckContext | None) -> None:
    global _CONTEXT
    _CONTEXT = context
