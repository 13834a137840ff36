"""Tool catalogue for abyssal-deck.

This module centralizes the seven tools exposed by the dashboard. Keeping it
in the domain layer allows the CLI, the stores and the shell to share a single
source of truth (order, labels, storage slots) without circular imports.
"""

from __future__ import annotations

from enum import Enum


class Tool(str, Enum):
    """The seven tools, in shortcut order (modifier + 1..7)."""

    SHADOW_SCRIBE = "SHADOW_SCRIBE"
    ABYSSAL_VISION = "ABYSSAL_VISION"
    CODE_WEAVER = "CODE_WEAVER"
    SPECTER_SENTINEL = "SPECTER_SENTINEL"
    SHADOW_CRAWLER = "SHADOW_CRAWLER"
    OSINT_HARBINGER = "OSINT_HARBINGER"
    ABYSSAL_LEDGER = "ABYSSAL_LEDGER"

    @classmethod
    def default(cls) -> "Tool":
        return cls.SHADOW_SCRIBE

    @classmethod
    def from_slug(cls, value: str) -> "Tool":
        """Accept `scribe`, `shadow-scribe` or `SHADOW_SCRIBE`."""

        key = value.strip().upper().replace("-", "_")
        if key in _ALIASES:
            return cls(_ALIASES[key])
        for tool in cls:
            if key == tool.value or key == tool.value.split("_", 1)[1]:
                return tool
        raise ValueError(f"Unknown tool: {value!r}")

    def label(self) -> str:
        """Human readable label for panels and prompts."""

        return self.value.replace("_", " ").title().replace("Osint", "OSINT")

    @property
    def slug(self) -> str:
        return self.value.split("_", 1)[1].lower()

    @property
    def history_key(self) -> str:
        """Storage slot holding this tool's history list."""

        return _HISTORY_KEYS[self]


TOOL_ORDER: tuple[Tool, ...] = tuple(Tool)

_HISTORY_KEYS: dict[Tool, str] = {
    Tool.SHADOW_SCRIBE: "shadow_scribe_history",
    Tool.ABYSSAL_VISION: "abyssal_vision_history",
    Tool.CODE_WEAVER: "code_weaver_history",
    Tool.SPECTER_SENTINEL: "specter_sentinel_history",
    Tool.SHADOW_CRAWLER: "shadow_crawler_history",
    Tool.OSINT_HARBINGER: "osint_harbinger_history",
    Tool.ABYSSAL_LEDGER: "abyssal_ledger_transactions",
}

_ALIASES: dict[str, str] = {
    "OSINT": "OSINT_HARBINGER",
    "CODE": "CODE_WEAVER",
}

SCRIBE_DRAFT_KEY = "shadow_scribe_draft"
SENTINEL_RULES_KEY = "specter_sentinel_rules"
