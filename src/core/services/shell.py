"""Cross-tool shell: active tool + keyboard shortcut routing.

A modifier (Ctrl or Cmd) plus a digit 1..7 switches the active tool. No other
global shortcuts exist.
"""

from __future__ import annotations

import re
from typing import Callable

from core.domain.tools import TOOL_ORDER, Tool

_SHORTCUT_RE = re.compile(r"^\s*(?:(ctrl|cmd|meta)\s*\+\s*|\^)(\d)\s*$", re.IGNORECASE)


def parse_shortcut(line: str) -> int | None:
    """Parse `ctrl+3`, `cmd+3` or `^3` into the digit; None if not a shortcut."""

    match = _SHORTCUT_RE.match(line)
    if not match:
        return None
    return int(match.group(2))


class ToolShell:
    def __init__(self, active: Tool | None = None) -> None:
        self._active = active or Tool.default()
        self._listeners: list[Callable[[Tool], None]] = []

    @property
    def active(self) -> Tool:
        return self._active

    def on_switch(self, listener: Callable[[Tool], None]) -> None:
        self._listeners.append(listener)

    def switch(self, tool: Tool) -> None:
        if tool is self._active:
            return
        self._active = tool
        for listener in list(self._listeners):
            listener(tool)

    def handle_shortcut(self, key: str, *, ctrl: bool = False, meta: bool = False) -> bool:
        """Return True when the key press was consumed as a tool switch."""

        if not (ctrl or meta):
            return False
        if not key.isdigit() or len(key) != 1:
            return False
        number = int(key)
        if not 1 <= number <= len(TOOL_ORDER):
            return False
        self.switch(TOOL_ORDER[number - 1])
        return True

    def handle_line(self, line: str) -> bool:
        """Text form of a shortcut, for line-based terminals."""

        number = parse_shortcut(line)
        if number is None:
            return False
        return self.handle_shortcut(str(number), ctrl=True)
