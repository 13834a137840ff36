"""Single-slot request guard: at most one in-flight request per tool."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestGuard:
    """Re-entrant submissions while busy are a no-op (the callable is not invoked)."""

    def __init__(self, name: str = "request") -> None:
        self._name = name
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T | None:
        if self._busy:
            logger.debug("%s already in flight; ignoring submission", self._name)
            return None
        self._busy = True
        try:
            return await fn()
        finally:
            self._busy = False
