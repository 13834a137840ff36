"""Draft snapshot for Shadow Scribe (the only persisted form state)."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from core.domain.models import ScribeDraft, TextFormat
from core.domain.tools import SCRIBE_DRAFT_KEY
from core.interfaces.storage import KeyValueStorage

logger = logging.getLogger(__name__)


class DraftStore:
    def __init__(self, storage: KeyValueStorage, key: str = SCRIBE_DRAFT_KEY) -> None:
        self._storage = storage
        self._key = key

    def load(self) -> ScribeDraft:
        try:
            raw = self._storage.get(self._key)
            if raw is None:
                return ScribeDraft()
            return ScribeDraft.model_validate_json(raw)
        except (ValidationError, UnicodeDecodeError):
            logger.warning("Ignoring corrupt draft slot %r", self._key)
            return ScribeDraft()

    def save(self, prompt: str, format: TextFormat = "plain") -> ScribeDraft:
        draft = ScribeDraft(prompt=prompt, format=format)
        self._storage.set(self._key, draft.model_dump_json())
        return draft
