"""Dynamic rule set for Specter Sentinel.

Three independent, user-editable lists (blocked IPs, flagged keywords,
amount/keyword patterns). The whole set is persisted on every change and sent
verbatim as context in each risk-analysis request.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from core.domain.models import DynamicRulePattern, DynamicRules
from core.domain.tools import SENTINEL_RULES_KEY
from core.interfaces.storage import KeyValueStorage
from core.services.history import Observable

logger = logging.getLogger(__name__)


class DynamicRuleStore(Observable[DynamicRules]):
    def __init__(self, storage: KeyValueStorage, key: str = SENTINEL_RULES_KEY) -> None:
        super().__init__()
        self._storage = storage
        self._key = key
        self._rules = self._load()

    @property
    def rules(self) -> DynamicRules:
        return self._rules.model_copy(deep=True)

    def add_ip(self, ip: str) -> bool:
        ip = ip.strip()
        if not ip or ip in self._rules.bad_ips:
            return False
        self._rules.bad_ips.append(ip)
        self._commit()
        return True

    def remove_ip(self, ip: str) -> bool:
        if ip not in self._rules.bad_ips:
            return False
        self._rules.bad_ips = [x for x in self._rules.bad_ips if x != ip]
        self._commit()
        return True

    def add_keyword(self, keyword: str) -> bool:
        keyword = keyword.strip()
        if not keyword or keyword in self._rules.keywords:
            return False
        self._rules.keywords.append(keyword)
        self._commit()
        return True

    def remove_keyword(self, keyword: str) -> bool:
        if keyword not in self._rules.keywords:
            return False
        self._rules.keywords = [x for x in self._rules.keywords if x != keyword]
        self._commit()
        return True

    def add_pattern(
        self,
        *,
        transaction_type: str,
        min_amount: str | float,
        description_keywords: str,
    ) -> DynamicRulePattern | None:
        """Add a pattern; all three fields are required, `min_amount` must parse."""

        transaction_type = transaction_type.strip()
        description_keywords = description_keywords.strip()
        if not transaction_type or not description_keywords or str(min_amount).strip() == "":
            return None
        try:
            amount = float(min_amount)
        except (TypeError, ValueError):
            return None

        pattern = DynamicRulePattern(
            transaction_type=transaction_type,
            min_amount=amount,
            description_keywords=description_keywords,
        )
        self._rules.patterns.append(pattern)
        self._commit()
        return pattern

    def remove_pattern(self, pattern_id: str) -> bool:
        remaining = [p for p in self._rules.patterns if p.id != pattern_id]
        if len(remaining) == len(self._rules.patterns):
            return False
        self._rules.patterns = remaining
        self._commit()
        return True

    def _load(self) -> DynamicRules:
        try:
            raw = self._storage.get(self._key)
            if raw is None:
                return DynamicRules()
            return DynamicRules.model_validate_json(raw)
        except (ValidationError, UnicodeDecodeError) as exc:
            logger.warning("Failed to parse dynamic rules slot %r, resetting: %s", self._key, exc)
            self._storage.delete(self._key)
            return DynamicRules()

    def _commit(self) -> None:
        self._storage.set(self._key, self._rules.model_dump_json(by_alias=True))
        self._notify(self.rules)
