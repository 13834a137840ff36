"""Per-tool form state and validation.

Validation is synchronous and recomputed on every `errors()` call, so a form
can never report a stale result after a field changes. Submission is gated by
`can_submit(busy)`: no errors and no request in flight.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field

from core.domain.errors import ValidationFailed
from core.domain.models import (
    PaymentDetails,
    StoredPaymentMethod,
    TextFormat,
    TransactionInput,
    WeaveStyle,
)

MAX_VISION_PROMPT_LENGTH = 1000

TRANSACTION_TYPES: tuple[str, ...] = (
    "online_purchase",
    "pos_terminal",
    "atm_withdrawal",
    "wire_transfer",
    "international_wire",
    "crypto_purchase",
    "vpn_access",
)

_TARGET_SPLIT_RE = re.compile(r"[,\s]+")


def split_targets(text: str) -> list[str]:
    """Split on commas, spaces or newlines; drop empties."""

    return [t.strip() for t in _TARGET_SPLIT_RE.split(text or "") if t.strip()]


def parse_amount(value: str | float | None) -> float | None:
    """Finite float or None."""

    if value is None:
        return None
    try:
        amount = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(amount):
        return None
    return amount


class Form:
    def errors(self) -> dict[str, str]:
        raise NotImplementedError

    @property
    def is_valid(self) -> bool:
        return not self.errors()

    def can_submit(self, busy: bool = False) -> bool:
        return not busy and self.is_valid

    def ensure_valid(self) -> None:
        errors = self.errors()
        if errors:
            raise ValidationFailed(errors)


@dataclass
class ScribeForm(Form):
    prompt: str = ""
    format: TextFormat = "plain"

    @property
    def word_count(self) -> int:
        return len(self.prompt.split())

    def errors(self) -> dict[str, str]:
        if not self.prompt.strip():
            return {"prompt": "Prompt cannot be empty."}
        return {}


@dataclass
class VisionForm(Form):
    prompt: str = ""

    @property
    def trimmed(self) -> str:
        return self.prompt.strip()

    def errors(self) -> dict[str, str]:
        if not self.trimmed:
            return {"prompt": "Input Error: The void requires a non-empty directive."}
        if len(self.trimmed) > MAX_VISION_PROMPT_LENGTH:
            return {"prompt": f"Input Error: Directive too complex. Limit: {MAX_VISION_PROMPT_LENGTH} chars."}
        return {}


@dataclass
class WeaverForm(Form):
    prompt: str = ""
    style: WeaveStyle = "standard"

    def errors(self) -> dict[str, str]:
        if not self.prompt.strip():
            return {"prompt": "Blueprint cannot be empty."}
        return {}


@dataclass
class SentinelForm(Form):
    amount: str = "6000"
    transaction_type: str = "international_wire"
    location: str = "RU"
    ip_address: str = "192.168.1.100"
    description: str = "payment for services card_skimming_v2"

    def errors(self) -> dict[str, str]:
        if self.transaction_type not in TRANSACTION_TYPES:
            return {"transaction_type": f"Unknown transaction type: {self.transaction_type}."}
        return {}

    def to_transaction(self) -> TransactionInput:
        # Un importe no numérico se envía como 0.
        return TransactionInput(
            amount=parse_amount(self.amount) or 0.0,
            transaction_type=self.transaction_type,
            location=self.location,
            ip_address=self.ip_address,
            description=self.description,
        )


@dataclass
class CrawlerForm(Form):
    urls: str = ""
    country: str = ""
    city: str = ""

    @property
    def targets(self) -> list[str]:
        return split_targets(self.urls)

    def errors(self) -> dict[str, str]:
        if not self.targets:
            return {"urls": "At least one URL is required."}
        return {}


@dataclass
class OsintForm(Form):
    targets_input: str = ""

    @property
    def targets(self) -> list[str]:
        return split_targets(self.targets_input)

    def errors(self) -> dict[str, str]:
        if not self.targets:
            return {"targets": "At least one target is required."}
        return {}


@dataclass
class LedgerForm(Form):
    customer_id: str = "cust_phantom_001"
    amount: str = "199.99"
    invoice_id: str = ""
    private_note: str = ""
    methods: list[StoredPaymentMethod] = field(default_factory=list)
    selected_method_id: str | None = None

    def set_customer_id(self, value: str) -> None:
        """Changing the customer invalidates loaded methods and the selection."""

        self.customer_id = value
        self.methods = []
        self.selected_method_id = None

    def load_methods(self, methods: list[StoredPaymentMethod]) -> None:
        """Store fetched methods and auto-select the default one (else the first)."""

        self.methods = list(methods)
        self.selected_method_id = None
        if not self.methods:
            return
        default = next((m for m in self.methods if m.is_default), None)
        self.selected_method_id = (default or self.methods[0]).id

    def select(self, method_id: str) -> bool:
        if not any(m.id == method_id for m in self.methods):
            return False
        self.selected_method_id = method_id
        return True

    def errors(self) -> dict[str, str]:
        errors: dict[str, str] = {}
        if not self.customer_id.strip():
            errors["customer_id"] = "Customer ID cannot be empty."
        amount = parse_amount(self.amount)
        if amount is None or amount <= 0:
            errors["amount"] = "Amount must be a positive number."
        if self.methods and not self.selected_method_id:
            errors["method"] = "A payment method must be selected."
        return errors

    def can_submit(self, busy: bool = False) -> bool:
        return super().can_submit(busy) and self.selected_method_id is not None

    def to_details(self) -> PaymentDetails:
        self.ensure_valid()
        if self.selected_method_id is None:
            raise ValidationFailed({"method": "A payment method must be selected."})
        return PaymentDetails(
            customer_id=self.customer_id,
            amount=parse_amount(self.amount) or 0.0,
            payment_method_id=self.selected_method_id,
            invoice_id=self.invoice_id or None,
            private_note=self.private_note or None,
        )
