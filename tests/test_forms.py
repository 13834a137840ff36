from __future__ import annotations

import asyncio

import pytest

from core.domain.errors import ValidationFailed
from core.domain.models import StoredPaymentMethod
from core.services.forms import (
    CrawlerForm,
    LedgerForm,
    OsintForm,
    ScribeForm,
    SentinelForm,
    VisionForm,
    split_targets,
)
from core.services.guard import RequestGuard


def _methods() -> list[StoredPaymentMethod]:
    return [
        StoredPaymentMethod.model_validate({"id": "pm_1", "name": "Checking", "accountType": "PERSONAL_CHECKING"}),
        StoredPaymentMethod.model_validate({"id": "pm_2", "name": "Card", "accountType": "CREDIT_CARD", "default": True}),
    ]


@pytest.mark.parametrize("amount", ["0", "-5", "abc", ""])
def test_ledger_form_rejects_non_positive_amounts(amount: str) -> None:
    form = LedgerForm(amount=amount)
    form.load_methods(_methods())
    assert form.errors()["amount"] == "Amount must be a positive number."
    assert form.can_submit() is False


def test_ledger_form_rejects_empty_customer_id() -> None:
    form = LedgerForm(customer_id="   ")
    form.load_methods(_methods())
    assert "customer_id" in form.errors()
    assert form.can_submit() is False


def test_ledger_form_requires_selected_method() -> None:
    form = LedgerForm()
    assert form.can_submit() is False

    form.load_methods(_methods())
    form.selected_method_id = None
    assert form.errors() == {"method": "A payment method must be selected."}
    assert form.can_submit() is False


def test_ledger_form_auto_selects_default_method() -> None:
    form = LedgerForm()
    form.load_methods(_methods())
    assert form.selected_method_id == "pm_2"
    assert form.can_submit() is True
    assert form.can_submit(busy=True) is False

    assert form.select("pm_1") is True
    assert form.select("nope") is False
    details = form.to_details()
    assert details.payment_method_id == "pm_1"
    assert details.amount == pytest.approx(199.99)


def test_ledger_form_customer_change_clears_methods() -> None:
    form = LedgerForm()
    form.load_methods(_methods())
    form.set_customer_id("cust_other")
    assert form.methods == []
    assert form.selected_method_id is None


def test_ledger_to_details_raises_when_invalid() -> None:
    form = LedgerForm(amount="0")
    with pytest.raises(ValidationFailed) as excinfo:
        form.to_details()
    assert "amount" in excinfo.value.errors


def test_vision_form_limits() -> None:
    assert VisionForm(prompt="   ").errors() == {"prompt": "Input Error: The void requires a non-empty directive."}
    too_long = VisionForm(prompt="x" * 1001)
    assert too_long.errors()["prompt"].startswith("Input Error: Directive too complex.")
    assert VisionForm(prompt="  " + "x" * 1000 + "  ").is_valid


def test_scribe_form_counts_words_and_requires_prompt() -> None:
    assert ScribeForm(prompt="three little words").word_count == 3
    assert ScribeForm(prompt="  ").can_submit() is False


def test_sentinel_form_sends_non_numeric_amount_as_zero() -> None:
    tx = SentinelForm(amount="lots").to_transaction()
    assert tx.amount == 0
    assert tx.transaction_type == "international_wire"
    assert SentinelForm(transaction_type="teleport").is_valid is False


def test_targets_split_on_commas_spaces_and_newlines() -> None:
    assert split_targets("a.com, b.com\nc.com  d.com,,") == ["a.com", "b.com", "c.com", "d.com"]
    assert CrawlerForm(urls=" , ").is_valid is False
    assert OsintForm(targets_input="acme").targets == ["acme"]


@pytest.mark.asyncio
async def test_request_guard_ignores_reentrant_submission() -> None:
    guard = RequestGuard("test")
    calls: list[str] = []

    async def slow() -> str:
        calls.append("run")
        await asyncio.sleep(0.01)
        return "done"

    async def scenario() -> tuple[str | None, str | None]:
        first = asyncio.ensure_future(guard.run(slow))
        await asyncio.sleep(0)
        assert guard.busy is True
        second = await guard.run(slow)
        return await first, second

    first, second = await scenario()
    assert first == "done"
    assert second is None
    assert calls == ["run"]
    assert guard.busy is False


@pytest.mark.asyncio
async def test_request_guard_releases_after_failure() -> None:
    guard = RequestGuard()

    async def boom() -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await guard.run(boom)
    assert guard.busy is False
