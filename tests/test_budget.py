import pytest

from hiring_reality.core import create_context
from hiring_reality.models import BudgetLedger


def test_free_tier_limits(config):
    ledger = BudgetLedger.for_tier("free", config.budgets.free)

    assert ledger.remaining("gemini") == 60
    assert ledger.remaining("groq") == 30
    assert not ledger.has_budget("openai")


def test_paid_tier_unlocks_openai(config):
    ledger = BudgetLedger.for_tier("paid", config.budgets.paid)

    assert ledger.has_budget("openai")
    assert ledger.remaining("openai") == 25
    assert ledger.remaining("gemini") == 120


def test_consume_until_exhausted():
    ledger = BudgetLedger.for_tier("free", {"groq": 2})

    ledger.consume("groq")
    assert ledger.has_budget("groq")
    ledger.consume("groq")

    assert not ledger.has_budget("groq")
    assert ledger.remaining("groq") == 0
    assert ledger.snapshot() == {"groq": {"used": 2, "max": 2}}


def test_unknown_provider_has_no_budget():
    ledger = BudgetLedger.for_tier("free", {"groq": 2})

    assert not ledger.has_budget("mistral")
    assert ledger.remaining("mistral") == 0
    with pytest.raises(KeyError):
        ledger.consume("mistral")


def test_snapshot_is_a_copy():
    ledger = BudgetLedger.for_tier("free", {"gemini": 3})

    snap = ledger.snapshot()
    snap["gemini"]["used"] = 99

    assert ledger.remaining("gemini") == 3


def test_each_context_gets_a_fresh_ledger(config, now):
    first = create_context("a", tier="free", now=now, config=config)
    second = create_context("b", tier="free", now=now, config=config)

    first.budget.consume("gemini")

    assert first.budget.remaining("gemini") == 59
    assert second.budget.remaining("gemini") == 60
