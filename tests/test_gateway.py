import asyncio

import pytest

from hiring_reality.models import BudgetLedger
from hiring_reality.models.config import GatewayConfig
from hiring_reality.services.gateway import (
    ALL_UNAVAILABLE_MESSAGE,
    BudgetExhaustedError,
    LimitReachedError,
    ProviderGateway,
    ProvidersUnavailableError,
    TRY_LATER_MESSAGE,
)
from hiring_reality.services.llm_service import CompletionRequest, parse_json_response

from conftest import FakeBackend


def make_gateway(backends, limits, health, tier="free", config=None):
    ledger = BudgetLedger.for_tier(tier, limits)
    gateway = ProviderGateway(
        {b.name: b for b in backends}, ledger, tier=tier, health=health,
        config=config or GatewayConfig(request_timeout=5),
    )
    return gateway, ledger


# === Health registry ===

def test_provider_benched_after_threshold(health):
    health.record_failure("groq")
    assert health.is_available("groq")

    health.record_failure("groq")
    assert not health.is_available("groq")


def test_success_resets_consecutive_errors(health):
    health.record_failure("groq")
    health.record_success("groq")
    health.record_failure("groq")

    assert health.is_available("groq")
    assert health.status()["groq"].consecutive_errors == 1


def test_cooldown_recovery_is_lazy(health, clock):
    health.record_failure("gemini")
    health.record_failure("gemini")

    clock.advance(59)
    assert not health.is_available("gemini")

    clock.advance(1)
    assert health.is_available("gemini")
    assert health.status()["gemini"].consecutive_errors == 0


# === Selection ===

async def test_preferred_provider_used_when_eligible(health):
    gemini, groq = FakeBackend("gemini", "ok"), FakeBackend("groq", "ok")
    gateway, ledger = make_gateway([gemini, groq], {"gemini": 5, "groq": 5}, health)

    response = await gateway.complete("hi", preferred="groq")

    assert response.provider == "groq"
    assert groq.calls == 1 and gemini.calls == 0
    assert ledger.remaining("groq") == 4
    assert ledger.remaining("gemini") == 5


async def test_chain_order_without_preference(health):
    gemini, groq = FakeBackend("gemini", "ok"), FakeBackend("groq", "ok")
    gateway, _ = make_gateway([gemini, groq], {"gemini": 5, "groq": 5}, health)

    response = await gateway.complete("hi")

    assert response.provider == "gemini"


async def test_preferred_without_budget_falls_to_chain(health):
    gemini, groq = FakeBackend("gemini", "ok"), FakeBackend("groq", "ok")
    gateway, _ = make_gateway([gemini, groq], {"gemini": 5, "groq": 0}, health)

    response = await gateway.complete("hi", preferred="groq")

    assert response.provider == "gemini"
    assert groq.calls == 0


async def test_free_tier_never_reaches_openai(health):
    openai = FakeBackend("openai", "ok")
    gateway, _ = make_gateway([openai], {"gemini": 5, "groq": 5, "openai": 0}, health)

    with pytest.raises(LimitReachedError):
        await gateway.complete("hi", preferred="openai")
    assert openai.calls == 0


async def test_paid_chain_includes_openai(health):
    openai = FakeBackend("openai", "ok")
    gateway, ledger = make_gateway([openai], {"gemini": 0, "groq": 0, "openai": 2}, health, tier="paid")

    response = await gateway.complete("hi")

    assert response.provider == "openai"
    assert ledger.remaining("openai") == 1


# === Fallback ===

async def test_single_fallback_on_failure(health):
    gemini = FakeBackend("gemini", RuntimeError("503"))
    groq = FakeBackend("groq", "ok")
    gateway, ledger = make_gateway([gemini, groq], {"gemini": 5, "groq": 5}, health)

    response = await gateway.complete("hi", preferred="gemini")

    assert response.provider == "groq"
    assert health.status()["gemini"].consecutive_errors == 1
    # Failed calls cost nothing
    assert ledger.remaining("gemini") == 5
    assert ledger.remaining("groq") == 4


async def test_both_attempts_fail(health):
    gemini = FakeBackend("gemini", RuntimeError("boom"))
    groq = FakeBackend("groq", RuntimeError("boom"))
    gateway, ledger = make_gateway([gemini, groq], {"gemini": 5, "groq": 5}, health)

    with pytest.raises(ProvidersUnavailableError) as exc_info:
        await gateway.complete("hi")

    assert exc_info.value.user_message == TRY_LATER_MESSAGE
    assert gemini.calls == 1 and groq.calls == 1
    assert ledger.snapshot() == {"gemini": {"used": 0, "max": 5}, "groq": {"used": 0, "max": 5}}


async def test_no_fallback_available(health):
    gemini = FakeBackend("gemini", RuntimeError("boom"))
    gateway, _ = make_gateway([gemini], {"gemini": 5, "groq": 5}, health)

    with pytest.raises(ProvidersUnavailableError) as exc_info:
        await gateway.complete("hi")

    assert exc_info.value.user_message == TRY_LATER_MESSAGE
    assert isinstance(exc_info.value.__cause__, RuntimeError)


async def test_timeout_counts_as_failure(health):
    class SlowBackend(FakeBackend):
        async def complete(self, request: CompletionRequest):
            await asyncio.sleep(1)
            return await super().complete(request)

    slow, groq = SlowBackend("gemini", "late"), FakeBackend("groq", "ok")
    gateway, _ = make_gateway(
        [slow, groq], {"gemini": 5, "groq": 5}, health,
        config=GatewayConfig(request_timeout=0.01),
    )

    response = await gateway.complete("hi")

    assert response.provider == "groq"
    assert health.status()["gemini"].consecutive_errors == 1


async def test_cooldown_then_recovery_routes_back(health, clock):
    gemini = FakeBackend("gemini", [RuntimeError("a"), RuntimeError("b"), "ok"])
    groq = FakeBackend("groq", "ok")
    gateway, _ = make_gateway([gemini, groq], {"gemini": 10, "groq": 10}, health)

    await gateway.complete("1")
    await gateway.complete("2")
    assert not health.is_available("gemini")

    third = await gateway.complete("3")
    assert third.provider == "groq"
    assert gemini.calls == 2

    clock.advance(60)
    fourth = await gateway.complete("4")
    assert fourth.provider == "gemini"


# === Exhaustion ===

async def test_budget_exhausted(health):
    gemini, groq = FakeBackend("gemini", "ok"), FakeBackend("groq", "ok")
    gateway, _ = make_gateway([gemini, groq], {"gemini": 1, "groq": 1}, health)

    await gateway.complete("1")
    await gateway.complete("2")
    with pytest.raises(BudgetExhaustedError) as exc_info:
        await gateway.complete("3")

    assert exc_info.value.user_message == ALL_UNAVAILABLE_MESSAGE
    assert gemini.calls == 1 and groq.calls == 1


async def test_all_providers_benched(health):
    gemini, groq = FakeBackend("gemini", "ok"), FakeBackend("groq", "ok")
    for name in ("gemini", "groq"):
        health.record_failure(name)
        health.record_failure(name)
    gateway, _ = make_gateway([gemini, groq], {"gemini": 5, "groq": 5}, health)

    with pytest.raises(ProvidersUnavailableError) as exc_info:
        await gateway.complete("hi")

    assert exc_info.value.user_message == ALL_UNAVAILABLE_MESSAGE
    assert gemini.calls == 0 and groq.calls == 0


async def test_no_backends_registered(health):
    gateway, _ = make_gateway([], {"gemini": 5, "groq": 5}, health)

    with pytest.raises(ProvidersUnavailableError):
        await gateway.complete("hi")


# === Response parsing ===

def test_parse_json_response_plain():
    assert parse_json_response('{"a": 1}') == {"a": 1}


def test_parse_json_response_fenced():
    content = 'Here you go:\n```json\n{"rewritten": "Built APIs"}\n```'
    assert parse_json_response(content) == {"rewritten": "Built APIs"}


def test_parse_json_response_embedded_in_prose():
    content = 'Sure! {"action": "approve", "issues": []} Hope this helps.'
    assert parse_json_response(content) == {"action": "approve", "issues": []}


def test_parse_json_response_garbage():
    assert parse_json_response("I cannot help with that.") is None
