"""Provider gateway: one call interface over N interchangeable providers.

Selection consults provider health (process-wide) and the session's budget
ledger; a failed call is retried once on the next distinct eligible provider.
This is the only place that mutates either structure.
"""

import asyncio
import logging
from typing import Iterable, List, Mapping, Optional

from ..models.budget import BudgetLedger
from ..models.config import GatewayConfig
from .health import ProviderHealthRegistry, get_health_registry
from .llm_service import CompletionRequest, CompletionResponse, LLMBackend

logger = logging.getLogger(__name__)


ALL_UNAVAILABLE_MESSAGE = (
    "Free AI limit reached. All providers are temporarily unavailable. "
    "Please try again in a few minutes."
)
TRY_LATER_MESSAGE = "Free AI limit reached. Please try again later."


class GatewayError(Exception):
    """Base exception for provider gateway errors."""
    pass


class LimitReachedError(GatewayError):
    """No provider could serve the request.

    ``user_message`` is meant to be shown to end users verbatim.
    """

    def __init__(self, user_message: str, detail: Optional[str] = None):
        super().__init__(detail or user_message)
        self.user_message = user_message


class BudgetExhaustedError(LimitReachedError):
    """Every candidate provider has used up its session quota."""
    pass


class ProvidersUnavailableError(LimitReachedError):
    """Candidates are on cooldown, unregistered, or failed on this request."""
    pass


class ProviderGateway:
    """Budget-aware, health-aware provider selection with one fallback.

    Usage:
        gateway = ProviderGateway(backends, ledger, tier="free")
        response = await gateway.complete(prompt, system_prompt=..., preferred="groq")
    """

    def __init__(
        self,
        backends: Mapping[str, LLMBackend],
        ledger: BudgetLedger,
        tier: str = "free",
        health: Optional[ProviderHealthRegistry] = None,
        config: Optional[GatewayConfig] = None,
    ):
        self.config = config or GatewayConfig()
        self.backends = dict(backends)
        self.ledger = ledger
        self.tier = tier
        self.health = health or get_health_registry(
            self.config.failure_threshold, self.config.cooldown_seconds
        )

    @property
    def chain(self) -> List[str]:
        return self.config.paid_chain if self.tier == "paid" else self.config.free_chain

    def _candidates(self, preferred: Optional[str]) -> List[str]:
        ordered: List[str] = []
        for provider in ([preferred] if preferred else []) + self.chain:
            if provider not in ordered:
                ordered.append(provider)
        return ordered

    def _select(self, preferred: Optional[str], exclude: Iterable[str] = ()) -> Optional[str]:
        excluded = set(exclude)
        for provider in self._candidates(preferred):
            if provider in excluded or provider not in self.backends:
                continue
            if self.health.is_available(provider) and self.ledger.has_budget(provider):
                return provider
        return None

    def _no_provider_error(self, preferred: Optional[str]) -> LimitReachedError:
        registered = [p for p in self._candidates(preferred) if p in self.backends]
        if registered and not any(self.ledger.has_budget(p) for p in registered):
            return BudgetExhaustedError(
                ALL_UNAVAILABLE_MESSAGE,
                f"Budget exhausted for {', '.join(registered)}",
            )
        return ProvidersUnavailableError(
            ALL_UNAVAILABLE_MESSAGE,
            f"No healthy provider with budget among {', '.join(registered) or 'none registered'}",
        )

    async def _invoke(self, provider: str, request: CompletionRequest) -> CompletionResponse:
        backend = self.backends[provider]
        return await asyncio.wait_for(
            backend.complete(request), timeout=self.config.request_timeout
        )

    def _succeeded(self, provider: str, response: CompletionResponse) -> CompletionResponse:
        self.health.record_success(provider)
        self.ledger.consume(provider)
        if response.provider != provider:
            response = response.model_copy(update={"provider": provider})
        return response

    async def call(
        self,
        request: CompletionRequest,
        preferred: Optional[str] = None,
    ) -> CompletionResponse:
        """Run a completion with automatic fallback.

        Raises:
            BudgetExhaustedError: No candidate provider has budget left.
            ProvidersUnavailableError: No healthy candidate, or both the chosen
                provider and its fallback failed.
        """
        provider = self._select(preferred)
        if provider is None:
            raise self._no_provider_error(preferred)

        try:
            return self._succeeded(provider, await self._invoke(provider, request))
        except Exception as e:
            logger.warning(f"LLM call failed for {provider}: {e!r}")
            self.health.record_failure(provider)
            first_error = e

        fallback = self._select(preferred, exclude={provider})
        if fallback is None:
            raise ProvidersUnavailableError(
                TRY_LATER_MESSAGE, f"{provider} failed and no fallback is available"
            ) from first_error

        logger.info(f"Falling back to {fallback}...")
        try:
            return self._succeeded(fallback, await self._invoke(fallback, request))
        except Exception as e:
            logger.warning(f"Fallback call failed for {fallback}: {e!r}")
            self.health.record_failure(fallback)
            raise ProvidersUnavailableError(
                TRY_LATER_MESSAGE, f"{provider} and {fallback} both failed"
            ) from e

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        preferred: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        json_mode: bool = False,
    ) -> CompletionResponse:
        """Simple text completion (convenience method)."""
        request = CompletionRequest(
            prompt=prompt,
            system_prompt=system_prompt,
            max_tokens=max_tokens,
            temperature=temperature,
            json_mode=json_mode,
        )
        return await self.call(request, preferred=preferred)

    def provider_status(self) -> dict:
        """Availability of each registered provider."""
        return {name: self.health.is_available(name) for name in self.backends}
