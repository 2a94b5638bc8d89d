"""Capability unit contract.

Every unit takes the shared output bag plus the run context and returns a
``UnitOutput``. Generative units talk to the provider gateway and degrade to
a rule-based approximation when the response cannot be used; rule-based
units never touch the gateway.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..models.resume import JDAnalysis, ResumeData
from ..models.state import OutputOrigin, RunContext, UnitOutput
from ..services.gateway import ProviderGateway
from ..services.llm_service import CompletionResponse, parse_json_response

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class CapabilityUnit(ABC):
    """Base class for all units.

    Subclasses set ``name``, ``system_prompt`` and ``preferred_provider`` and
    implement ``execute``. ``LimitReachedError`` from the gateway is never
    caught here: the orchestrator reports it as a resource error.
    """

    name: str = ""
    system_prompt: str = ""
    preferred_provider: Optional[str] = None
    paid_only: bool = False

    @abstractmethod
    async def execute(
        self,
        bag: Mapping[str, Any],
        context: RunContext,
        gateway: Optional[ProviderGateway] = None,
    ) -> UnitOutput:
        ...

    # === Output helpers ===

    def success(
        self,
        data: Any,
        started: float,
        response: Optional[CompletionResponse] = None,
        origin: OutputOrigin = OutputOrigin.DETERMINISTIC,
    ) -> UnitOutput:
        if isinstance(data, BaseModel):
            data = data.model_dump()
        return UnitOutput(
            success=True,
            data=data,
            tokens_used=response.tokens_used if response else 0,
            provider_used=response.provider if response else None,
            duration_ms=_elapsed_ms(started),
            origin=origin,
        )

    def failure(
        self,
        error: str,
        started: float,
        kind: str = "input",
        response: Optional[CompletionResponse] = None,
    ) -> UnitOutput:
        logger.warning(f"[{self.name}] {error}")
        return UnitOutput(
            success=False,
            error=error,
            error_kind=kind,
            tokens_used=response.tokens_used if response else 0,
            provider_used=response.provider if response else None,
            duration_ms=_elapsed_ms(started),
        )

    # === Gateway helpers ===

    async def generate(
        self,
        gateway: Optional[ProviderGateway],
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        json_mode: bool = False,
    ) -> Tuple[Optional[Dict[str, Any]], CompletionResponse]:
        """Call the gateway and parse the response as a JSON object.

        Returns ``(None, response)`` when the response is not usable JSON.
        """
        if gateway is None:
            raise RuntimeError(f"Unit {self.name} needs a provider gateway")

        response = await gateway.complete(
            prompt,
            system_prompt=system_prompt if system_prompt is not None else self.system_prompt,
            preferred=self.preferred_provider,
            max_tokens=max_tokens,
            temperature=temperature,
            json_mode=json_mode,
        )
        parsed = parse_json_response(response.content)
        if parsed is None:
            logger.warning(f"[{self.name}] unparseable response from {response.provider}")
        return parsed, response

    def validate(self, model: Type[ModelT], data: Optional[Dict[str, Any]]) -> Optional[ModelT]:
        """Validate parsed JSON against a schema; None when it does not fit."""
        if data is None:
            return None
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning(f"[{self.name}] response failed validation: {e.error_count()} errors")
            return None


class RuleBasedUnit(CapabilityUnit):
    """Deterministic unit: pure function of the bag, never calls a provider."""

    preferred_provider = None


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def text_input(bag: Mapping[str, Any], *keys: str) -> str:
    """First non-empty string among ``keys``."""
    for key in keys:
        value = bag.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return ""


def resume_from_bag(bag: Mapping[str, Any]) -> Optional[ResumeData]:
    """Normalized resume from ``parsed_resume`` (or ``resume``), if present."""
    raw = bag.get("parsed_resume", bag.get("resume"))
    if raw is None:
        return None
    if isinstance(raw, ResumeData):
        return raw
    if not isinstance(raw, Mapping):
        return None
    return ResumeData.model_validate(dict(raw))


def jd_from_bag(bag: Mapping[str, Any]) -> Optional[JDAnalysis]:
    raw = bag.get("jd_analysis")
    if raw is None:
        return None
    if isinstance(raw, JDAnalysis):
        return raw
    if not isinstance(raw, Mapping):
        return None
    return JDAnalysis.model_validate(dict(raw))


def target_role_from(bag: Mapping[str, Any], context: RunContext, resume: Optional[ResumeData] = None) -> str:
    """Target role from the bag, the context, or the resume itself."""
    role = text_input(bag, "target_role")
    if not role and context.target_role:
        role = context.target_role
    if not role and resume is not None:
        role = resume.basics.target_role
    return role.strip()
