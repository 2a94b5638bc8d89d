"""Pipeline Orchestrator - runs declarative step lists over a shared output bag.

Each run walks its pipeline's steps strictly in order:

    PENDING -> BLOCKED (missing input) -> SKIPPED (optional) | FAILED (required)
    PENDING -> DISPATCHED -> SUCCEEDED | FAILED

Failures become ``StepError`` records and whatever the successful steps
produced is always handed back. A required step whose unit raises ends the
run; other failures let later steps check their own inputs.
"""

import logging
import time
import uuid
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..models.budget import BudgetLedger
from ..models.config import AppConfig
from ..models.state import (
    RunContext,
    RunResult,
    StepError,
    StepRecord,
    StepSpec,
    StepStatus,
    UnitOutput,
)
from ..services.gateway import LimitReachedError, ProviderGateway
from ..services.health import ProviderHealthRegistry, get_health_registry
from ..services.llm_service import LLMBackend
from .catalog import PipelineCatalog
from .registry import TaskRegistry, build_default_registry

logger = logging.getLogger(__name__)


ACTION_PIPELINES: Dict[str, str] = {
    "parse_resume": "full_processing",
    "full_analysis": "full_processing",
    "analyze_jd": "jd_analysis",
    "compare_ats": "ats_comparison",
    "validate": "validation",
    "classify_profile": "profile_classification",
}
DEFAULT_PIPELINE = "full_processing"


def create_context(
    session_id: Optional[str] = None,
    tier: str = "free",
    market: str = "india",
    target_role: Optional[str] = None,
    jd_provided: bool = False,
    now: Optional[datetime] = None,
    config: Optional[AppConfig] = None,
) -> RunContext:
    """Build a run context with a fresh budget ledger for its tier."""
    config = config or AppConfig()
    limits = config.budgets.paid if tier == "paid" else config.budgets.free
    return RunContext(
        session_id=session_id or uuid.uuid4().hex,
        tier=tier,
        market=market,
        jd_provided=jd_provided,
        target_role=target_role,
        budget=BudgetLedger.for_tier(tier, limits),
        now=now or datetime.now(),
    )


def missing_inputs(step: StepSpec, bag: Mapping[str, Any]) -> List[str]:
    """Required keys that are absent from the bag or set to None."""
    return [key for key in step.requires if bag.get(key) is None]


class PipelineOrchestrator:
    """Dispatches pipeline steps to registered capability units.

    Usage:
        orchestrator = PipelineOrchestrator(backends=build_backends(config), config=config)
        context = create_context("session-1", tier="free", config=config)
        result = await orchestrator.run_pipeline("full_processing", inputs, context)
    """

    def __init__(
        self,
        registry: Optional[TaskRegistry] = None,
        catalog: Optional[PipelineCatalog] = None,
        backends: Optional[Mapping[str, LLMBackend]] = None,
        health: Optional[ProviderHealthRegistry] = None,
        config: Optional[AppConfig] = None,
    ):
        self.config = config or AppConfig()
        self.registry = registry or build_default_registry(self.config)
        self.catalog = catalog or PipelineCatalog.load(self.config.pipeline.catalog_path)
        self.backends = dict(backends or {})
        self.health = health or get_health_registry(
            self.config.gateway.failure_threshold,
            self.config.gateway.cooldown_seconds,
        )

    def gateway_for(self, context: RunContext) -> ProviderGateway:
        """Gateway bound to this run's ledger and the shared health registry."""
        return ProviderGateway(
            self.backends,
            context.budget,
            tier=context.tier,
            health=self.health,
            config=self.config.gateway,
        )

    async def run_pipeline(
        self,
        name: str,
        initial_inputs: Mapping[str, Any],
        context: RunContext,
    ) -> RunResult:
        """Execute a named pipeline.

        Args:
            name: Pipeline name from the catalog
            initial_inputs: Seed data for the shared bag (copied, never mutated)
            context: Run context; its ledger is consumed by provider calls

        Returns:
            RunResult; ``success`` is True only when no step recorded an error
        """
        start = time.perf_counter()
        bag: Dict[str, Any] = dict(initial_inputs)

        definition = self.catalog.get(name)
        if definition is None:
            logger.error(f"Unknown pipeline: {name}")
            return RunResult(
                pipeline=name,
                success=False,
                outputs=bag,
                errors=[StepError(unit="orchestrator", kind="pipeline", message=f"Unknown pipeline: {name}")],
            )

        logger.info(f"Starting pipeline {name} ({len(definition.steps)} steps, {context.tier} tier)")
        gateway = self.gateway_for(context)
        errors: List[StepError] = []
        records: List[StepRecord] = []
        completed: List[str] = []
        total_tokens = 0

        for step in definition.steps:
            record = StepRecord(unit=step.unit, output_key=step.output_key)
            records.append(record)
            error, raised = await self._run_step(step, bag, context, gateway, record)

            total_tokens += record.tokens_used
            if record.status == StepStatus.SUCCEEDED:
                completed.append(step.unit)
            if error is None:
                continue

            errors.append(error)
            if raised and not step.optional:
                logger.warning(f"Stopping {name}: required step {step.unit} raised")
                break
            if self.config.pipeline.halt_on_required_failure and not step.optional:
                logger.warning(f"Halting {name} after required step {step.unit} failed")
                break

        duration_ms = int((time.perf_counter() - start) * 1000)
        if errors:
            logger.warning(f"Pipeline {name} finished with {len(errors)} error(s): {'; '.join(map(str, errors))}")
        else:
            logger.info(f"Pipeline {name} completed in {duration_ms}ms ({total_tokens} tokens)")

        return RunResult(
            pipeline=name,
            success=not errors,
            outputs=bag,
            errors=errors,
            total_tokens=total_tokens,
            duration_ms=duration_ms,
            steps_completed=completed,
            step_records=records,
        )

    async def _run_step(
        self,
        step: StepSpec,
        bag: Dict[str, Any],
        context: RunContext,
        gateway: ProviderGateway,
        record: StepRecord,
    ) -> Tuple[Optional[StepError], bool]:
        """Run one step, updating ``record`` and ``bag``.

        Returns:
            (error or None, whether the unit raised instead of returning)
        """
        missing = missing_inputs(step, bag)
        if missing:
            record.status = StepStatus.BLOCKED
            if step.optional:
                logger.info(f"Skipping optional step {step.unit}: missing {', '.join(missing)}")
                record.status = StepStatus.SKIPPED
                return None, False
            record.status = StepStatus.FAILED
            return StepError(
                unit=step.unit,
                kind="input",
                message=f"Missing required inputs: {', '.join(missing)}",
            ), False

        unit = self.registry.get(step.unit)
        if unit is None:
            record.status = StepStatus.FAILED
            return StepError(unit=step.unit, kind="registry", message=f"Unit not registered: {step.unit}"), False

        record.status = StepStatus.DISPATCHED
        logger.info(f"Executing step: {step.unit}")
        started = time.perf_counter()
        try:
            output = await unit.execute(bag, context, gateway)
        except LimitReachedError as e:
            record.status = StepStatus.FAILED
            record.duration_ms = int((time.perf_counter() - started) * 1000)
            logger.warning(f"Step {step.unit} hit provider limits: {e}")
            return StepError(unit=step.unit, kind="resource", message=e.user_message), True
        except Exception as e:
            record.status = StepStatus.FAILED
            record.duration_ms = int((time.perf_counter() - started) * 1000)
            logger.error(f"Step {step.unit} raised: {e!r}")
            return StepError(unit=step.unit, kind="capability", message=f"{step.unit} exception: {e}"), True

        record.tokens_used = output.tokens_used
        record.provider_used = output.provider_used
        record.duration_ms = output.duration_ms
        if not output.success:
            record.status = StepStatus.FAILED
            return StepError(
                unit=step.unit,
                kind="capability",
                message=output.error or "Unknown error",
            ), False

        bag[step.output_key] = output.data
        record.status = StepStatus.SUCCEEDED
        record.origin = output.origin
        logger.debug(f"Step {step.unit} -> {step.output_key} ({output.origin.value})")
        return None, False

    async def route(
        self,
        action: str,
        inputs: Mapping[str, Any],
        context: RunContext,
    ) -> RunResult:
        """Map a user-facing action onto its pipeline and run it."""
        if action == "rewrite":
            name = "rewrite_paid" if context.is_paid else "rewrite_free"
        else:
            name = ACTION_PIPELINES.get(action, DEFAULT_PIPELINE)
        logger.debug(f"Routing action {action} -> {name}")
        return await self.run_pipeline(name, inputs, context)

    async def execute_unit(
        self,
        name: str,
        data: Mapping[str, Any],
        context: RunContext,
    ) -> UnitOutput:
        """Run a single unit outside any pipeline.

        Raises:
            LimitReachedError: The unit needed a provider and none could serve it.
        """
        unit = self.registry.get(name)
        if unit is None:
            return UnitOutput(success=False, error=f"Unit not registered: {name}", error_kind="capability")
        return await unit.execute(dict(data), context, self.gateway_for(context))
