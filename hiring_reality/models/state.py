from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .budget import BudgetLedger


Tier = Literal["free", "paid"]
TargetMarket = Literal["india", "us", "uk", "eu", "gulf", "remote"]


class OutputOrigin(str, Enum):
    """Which branch produced a unit's data."""
    GENERATED = "generated"          # parsed provider response
    APPROXIMATED = "approximated"    # rule-based stand-in after a bad response
    DETERMINISTIC = "deterministic"  # rule-based unit, no provider involved


class StepStatus(str, Enum):
    PENDING = "pending"
    BLOCKED = "blocked"
    SKIPPED = "skipped"
    DISPATCHED = "dispatched"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RunContext(BaseModel):
    """Per-run state handed to every unit.

    Not shared across runs; ``now`` is the reference instant for every
    "months since X" computation so a run is reproducible.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    session_id: str
    tier: Tier = "free"
    market: TargetMarket = "india"
    jd_provided: bool = False
    target_role: Optional[str] = None
    budget: BudgetLedger
    now: datetime = Field(default_factory=datetime.now)

    @property
    def is_paid(self) -> bool:
        return self.tier == "paid"


class StepSpec(BaseModel):
    """One pipeline step: which unit, what it needs, where its output goes."""
    model_config = ConfigDict(frozen=True)

    unit: str
    requires: Tuple[str, ...] = ()
    output_key: str
    optional: bool = False


class PipelineDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    steps: Tuple[StepSpec, ...]


class UnitOutput(BaseModel):
    """Uniform result of every capability unit."""
    success: bool
    data: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
    error_kind: Optional[Literal["input", "capability", "tier"]] = None
    tokens_used: int = 0
    provider_used: Optional[str] = None
    duration_ms: int = 0
    origin: OutputOrigin = OutputOrigin.DETERMINISTIC


class StepError(BaseModel):
    unit: str
    kind: Literal["input", "capability", "resource", "registry", "pipeline"]
    message: str

    def __str__(self) -> str:
        return f"{self.unit}: {self.message}"


class StepRecord(BaseModel):
    """Ledger entry for one step of a run."""
    unit: str
    output_key: str
    status: StepStatus = StepStatus.PENDING
    tokens_used: int = 0
    provider_used: Optional[str] = None
    duration_ms: int = 0
    origin: Optional[OutputOrigin] = None


class RunResult(BaseModel):
    """What a pipeline run hands back: partial outputs are the common case."""
    pipeline: str
    success: bool
    outputs: Dict[str, Any] = Field(default_factory=dict)
    errors: List[StepError] = Field(default_factory=list)
    total_tokens: int = 0
    duration_ms: int = 0
    steps_completed: List[str] = Field(default_factory=list)
    step_records: List[StepRecord] = Field(default_factory=list)

    @property
    def limit_reached(self) -> bool:
        return any(e.kind == "resource" for e in self.errors)
