"""Pydantic models for the Hiring Reality engine."""

from .budget import BudgetLedger, ProviderQuota
from .config import (
    AppConfig,
    BudgetConfig,
    GatewayConfig,
    PipelineConfig,
    ProviderConfig,
    DEFAULT_MODELS,
)
from .reality import (
    OverallAssessment,
    RealityAnalysis,
    RealityItem,
    RealityPanel,
    RealityPanels,
)
from .resume import (
    Basics,
    EducationEntry,
    ExperienceEntry,
    JDAnalysis,
    JDRequirements,
    ProjectEntry,
    ResumeData,
)
from .schemas import (
    MarketReality,
    PremiumRewriteOutput,
    RewriteOutput,
    SectionPriority,
    TruthIssue,
    TruthValidation,
    UserProfile,
)
from .state import (
    OutputOrigin,
    PipelineDefinition,
    RunContext,
    RunResult,
    StepError,
    StepRecord,
    StepSpec,
    StepStatus,
    UnitOutput,
)

__all__ = [
    "BudgetLedger",
    "ProviderQuota",
    "AppConfig",
    "BudgetConfig",
    "GatewayConfig",
    "PipelineConfig",
    "ProviderConfig",
    "DEFAULT_MODELS",
    "OverallAssessment",
    "RealityAnalysis",
    "RealityItem",
    "RealityPanel",
    "RealityPanels",
    "Basics",
    "EducationEntry",
    "ExperienceEntry",
    "JDAnalysis",
    "JDRequirements",
    "ProjectEntry",
    "ResumeData",
    "MarketReality",
    "PremiumRewriteOutput",
    "RewriteOutput",
    "SectionPriority",
    "TruthIssue",
    "TruthValidation",
    "UserProfile",
    "OutputOrigin",
    "PipelineDefinition",
    "RunContext",
    "RunResult",
    "StepError",
    "StepRecord",
    "StepSpec",
    "StepStatus",
    "UnitOutput",
]
