"""Capability units dispatched by the pipeline orchestrator."""

from .base import CapabilityUnit, RuleBasedUnit
from .parser import ResumeParserUnit
from .profiler import UserProfilerUnit
from .jd_intelligence import JDIntelligenceUnit
from .market import MarketRealityUnit
from .ats_reality import ATSRealityMatcherUnit
from .section_priority import SectionPriorityUnit
from .truth_validator import TruthValidatorUnit
from .rewrite import RewriteFreeUnit, RewritePaidUnit, RewritePremiumUnit

__all__ = [
    "CapabilityUnit",
    "RuleBasedUnit",
    "ResumeParserUnit",
    "UserProfilerUnit",
    "JDIntelligenceUnit",
    "MarketRealityUnit",
    "ATSRealityMatcherUnit",
    "SectionPriorityUnit",
    "TruthValidatorUnit",
    "RewriteFreeUnit",
    "RewritePaidUnit",
    "RewritePremiumUnit",
]
