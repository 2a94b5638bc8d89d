"""Task registry - unit name to capability unit instance."""

import logging
from typing import Dict, List, Optional

from ..agents import (
    ATSRealityMatcherUnit,
    CapabilityUnit,
    JDIntelligenceUnit,
    MarketRealityUnit,
    ResumeParserUnit,
    RewriteFreeUnit,
    RewritePaidUnit,
    RewritePremiumUnit,
    SectionPriorityUnit,
    TruthValidatorUnit,
    UserProfilerUnit,
)
from ..models.config import AppConfig

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Looks units up by name; later registrations replace earlier ones."""

    def __init__(self):
        self._units: Dict[str, CapabilityUnit] = {}

    def register(self, unit: CapabilityUnit) -> None:
        if not unit.name:
            raise ValueError(f"{type(unit).__name__} has no name")
        if unit.name in self._units:
            logger.debug(f"Replacing registered unit {unit.name}")
        self._units[unit.name] = unit

    def get(self, name: str) -> Optional[CapabilityUnit]:
        return self._units.get(name)

    @property
    def names(self) -> List[str]:
        return list(self._units)

    def __contains__(self, name: str) -> bool:
        return name in self._units


def build_default_registry(config: Optional[AppConfig] = None) -> TaskRegistry:
    """Registry with every built-in unit."""
    config = config or AppConfig()
    registry = TaskRegistry()
    for unit in (
        ResumeParserUnit(),
        UserProfilerUnit(),
        JDIntelligenceUnit(),
        MarketRealityUnit(),
        ATSRealityMatcherUnit(),
        SectionPriorityUnit(),
        TruthValidatorUnit(),
        RewriteFreeUnit(),
        RewritePaidUnit(),
        RewritePremiumUnit(seed=config.rewrite_seed),
    ):
        registry.register(unit)
    return registry
