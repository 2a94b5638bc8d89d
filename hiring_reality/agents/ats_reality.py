"""ATS reality matcher - itemized reality panels instead of a single ATS score."""

import time
from typing import Any, Mapping, Optional

from ..core.reality import assess
from ..models.state import RunContext, UnitOutput
from ..services.gateway import ProviderGateway
from .base import RuleBasedUnit, jd_from_bag, resume_from_bag, target_role_from


class ATSRealityMatcherUnit(RuleBasedUnit):
    name = "ats_reality_matcher"

    async def execute(
        self,
        bag: Mapping[str, Any],
        context: RunContext,
        gateway: Optional[ProviderGateway] = None,
    ) -> UnitOutput:
        started = time.perf_counter()

        resume = resume_from_bag(bag)
        if resume is None:
            return self.failure("No resume data provided", started)

        analysis = assess(
            resume,
            jd_from_bag(bag),
            target_role_from(bag, context, resume),
            context.now,
        )
        return self.success(analysis, started)
