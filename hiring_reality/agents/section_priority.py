"""Section priority unit - the order recruiters scan resume sections in."""

import time
from typing import Any, Mapping, Optional

from ..core.experience import classify_user_type
from ..models.schemas import SECTION_ORDER_BY_TYPE, SectionPriority
from ..models.state import RunContext, UnitOutput
from ..services.gateway import ProviderGateway
from .base import RuleBasedUnit, resume_from_bag, target_role_from

DEFAULT_USER_TYPE = "1-3yrs"

SECTION_ORDER_REASONING = {
    "fresher": (
        "As a fresher with limited work experience, recruiters prioritize your education "
        "credentials and project work. Your academic achievements and hands-on projects "
        "demonstrate your potential better than sparse work history."
    ),
    "1-3yrs": (
        "With 1-3 years of experience, recruiters want to see your technical skills "
        "immediately, followed by how you've applied them in real work. Projects and "
        "education support your growing expertise."
    ),
    "3-5yrs": (
        "At mid-level, your work experience speaks loudest. Recruiters scan for progression, "
        "impact, and leadership signals. Skills section confirms your toolkit, while projects "
        "show initiative beyond day job."
    ),
    "switcher": (
        "As a career switcher, your summary must immediately explain your transition. "
        "Transferable skills bridge your old and new domains. Relevant experience, even if "
        "tangential, validates your pivot."
    ),
}


class SectionPriorityUnit(RuleBasedUnit):
    """Free users get a locked order; paid users may rearrange it."""

    name = "section_priority"

    async def execute(
        self,
        bag: Mapping[str, Any],
        context: RunContext,
        gateway: Optional[ProviderGateway] = None,
    ) -> UnitOutput:
        started = time.perf_counter()

        profile = bag.get("user_profile") or {}
        user_type = profile.get("user_type") or profile.get("userType")
        if user_type not in SECTION_ORDER_BY_TYPE:
            resume = resume_from_bag(bag)
            if resume is None:
                user_type = DEFAULT_USER_TYPE
            else:
                user_type = classify_user_type(
                    resume.experience, target_role_from(bag, context), context.now
                )

        priority = SectionPriority(
            user_type=user_type,
            scan_order=list(SECTION_ORDER_BY_TYPE[user_type]),
            reasoning=SECTION_ORDER_REASONING[user_type],
            locked=not context.is_paid,
        )
        return self.success(priority, started)
