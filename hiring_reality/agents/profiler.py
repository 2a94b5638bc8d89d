"""User profiler unit - classifies the candidate as fresher/1-3yrs/3-5yrs/switcher."""

import json
import logging
import re
import time
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.experience import classify_user_type, detect_domain, is_career_switch, total_years
from ..models.resume import ResumeData
from ..models.schemas import SwitcherContext, UserProfile
from ..models.state import OutputOrigin, RunContext, UnitOutput
from ..services.gateway import ProviderGateway
from .base import CapabilityUnit, resume_from_bag, target_role_from

logger = logging.getLogger(__name__)


USER_PROFILER_SYSTEM_PROMPT = """You are a hiring market specialist for India.

Classify the user into ONE category based on their resume:

1. fresher (0-1 year experience): recent graduates, internships, academic projects
2. 1-3yrs (early career): some professional experience, specializing
3. 3-5yrs (mid-level): multiple roles, domain expertise, progression and ownership
4. switcher: experience unrelated to the target role, pivoting to a new field

Analyze total years of experience, the gap between current and target role,
academic recency, job hopping patterns, and skill depth vs breadth.

Output JSON:
{
  "userType": "fresher|1-3yrs|3-5yrs|switcher",
  "experienceYears": 2.5,
  "confidence": 0.85,
  "signals": ["Recent graduate (2023)", "Only internships listed"],
  "marketChallenges": ["High competition for fresher SDE roles"],
  "strengths": ["Strong projects", "Relevant tech stack"],
  "isSwitcher": false,
  "switcherContext": null
}

Be honest. If someone is a fresher applying for senior roles, flag the mismatch."""

RULE_BASED_CONFIDENCE = 0.7
RECENT_GRADUATE_YEARS = 2

_YEAR_PATTERN = re.compile(r"\b(19|20)\d{2}\b")


def graduation_year(value: str) -> Optional[int]:
    match = _YEAR_PATTERN.search(value or "")
    return int(match.group(0)) if match else None


def classify_by_rules(
    resume: ResumeData,
    target_role: str,
    now: datetime,
    market: str = "india",
) -> UserProfile:
    """Deterministic profile used when the model's answer is unusable."""
    years = total_years(resume.experience, now)
    user_type = classify_user_type(resume.experience, target_role, now)
    current_role = resume.current_role
    switcher = is_career_switch(current_role, target_role)

    signals, challenges, strengths = [], [], []
    if years < 1:
        signals.append(f"Limited experience ({years:.1f} years)")
        challenges.append("High competition in entry-level market")

    if resume.education:
        grad_year = graduation_year(resume.education[0].graduation_date)
        if grad_year is not None and now.year - grad_year <= RECENT_GRADUATE_YEARS:
            signals.append(f"Recent graduate ({grad_year})")
        strengths.append("Education credentials present")

    if len(resume.experience) >= 2:
        strengths.append("Multiple work experiences")

    return UserProfile(
        user_type=user_type,
        experience_years=round(years, 1),
        current_role=current_role or None,
        target_role=target_role,
        target_market=market,
        confidence=RULE_BASED_CONFIDENCE,
        signals=signals,
        market_challenges=challenges,
        strengths=strengths,
        is_switcher=switcher,
        switcher_context=SwitcherContext(
            from_domain=detect_domain(current_role),
            to_domain=detect_domain(target_role),
        ) if switcher else None,
    )


class UserProfilerUnit(CapabilityUnit):
    name = "user_profiler"
    system_prompt = USER_PROFILER_SYSTEM_PROMPT
    preferred_provider = "gemini"

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
        target_role = target_role_from(bag, context, resume)

        prompt = (
            "Analyze this resume and classify the user:\n\n"
            f"RESUME DATA:\n{json.dumps(resume.model_dump(by_alias=True), indent=2)}\n\n"
            f"TARGET ROLE: {target_role or 'Not specified'}\n\n"
            "Classify the user and identify their market challenges. Return JSON only."
        )
        parsed, response = await self.generate(gateway, prompt, json_mode=True)

        profile = self.validate(UserProfile, parsed)
        if profile is None:
            logger.info("Using rule-based profile classification")
            fallback = classify_by_rules(resume, target_role, context.now, context.market)
            return self.success(fallback, started, response, origin=OutputOrigin.APPROXIMATED)

        update = {}
        if not profile.target_role:
            update["target_role"] = target_role
        if profile.current_role is None and resume.current_role:
            update["current_role"] = resume.current_role
        if update:
            profile = profile.model_copy(update=update)
        return self.success(profile, started, response, origin=OutputOrigin.GENERATED)
