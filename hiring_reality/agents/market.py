"""Market reality unit - honest demand and saturation picture for the target role."""

import logging
import time
from typing import Any, List, Mapping, Optional

from ..models.schemas import FresherReality, MarketReality, TypicalRequirements, UserProfile
from ..models.state import OutputOrigin, RunContext, UnitOutput
from ..services.gateway import ProviderGateway
from ..services.market_data import MarketDataService, get_market_service
from .base import CapabilityUnit, target_role_from

logger = logging.getLogger(__name__)


MARKET_REALITY_SYSTEM_PROMPT = """You are a labor market analyst for the Indian job market.

Provide REALISTIC market intelligence for job seekers. No false hope.

Output JSON:
{
  "roleTitle": "exact market title",
  "demandLevel": "high|medium|low",
  "saturation": "oversaturated|balanced|undersupplied",
  "typicalRequirements": {
    "yearsExperience": "X-Y years",
    "education": ["B.Tech", "relevant degree"],
    "mustHaveSkills": ["skill1", "skill2"],
    "niceToHaveSkills": ["skill3"]
  },
  "fresherReality": {
    "isHiring": true,
    "competitionLevel": "brutal|high|medium|low",
    "alternativeTitles": ["Associate", "Trainee"],
    "expectedSalary": "₹X-Y LPA"
  },
  "switcherChallenges": ["specific obstacles if pivoting to this role"],
  "honestAdvice": "brutal truth about the applicant's chances",
  "realisticRoles": ["roles this person could actually get"]
}

Rules:
- Use real Indian market data (Naukri, LinkedIn India trends)
- If the role doesn't hire freshers, say it
- Include salary expectations for the Indian market"""


def switcher_roles(profile: UserProfile, market: MarketReality) -> List[str]:
    suggestions: List[str] = []
    if not market.fresher_reality.is_hiring and profile.experience_years < 3:
        suggestions.extend(market.fresher_reality.alternative_titles)
    if profile.experience_years >= 2:
        suggestions.append(market.role_title)
    return suggestions[:3]


def customize_for_user(market: MarketReality, profile: Optional[UserProfile]) -> MarketReality:
    """Tailor advice and realistic roles to the candidate's profile."""
    if profile is None:
        return market

    if profile.user_type == "fresher":
        titles = market.fresher_reality.alternative_titles
        return market.model_copy(update={
            "realistic_roles": list(titles),
            "honest_advice": f"{market.honest_advice} As a fresher, focus on {' or '.join(titles)}.",
        })

    if profile.is_switcher:
        return market.model_copy(update={
            "realistic_roles": switcher_roles(profile, market),
            "honest_advice": (
                f"{market.honest_advice} Career switch challenges: "
                f"{', '.join(market.switcher_challenges)}."
            ),
        })

    return market.model_copy(update={"realistic_roles": [market.role_title]})


def generic_market(target_role: str) -> MarketReality:
    """Neutral response for roles neither the table nor the model could cover."""
    return MarketReality(
        role_title=target_role,
        demand_level="medium",
        saturation="balanced",
        typical_requirements=TypicalRequirements(
            years_experience="2-4 years",
            education=["Bachelor's degree in relevant field"],
            must_have_skills=["Domain knowledge", "Communication", "Problem-solving"],
            nice_to_have_skills=["Industry certifications", "Advanced tools"],
        ),
        fresher_reality=FresherReality(
            is_hiring=True,
            competition_level="high",
            alternative_titles=[f"Junior {target_role}", f"Associate {target_role}"],
            expected_salary="₹4-10 LPA",
        ),
        switcher_challenges=[
            "Domain expertise needed",
            "May require certifications",
            "Entry-level start possible",
        ],
        honest_advice=(
            "Research specific company requirements. Network actively. "
            "Build portfolio demonstrating relevant skills."
        ),
        realistic_roles=[target_role, f"Junior {target_role}"],
    )


class MarketRealityUnit(CapabilityUnit):
    """Offline table first; the model is only asked about unknown roles."""

    name = "market_reality"
    system_prompt = MARKET_REALITY_SYSTEM_PROMPT
    preferred_provider = "gemini"

    def __init__(self, market_data: Optional[MarketDataService] = None):
        self._market_data = market_data

    @property
    def market_data(self) -> MarketDataService:
        if self._market_data is None:
            self._market_data = get_market_service()
        return self._market_data

    async def execute(
        self,
        bag: Mapping[str, Any],
        context: RunContext,
        gateway: Optional[ProviderGateway] = None,
    ) -> UnitOutput:
        started = time.perf_counter()

        target_role = target_role_from(bag, context)
        if not target_role:
            return self.failure("Target role is required for market analysis", started)

        raw_profile = bag.get("user_profile")
        profile = self.validate(UserProfile, raw_profile) if raw_profile else None

        offline = self.market_data.find_role(target_role)
        if offline is not None:
            logger.debug(f"Market data for '{target_role}' served from offline table")
            return self.success(customize_for_user(offline, profile), started)

        prompt = (
            "Analyze the Indian job market for this role:\n\n"
            f"ROLE: {target_role}\n"
            f"USER EXPERIENCE: {profile.experience_years if profile else 'unknown'} years\n"
            f"USER TYPE: {profile.user_type if profile else 'unknown'}\n"
            f"CURRENT ROLE: {(profile.current_role if profile else None) or 'Not specified'}\n\n"
            "Provide realistic market intelligence. Be honest about challenges."
        )
        parsed, response = await self.generate(gateway, prompt, max_tokens=1500, json_mode=True)

        market = self.validate(MarketReality, parsed)
        if market is None:
            logger.info(f"Using generic market response for {target_role}")
            return self.success(
                generic_market(target_role), started, response,
                origin=OutputOrigin.APPROXIMATED,
            )
        return self.success(market, started, response, origin=OutputOrigin.GENERATED)
