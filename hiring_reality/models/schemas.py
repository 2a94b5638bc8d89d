"""Output schemas for the supporting capability units.

LLM responses are validated against these; the prompts ask for camelCase
keys, so every record accepts both spellings.
"""

from typing import List, Literal, Optional

from pydantic import Field, field_validator

from .resume import _Record, _as_text_list


UserType = Literal["fresher", "1-3yrs", "3-5yrs", "switcher"]

SECTION_ORDER_BY_TYPE = {
    "fresher": ["Education", "Projects", "Skills", "Experience", "Achievements"],
    "1-3yrs": ["Skills", "Experience", "Projects", "Education", "Achievements"],
    "3-5yrs": ["Experience", "Skills", "Projects", "Education", "Achievements"],
    "switcher": ["Summary", "Transferable Skills", "Experience", "Education", "Projects"],
}


class SwitcherContext(_Record):
    from_domain: str = ""
    to_domain: str = ""
    transferable_skills: List[str] = Field(default_factory=list)


class UserProfile(_Record):
    """Who the candidate is, as far as hiring filters are concerned."""
    user_type: UserType
    experience_years: float = Field(default=0.0, ge=0.0)
    current_role: Optional[str] = None
    target_role: str = ""
    target_market: str = "india"
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    signals: List[str] = Field(default_factory=list)
    market_challenges: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    is_switcher: bool = False
    switcher_context: Optional[SwitcherContext] = None

    @field_validator("signals", "market_challenges", "strengths", mode="before")
    @classmethod
    def _lists(cls, value):
        return _as_text_list(value)


class SectionPriority(_Record):
    user_type: UserType
    scan_order: List[str]
    reasoning: str
    locked: bool = True


class TypicalRequirements(_Record):
    years_experience: str = ""
    education: List[str] = Field(default_factory=list)
    must_have_skills: List[str] = Field(default_factory=list)
    nice_to_have_skills: List[str] = Field(default_factory=list)


class FresherReality(_Record):
    is_hiring: bool = True
    competition_level: Literal["brutal", "high", "medium", "low"] = "high"
    alternative_titles: List[str] = Field(default_factory=list)
    expected_salary: str = ""


class MarketReality(_Record):
    """Honest demand/saturation picture for one role in one market."""
    role_title: str
    demand_level: Literal["high", "medium", "low"] = "medium"
    saturation: Literal["oversaturated", "balanced", "undersupplied"] = "balanced"
    typical_requirements: TypicalRequirements = Field(default_factory=TypicalRequirements)
    fresher_reality: FresherReality = Field(default_factory=FresherReality)
    switcher_challenges: List[str] = Field(default_factory=list)
    honest_advice: str = ""
    realistic_roles: List[str] = Field(default_factory=list)


class TruthIssue(_Record):
    text: str
    reason: str
    suggestion: str = ""
    severity: Literal["low", "medium", "high"] = "low"


class TruthValidation(_Record):
    issues: List[TruthIssue] = Field(default_factory=list)
    overall_truth_score: Literal["high", "medium", "low"] = "high"
    action: Literal["approve", "flag", "block"] = "approve"
    blocked_phrases: List[str] = Field(default_factory=list)
    flagged_phrases: List[str] = Field(default_factory=list)


RewriteContext = Literal["bullet", "summary", "project"]


class RewriteOutput(_Record):
    original: str = ""
    rewritten: str
    changes: List[str] = Field(default_factory=list)
    keywords_added: List[str] = Field(default_factory=list)
    metrics_added: bool = False
    truth_check: Literal["passed", "flagged"] = "passed"

    @field_validator("changes", "keywords_added", mode="before")
    @classmethod
    def _lists(cls, value):
        return _as_text_list(value)


class SemanticMatch(_Record):
    original: str
    matched: str


class KeywordMatchResult(_Record):
    exact_matches: List[str] = Field(default_factory=list)
    semantic_matches: List[SemanticMatch] = Field(default_factory=list)
    inferred_skills: List[str] = Field(default_factory=list)
    match_score: int = 0
    total_keywords: int = 0


class HighlightedChange(_Record):
    type: Literal["exact", "semantic", "inferred"]
    text: str
    keyword: Optional[str] = None


class PremiumRewriteOutput(RewriteOutput):
    """Full rewrite plus the keyword coverage it achieved."""
    skills_inferred: List[str] = Field(default_factory=list)
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    original_too_vague: bool = False
    highlighted_changes: List[HighlightedChange] = Field(default_factory=list)

    @field_validator("skills_inferred", mode="before")
    @classmethod
    def _skills(cls, value):
        return _as_text_list(value)
