"""Reality assessment records: five panels of itemized findings, no score."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


PanelStatus = Literal["strong", "warning", "blocker"]
ItemStatus = Literal["ok", "warning", "blocker"]
ItemImpact = Literal["pass_filter", "hurts_shortlist", "blocks_interview"]
ShortlistChance = Literal["high", "medium", "low"]


PANEL_EDUCATION_NOTES = {
    "role_alignment": (
        "Recruiters spend 2-3 seconds checking if your title matches the role. "
        "A mismatch means instant rejection in most ATS systems."
    ),
    "skill_coverage": (
        "ATS filters scan for exact keyword matches. If the JD says 'React.js' and "
        "you write 'React framework', you might be filtered out automatically."
    ),
    "context_quality": (
        "Hiring managers skip resumes that just list skills. They want to see "
        "skills USED in real work with measurable outcomes."
    ),
    "experience_weight": (
        "Recent, relevant experience gets 3x more attention than old roles. "
        "A 2-year-old project matters more than a 5-year-old job."
    ),
    "structure_readability": (
        "Recruiters scan resumes for 6-8 seconds. Dense text, wrong section "
        "order, or poor formatting = instant skip."
    ),
}


class RealityItem(BaseModel):
    """One explainable finding inside a panel."""
    status: ItemStatus
    label: str
    explanation: str
    impact: ItemImpact
    fix_suggestion: Optional[str] = None


class RealityPanel(BaseModel):
    panel_id: str
    title: str
    status: PanelStatus
    items: List[RealityItem] = Field(default_factory=list)
    education_note: str = ""


class RealityPanels(BaseModel):
    role_alignment: RealityPanel
    skill_coverage: RealityPanel
    context_quality: RealityPanel
    experience_weight: RealityPanel
    structure_readability: RealityPanel

    def all(self) -> List[RealityPanel]:
        return [
            self.role_alignment,
            self.skill_coverage,
            self.context_quality,
            self.experience_weight,
            self.structure_readability,
        ]


class OverallAssessment(BaseModel):
    """Derived from the panels; never edited on its own."""
    likely_to_pass_ats: bool
    likely_to_get_shortlisted: bool
    shortlist_chance: ShortlistChance
    major_blockers: List[str] = Field(default_factory=list)
    quick_wins: List[str] = Field(default_factory=list)
    honest_feedback: str
    realistic_roles: List[str] = Field(default_factory=list)


class RealityAnalysis(BaseModel):
    panels: RealityPanels
    overall_assessment: OverallAssessment
    generated_at: datetime
    analysis_version: str = "1.0.0"
