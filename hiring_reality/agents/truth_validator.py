"""Truth validator unit - detects exaggeration and blocks fake metrics."""

import logging
import re
import time
from typing import Any, List, Mapping, Optional

from ..models.resume import ExperienceEntry, ResumeData
from ..models.schemas import TruthIssue, TruthValidation
from ..models.state import OutputOrigin, RunContext, UnitOutput
from ..services.gateway import ProviderGateway
from .base import CapabilityUnit, resume_from_bag, text_input

logger = logging.getLogger(__name__)


TRUTH_VALIDATOR_SYSTEM_PROMPT = """You detect resume exaggeration and BLOCK fake metrics.

Red flags to detect:
1. Impossible metrics: "Increased revenue by 500%" (fresher role)
2. Vague superlatives: "Revolutionized", "Pioneered" (without proof)
3. Inconsistent claims: "Led team of 20" (6 months experience)
4. Buzzword stuffing: "Synergized cross-functional stakeholders to leverage..."
5. Unrealistic impact: "Saved company $10M" (junior developer)
6. Technology overclaiming: listing 30+ technologies as "expert"

Output JSON:
{
  "issues": [
    {
      "text": "specific problematic phrase",
      "reason": "why it's likely false",
      "suggestion": "honest alternative",
      "severity": "low|medium|high"
    }
  ],
  "overallTruthScore": "high|medium|low",
  "action": "approve|flag|block",
  "blockedPhrases": ["phrase1"],
  "flaggedPhrases": ["phrase2"]
}

Actions:
- approve: content looks honest
- flag: some concerns, show a warning
- block: serious issues, don't allow export until fixed"""

LLM_REVIEW_MIN_CHARS = 100

BUZZWORDS = [
    "synergized", "leveraged", "revolutionized", "spearheaded",
    "paradigm shift", "thought leader", "game-changer", "disruptive",
    "cutting-edge", "best-in-class", "world-class", "industry-leading",
]

UNREALISTIC_PATTERNS = [
    (re.compile(r"(\d{3,})%\s*(increase|improvement|growth)", re.IGNORECASE),
     "Percentage seems unrealistically high"),
    (re.compile(r"\$\s*\d{7,}"),
     "Dollar amount seems unrealistic for this role level"),
    (re.compile(r"\d{2,}\s*million", re.IGNORECASE),
     "Million-dollar claims need strong context"),
    (re.compile(r"100%\s*(of|improvement|increase)", re.IGNORECASE),
     "100% claims are often exaggerated"),
]

VAGUE_SUPERLATIVES = [
    "best", "top", "leading", "premier", "unparalleled", "unmatched",
    "pioneered", "invented", "created from scratch", "single-handedly",
]

_JUNIOR_TITLE = re.compile(r"intern|junior|associate|fresher|trainee", re.IGNORECASE)
_LARGE_TEAM_CLAIM = re.compile(r"led\s*(a\s*)?team\s*of\s*\d{2,}", re.IGNORECASE)


def _mentions(text: str, phrase: str) -> bool:
    return re.search(rf"\b{re.escape(phrase)}\b", text) is not None


def _verdict(issues: List[TruthIssue], blocked: List[str], flagged: List[str]) -> TruthValidation:
    if blocked:
        action, score = "block", "low"
    elif flagged or issues:
        action, score = "flag", "medium"
    else:
        action, score = "approve", "high"
    return TruthValidation(
        issues=issues,
        overall_truth_score=score,
        action=action,
        blocked_phrases=blocked,
        flagged_phrases=flagged,
    )


def quick_truth_check(text: str, role: Optional[ExperienceEntry] = None) -> TruthValidation:
    """Rule-based exaggeration check of one piece of text.

    Args:
        text: Bullet, summary or description to check
        role: The role a bullet belongs to, for seniority consistency checks

    Returns:
        TruthValidation; unrealistic metrics block, buzzwords flag
    """
    issues: List[TruthIssue] = []
    blocked: List[str] = []
    flagged: List[str] = []
    if not text:
        return _verdict(issues, blocked, flagged)

    lowered = text.lower()

    for word in BUZZWORDS:
        if word in lowered:
            issues.append(TruthIssue(
                text=word,
                reason="Buzzword that adds no value - recruiters see through this",
                suggestion="Use specific, concrete language instead",
                severity="medium",
            ))
            flagged.append(word)

    for pattern, reason in UNREALISTIC_PATTERNS:
        match = pattern.search(text)
        if match:
            issues.append(TruthIssue(
                text=match.group(0),
                reason=reason,
                suggestion='Use more conservative, verifiable numbers or add "approximately"',
                severity="high",
            ))
            blocked.append(match.group(0))

    hedged = "among" in lowered or "one of" in lowered
    if not hedged:
        for word in VAGUE_SUPERLATIVES:
            if _mentions(lowered, word):
                issues.append(TruthIssue(
                    text=word,
                    reason="Superlative claim without evidence",
                    suggestion="Replace with specific achievement or add context",
                    severity="low",
                ))

    if role is not None and _JUNIOR_TITLE.search(role.position):
        match = _LARGE_TEAM_CLAIM.search(text)
        if match:
            issues.append(TruthIssue(
                text=match.group(0),
                reason="Junior role claiming to lead large team - seems inconsistent",
                suggestion='Clarify your actual role - perhaps "collaborated with" or "contributed to"',
                severity="medium",
            ))

    return _verdict(issues, blocked, flagged)


def validate_resume(resume: ResumeData) -> TruthValidation:
    """Aggregate the quick check over summary, bullets and project descriptions."""
    issues: List[TruthIssue] = list(quick_truth_check(resume.summary).issues)
    for entry in resume.experience:
        for bullet in entry.highlights:
            issues.extend(quick_truth_check(bullet, entry).issues)
    for project in resume.projects:
        issues.extend(quick_truth_check(project.description).issues)

    blocked = [i.text for i in issues if i.severity == "high"]
    flagged = [i.text for i in issues if i.severity == "medium"]
    if blocked:
        action, score = "block", "low"
    elif flagged:
        action, score = "flag", "medium"
    else:
        action, score = "approve", "high"

    return TruthValidation(
        issues=issues,
        overall_truth_score=score,
        action=action,
        blocked_phrases=blocked,
        flagged_phrases=flagged,
    )


class TruthValidatorUnit(CapabilityUnit):
    """Validates a single ``text`` when one is given, else the whole resume."""

    name = "truth_validator"
    system_prompt = TRUTH_VALIDATOR_SYSTEM_PROMPT
    preferred_provider = "gemini"

    async def execute(
        self,
        bag: Mapping[str, Any],
        context: RunContext,
        gateway: Optional[ProviderGateway] = None,
    ) -> UnitOutput:
        text = text_input(bag, "text")
        if text:
            return await self._validate_text(text, gateway)

        started = time.perf_counter()
        resume = resume_from_bag(bag)
        if resume is None:
            return self.failure("No text or resume data to validate", started)

        validation = validate_resume(resume)
        if validation.action != "approve":
            logger.info(
                f"Truth check: {validation.action} "
                f"({len(validation.blocked_phrases)} blocked, {len(validation.flagged_phrases)} flagged)"
            )
        return self.success(validation, started)

    async def _validate_text(self, text: str, gateway: Optional[ProviderGateway]) -> UnitOutput:
        started = time.perf_counter()

        quick = quick_truth_check(text)
        if quick.issues or len(text) <= LLM_REVIEW_MIN_CHARS:
            return self.success(quick, started)

        parsed, response = await self.generate(
            gateway,
            f'Analyze this resume text for exaggeration or fake claims:\n\n"{text}"',
            max_tokens=500,
            json_mode=True,
        )
        validation = self.validate(TruthValidation, parsed)
        if validation is None:
            return self.success(quick, started, response, origin=OutputOrigin.APPROXIMATED)
        return self.success(validation, started, response, origin=OutputOrigin.GENERATED)
