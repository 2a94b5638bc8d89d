"""Reality Assessment Engine.

Evaluates a resume against (optional) job requirements across five
independent panels and derives an overall shortlist judgment from them.
There is deliberately no numeric score: every finding is an itemized,
explainable ``RealityItem``.

All functions here are pure. Time only enters through the ``now`` argument,
so identical inputs always produce identical output.
"""

import logging
import re
from datetime import datetime
from typing import List, Optional

from ..models.reality import (
    OverallAssessment,
    PANEL_EDUCATION_NOTES,
    RealityAnalysis,
    RealityItem,
    RealityPanel,
    RealityPanels,
)
from ..models.resume import JDAnalysis, ResumeData
from .experience import (
    detect_seniority,
    has_progression,
    months_between,
    parse_date,
    parse_years,
    role_months,
    seniority_gap,
    total_years,
)

logger = logging.getLogger(__name__)


ANALYSIS_VERSION = "1.0.0"

METRIC_PATTERN = re.compile(
    r"\d+%|\d+x|\$\d+|₹\d+|\d+\s*(users|customers|requests|transactions)",
    re.IGNORECASE,
)

ACTION_VERBS = [
    "built", "developed", "led", "created", "implemented", "designed",
    "managed", "improved", "reduced", "increased", "launched", "delivered",
    "architected", "optimized",
]

GENERIC_PHRASES = [
    "worked on", "responsible for", "helped with", "assisted",
    "involved in", "participated",
]


def panel_status(items: List[RealityItem]) -> str:
    """Any blocker wins; two or more warnings make a warning panel."""
    if any(item.status == "blocker" for item in items):
        return "blocker"
    if sum(1 for item in items if item.status == "warning") >= 2:
        return "warning"
    return "strong"


def _panel(panel_id: str, title: str, items: List[RealityItem], status: Optional[str] = None) -> RealityPanel:
    return RealityPanel(
        panel_id=panel_id,
        title=title,
        status=status or panel_status(items),
        items=items,
        education_note=PANEL_EDUCATION_NOTES[panel_id],
    )


def _word_count(text: str) -> int:
    return len(text.split())


def title_match(current: str, target: str) -> float:
    """Share of title words that match, over the longer title.

    A current word matches when it contains, or is contained by, any target
    word.
    """
    current_words = current.lower().split()
    target_words = target.lower().split()
    if not current_words or not target_words:
        return 0.0

    matching = [
        w for w in current_words
        if any(t in w or w in t for t in target_words)
    ]
    return len(matching) / max(len(current_words), len(target_words))


# === Panel 1: Role Alignment ===

def evaluate_role_alignment(
    resume: ResumeData,
    jd: Optional[JDAnalysis],
    target_role: str,
    now: datetime,
) -> RealityPanel:
    items: List[RealityItem] = []
    current_role = resume.current_role

    match = title_match(current_role, target_role)
    if match >= 0.7:
        items.append(RealityItem(
            status="ok",
            label="Title Match",
            explanation=f'Your current role "{current_role}" aligns well with target "{target_role}"',
            impact="pass_filter",
        ))
    elif match >= 0.4:
        items.append(RealityItem(
            status="warning",
            label="Partial Title Match",
            explanation=(
                f'"{current_role}" partially matches "{target_role}" - '
                "consider highlighting relevant aspects"
            ),
            impact="hurts_shortlist",
            fix_suggestion=f'Update your summary to bridge "{current_role}" to "{target_role}"',
        ))
    else:
        items.append(RealityItem(
            status="blocker",
            label="Title Mismatch",
            explanation=(
                f'"{current_role}" doesn\'t match "{target_role}" - '
                "recruiters may filter you out"
            ),
            impact="blocks_interview",
            fix_suggestion="Consider roles that bridge your current experience to your target",
        ))

    user_level = detect_seniority(resume.experience, now)
    target_level = jd.seniority_level if jd else "mid"
    gap = seniority_gap(user_level, target_level)
    if gap == 0:
        items.append(RealityItem(
            status="ok",
            label="Seniority Match",
            explanation=f"Your experience level matches the {target_level} requirement",
            impact="pass_filter",
        ))
    elif gap == 1:
        items.append(RealityItem(
            status="warning",
            label="Seniority Gap",
            explanation=f"You're {user_level} level, job wants {target_level} - might be a stretch",
            impact="hurts_shortlist",
            fix_suggestion="Emphasize leadership/ownership in your bullets",
        ))
    else:
        items.append(RealityItem(
            status="blocker",
            label="Seniority Mismatch",
            explanation=(
                f"You're {user_level} level applying for {target_level} role - significant gap"
            ),
            impact="blocks_interview",
            fix_suggestion="Consider stepping-stone roles first",
        ))

    if len(resume.experience) >= 2 and has_progression(resume.experience):
        items.append(RealityItem(
            status="ok",
            label="Career Progression",
            explanation="Your career shows upward trajectory - positive signal",
            impact="pass_filter",
        ))

    return _panel("role_alignment", "Role Alignment", items)


# === Panel 2: Skill Coverage ===

def required_skills(jd: JDAnalysis) -> List[str]:
    return jd.requirements.must_have or jd.ats_keywords[:8]


def preferred_skills(jd: JDAnalysis) -> List[str]:
    return jd.requirements.preferred or jd.ats_keywords[8:15]


def noise_skills(skills: List[str], required: List[str], preferred: List[str]) -> List[str]:
    """Listed skills unrelated (either-way substring) to anything the JD asks for."""
    relevant = [s.lower() for s in required + preferred]
    return [
        skill for skill in skills
        if not any(r in skill.lower() or skill.lower() in r for r in relevant)
    ]


def evaluate_skill_coverage(resume: ResumeData, jd: Optional[JDAnalysis]) -> RealityPanel:
    items: List[RealityItem] = []

    if jd is None:
        items.append(RealityItem(
            status="warning",
            label="No JD to Compare",
            explanation="Without a job description, we can only check general skill quality",
            impact="hurts_shortlist",
            fix_suggestion="Add a job description for better skill matching analysis",
        ))
        # A single warning would roll up to strong; an unchecked panel is not strong
        return _panel("skill_coverage", "Skill Coverage", items, status="warning")

    resume_skills = {s.lower() for s in resume.skills}
    bullet_text = " ".join(resume.all_bullets).lower()
    required = required_skills(jd)
    preferred = preferred_skills(jd)

    matched = [s for s in required if s.lower() in resume_skills or s.lower() in bullet_text]
    missing = [s for s in required if s not in matched]

    if matched:
        more = "..." if len(matched) > 5 else ""
        items.append(RealityItem(
            status="ok",
            label=f"Required Skills Found ({len(matched)}/{len(required)})",
            explanation=f"Found: {', '.join(matched[:5])}{more}",
            impact="pass_filter",
        ))

    if missing:
        blocker = len(missing) > len(required) / 2
        items.append(RealityItem(
            status="blocker" if blocker else "warning",
            label=f"Missing Required Skills ({len(missing)})",
            explanation=f"Missing: {', '.join(missing[:4])}",
            impact="blocks_interview" if blocker else "hurts_shortlist",
            fix_suggestion=(
                f"Add these skills to your resume if you have them: {', '.join(missing[:3])}"
            ),
        ))

    noise = noise_skills(resume.skills, required, preferred)
    if len(noise) > 3:
        items.append(RealityItem(
            status="warning",
            label=f"Noise Skills ({len(noise)})",
            explanation=f"Skills not relevant to this role: {', '.join(noise[:3])}",
            impact="hurts_shortlist",
            fix_suggestion="Remove irrelevant skills to keep focus on what matters for this role",
        ))

    return _panel("skill_coverage", "Skill Coverage", items)


# === Panel 3: Context Quality ===

def evaluate_context_quality(resume: ResumeData) -> RealityPanel:
    items: List[RealityItem] = []
    bullets = resume.all_bullets
    total = len(bullets)

    with_metrics = sum(1 for b in bullets if METRIC_PATTERN.search(b))
    with_verbs = sum(1 for b in bullets if b.lower().startswith(tuple(ACTION_VERBS)))
    generic = sum(1 for b in bullets if any(p in b.lower() for p in GENERIC_PHRASES))

    metrics_ratio = with_metrics / total if total else 0.0
    verb_ratio = with_verbs / total if total else 0.0
    generic_ratio = generic / total if total else 0.0

    if metrics_ratio >= 0.5:
        items.append(RealityItem(
            status="ok",
            label="Strong Metrics",
            explanation=f"{round(metrics_ratio * 100)}% of bullets have quantified impact - excellent",
            impact="pass_filter",
        ))
    elif metrics_ratio >= 0.2:
        items.append(RealityItem(
            status="warning",
            label="Limited Metrics",
            explanation=(
                f"Only {round(metrics_ratio * 100)}% of bullets have numbers - add more impact data"
            ),
            impact="hurts_shortlist",
            fix_suggestion="Add metrics like team size, % improvement, users served, or time saved",
        ))
    else:
        items.append(RealityItem(
            status="blocker",
            label="No Metrics",
            explanation="Almost no bullets have quantified impact - major red flag",
            impact="blocks_interview",
            fix_suggestion="Every bullet should answer: What was the scale? What improved? By how much?",
        ))

    if verb_ratio >= 0.7:
        items.append(RealityItem(
            status="ok",
            label="Strong Action Verbs",
            explanation="Bullets start with impactful action verbs - professional format",
            impact="pass_filter",
        ))
    elif verb_ratio >= 0.4:
        items.append(RealityItem(
            status="warning",
            label="Inconsistent Verbs",
            explanation="Some bullets lack strong action verbs - weakens impact",
            impact="hurts_shortlist",
            fix_suggestion="Start each bullet with: Built, Developed, Led, Created, Implemented",
        ))

    if generic_ratio > 0.3:
        items.append(RealityItem(
            status="blocker",
            label="Generic Language",
            explanation=(
                f"{round(generic_ratio * 100)}% of bullets use vague phrases like "
                '"worked on" or "responsible for"'
            ),
            impact="blocks_interview",
            fix_suggestion='Replace "Worked on X" with "Built X that achieved Y"',
        ))

    skills = resume.skills
    lowered_bullets = [b.lower() for b in bullets]
    in_context = sum(1 for s in skills if any(s.lower() in b for b in lowered_bullets))
    context_ratio = in_context / len(skills) if skills else 0.0
    if context_ratio < 0.4 and len(skills) > 3:
        items.append(RealityItem(
            status="warning",
            label="Skills Without Context",
            explanation=(
                f"{len(skills) - in_context} skills are listed but never mentioned in your experience"
            ),
            impact="hurts_shortlist",
            fix_suggestion="Add bullets showing HOW you used each listed skill",
        ))

    return _panel("context_quality", "Context Quality", items)


# === Panel 4: Experience Weight ===

def evaluate_experience_weight(
    resume: ResumeData,
    jd: Optional[JDAnalysis],
    now: datetime,
) -> RealityPanel:
    items: List[RealityItem] = []
    experience = resume.experience

    if not experience:
        items.append(RealityItem(
            status="blocker",
            label="No Experience",
            explanation="No work experience listed - focus on projects instead",
            impact="blocks_interview",
            fix_suggestion="Add internships, freelance work, or significant projects",
        ))
        return _panel("experience_weight", "Experience Weight", items, status="blocker")

    latest = experience[0]
    if latest.is_current:
        items.append(RealityItem(
            status="ok",
            label="Currently Employed",
            explanation="Active employment is a positive signal to recruiters",
            impact="pass_filter",
        ))
    else:
        ended = parse_date(latest.end_date, now)
        gap = months_between(ended, now) if ended else None
        if gap is not None and gap > 6:
            items.append(RealityItem(
                status="warning",
                label="Employment Gap",
                explanation=f"{round(gap)} months since last role - be ready to explain",
                impact="hurts_shortlist",
                fix_suggestion="Add recent projects, certifications, or freelance work to fill the gap",
            ))

    short_stints = 0
    for entry in experience:
        months = role_months(entry, now)
        if months is not None and months < 12:
            short_stints += 1
    if short_stints >= 2 and len(experience) >= 3:
        items.append(RealityItem(
            status="warning",
            label="Job Hopping Pattern",
            explanation=f"{short_stints} roles under 1 year - recruiters may question commitment",
            impact="hurts_shortlist",
            fix_suggestion="Prepare to explain transitions positively in interviews",
        ))

    required_years = parse_years(jd.requirements.experience) if jd else 0
    actual_years = total_years(experience, now)
    if required_years > 0:
        if actual_years >= required_years:
            items.append(RealityItem(
                status="ok",
                label="Experience Requirement Met",
                explanation=(
                    f"You have {actual_years:.1f} years, JD requires {required_years}+ years"
                ),
                impact="pass_filter",
            ))
        elif actual_years >= required_years * 0.7:
            items.append(RealityItem(
                status="warning",
                label="Slightly Under Experience",
                explanation=(
                    f"You have {actual_years:.1f} years, JD wants {required_years}+ - might work"
                ),
                impact="hurts_shortlist",
                fix_suggestion="Emphasize quality and impact over quantity of years",
            ))
        else:
            items.append(RealityItem(
                status="blocker",
                label="Experience Gap",
                explanation=(
                    f"You have {actual_years:.1f} years, JD requires {required_years}+ - "
                    "significant gap"
                ),
                impact="blocks_interview",
                fix_suggestion="Consider roles with lower experience requirements",
            ))

    return _panel("experience_weight", "Experience Weight", items)


# === Panel 5: Structure & Readability ===

def evaluate_structure(resume: ResumeData) -> RealityPanel:
    items: List[RealityItem] = []

    if resume.summary:
        words = _word_count(resume.summary)
        if 30 <= words <= 80:
            items.append(RealityItem(
                status="ok",
                label="Summary Length",
                explanation=f"{words} words - optimal for recruiter scanning",
                impact="pass_filter",
            ))
        elif words > 120:
            items.append(RealityItem(
                status="warning",
                label="Summary Too Long",
                explanation=f"{words} words - recruiters may skip. Aim for 50-80 words",
                impact="hurts_shortlist",
                fix_suggestion="Condense your summary to 2-3 impactful sentences",
            ))
        elif words < 20:
            items.append(RealityItem(
                status="warning",
                label="Summary Too Short",
                explanation=f"Only {words} words - add more context about your value",
                impact="hurts_shortlist",
                fix_suggestion="Expand to include: who you are, key skills, and what you seek",
            ))
    else:
        items.append(RealityItem(
            status="warning",
            label="No Summary",
            explanation="Missing professional summary - first thing recruiters read",
            impact="hurts_shortlist",
            fix_suggestion="Add a 2-3 sentence summary highlighting your value proposition",
        ))

    bullets = resume.all_bullets
    long_bullets = [b for b in bullets if _word_count(b) > 30]
    short_bullets = [b for b in bullets if _word_count(b) < 8]

    if len(long_bullets) > len(bullets) * 0.3:
        items.append(RealityItem(
            status="warning",
            label="Bullets Too Long",
            explanation=f"{len(long_bullets)} bullets exceed 30 words - hard to scan",
            impact="hurts_shortlist",
            fix_suggestion="Keep bullets to 15-25 words for optimal readability",
        ))
    if len(short_bullets) > len(bullets) * 0.4:
        items.append(RealityItem(
            status="warning",
            label="Bullets Too Short",
            explanation=f"{len(short_bullets)} bullets under 8 words - lack context",
            impact="hurts_shortlist",
            fix_suggestion="Expand short bullets with: action, method, and result",
        ))

    skill_count = len(resume.skills)
    if skill_count > 20:
        items.append(RealityItem(
            status="warning",
            label="Too Many Skills",
            explanation=f"{skill_count} skills listed - dilutes focus and looks like stuffing",
            impact="hurts_shortlist",
            fix_suggestion="Keep top 10-15 most relevant skills for this role",
        ))
    elif 5 <= skill_count <= 15:
        items.append(RealityItem(
            status="ok",
            label="Focused Skills Section",
            explanation=f"{skill_count} skills - good balance of breadth and focus",
            impact="pass_filter",
        ))

    has_email, has_phone = bool(resume.basics.email), bool(resume.basics.phone)
    if has_email and has_phone:
        items.append(RealityItem(
            status="ok",
            label="Contact Info Complete",
            explanation="Email and phone present - recruiters can reach you",
            impact="pass_filter",
        ))
    else:
        missing = [name for name, present in (("email", has_email), ("phone", has_phone)) if not present]
        items.append(RealityItem(
            status="blocker",
            label="Missing Contact Info",
            explanation=f"Missing: {', '.join(missing)}",
            impact="blocks_interview",
            fix_suggestion="Add email and phone number - recruiters need to contact you",
        ))

    return _panel("structure_readability", "Structure & Readability", items)


# === Overall assessment ===

def suggest_realistic_roles(panels: RealityPanels, target_role: str) -> List[str]:
    if not target_role:
        return []

    roles: List[str] = []
    lowered = target_role.lower()
    if panels.role_alignment.status != "blocker":
        roles.append(target_role)
    if "senior" in lowered and panels.experience_weight.status == "blocker":
        roles.append(re.sub("senior", "", target_role, count=1, flags=re.IGNORECASE).strip())
    if "lead" in lowered and panels.role_alignment.status != "strong":
        roles.append(re.sub("lead", "Senior", target_role, count=1, flags=re.IGNORECASE).strip())
    if "engineer" in lowered:
        roles.append(re.sub("engineer", "Developer", target_role, count=1, flags=re.IGNORECASE))
    return roles[:3]


def overall_assessment(panels: RealityPanels, target_role: str) -> OverallAssessment:
    """Recompute the overall judgment from the five panels."""
    all_items = [item for panel in panels.all() for item in panel.items]
    blockers = [i for i in all_items if i.status == "blocker"]
    warnings = [i for i in all_items if i.status == "warning"]
    ok_items = [i for i in all_items if i.status == "ok"]

    if len(blockers) >= 2:
        chance = "low"
    elif len(blockers) == 1 or len(warnings) >= 4:
        chance = "medium"
    else:
        chance = "high"

    # Only keyword-filter blockers stop the ATS itself; other blockers hurt later
    likely_to_pass_ats = not any(
        b.impact == "blocks_interview" and ("Skill" in b.label or "Keyword" in b.label)
        for b in blockers
    )

    major_blockers = [b.label for b in blockers]
    quick_wins = [w.fix_suggestion for w in warnings if w.fix_suggestion][:3]

    if chance == "low":
        feedback = (
            f"This resume has {len(blockers)} critical issues that need fixing before applying. "
            f"Focus on: {', '.join(major_blockers[:2])}."
        )
    elif chance == "medium":
        feedback = (
            f"Your resume has potential but {len(warnings)} areas could hurt your chances. "
            f"Quick fixes: {'; '.join(quick_wins[:2])}."
        )
    else:
        feedback = (
            f"Strong resume! {len(ok_items)} factors working in your favor. "
            "Minor improvements could increase response rate."
        )

    return OverallAssessment(
        likely_to_pass_ats=likely_to_pass_ats,
        likely_to_get_shortlisted=chance != "low",
        shortlist_chance=chance,
        major_blockers=major_blockers,
        quick_wins=quick_wins,
        honest_feedback=feedback,
        realistic_roles=suggest_realistic_roles(panels, target_role),
    )


def assess(
    resume: ResumeData,
    jd: Optional[JDAnalysis],
    target_role: str,
    now: datetime,
) -> RealityAnalysis:
    """Run all five panels and the overall judgment.

    Args:
        resume: Normalized resume
        jd: Structured job requirements, or None when no JD was given
        target_role: Role the candidate is aiming for
        now: Reference instant for every "months since" computation

    Returns:
        RealityAnalysis stamped with ``now``
    """
    panels = RealityPanels(
        role_alignment=evaluate_role_alignment(resume, jd, target_role, now),
        skill_coverage=evaluate_skill_coverage(resume, jd),
        context_quality=evaluate_context_quality(resume),
        experience_weight=evaluate_experience_weight(resume, jd, now),
        structure_readability=evaluate_structure(resume),
    )
    overall = overall_assessment(panels, target_role)

    logger.debug(
        "Reality panels: "
        + ", ".join(f"{p.panel_id}={p.status}" for p in panels.all())
        + f" -> {overall.shortlist_chance}"
    )
    return RealityAnalysis(
        panels=panels,
        overall_assessment=overall,
        generated_at=now,
        analysis_version=ANALYSIS_VERSION,
    )
