"""Work-history date math and experience-level classification.

Every "how long ago" computation takes an explicit ``now`` so results are
reproducible. A month is 30 days throughout, which is what recruiters'
back-of-the-envelope arithmetic (and the panels' thresholds) assume.
"""

import re
from datetime import datetime
from typing import Iterable, List, Optional

from ..models.resume import ExperienceEntry, PRESENT_MARKERS


SECONDS_PER_MONTH = 60 * 60 * 24 * 30

SENIORITY_LEVELS = ["fresher", "junior", "mid", "senior", "lead"]

# Title keywords from most junior to most senior; unmatched titles sit at "mid"
TITLE_LEVEL_KEYWORDS = [
    "intern", "junior", "associate", "mid", "senior",
    "lead", "principal", "director", "vp",
]
DEFAULT_TITLE_LEVEL = 3

SENIOR_TITLE_PATTERN = re.compile(r"senior|sr\.|lead|principal|staff|architect")

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m",
    "%Y/%m",
    "%m/%Y",
    "%m-%Y",
    "%b %Y",
    "%B %Y",
    "%b, %Y",
    "%B, %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%Y",
)

_DOMAIN_PATTERNS = [
    ("tech", re.compile(
        r"engineer|developer|programmer|software|data|ml|ai|devops|sre|qa|frontend|backend|fullstack"
    )),
    ("sales", re.compile(r"sales|business development|account")),
    ("marketing", re.compile(r"market|brand|seo|content|social media")),
    ("hr", re.compile(r"hr|human resource|recruiter|talent")),
    ("finance", re.compile(r"finance|account|treasury|analyst")),
    ("product", re.compile(r"product|pm|product manager")),
    ("design", re.compile(r"design|ux|ui|creative|graphic")),
]


def _naive(value: datetime) -> datetime:
    return value.replace(tzinfo=None) if value.tzinfo else value


def parse_date(value: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Parse a resume date such as "2022-01", "01/2022", "Jan 2022" or "2022".

    "Present" (and friends) resolve to ``now`` when it is given, else None.
    Unparseable input returns None.
    """
    text = (value or "").strip()
    if text.lower() in PRESENT_MARKERS:
        return _naive(now) if (now is not None and text) else None

    text = re.sub(r"\bSept\b", "Sep", text)
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def months_between(start: datetime, end: datetime) -> float:
    return (_naive(end) - _naive(start)).total_seconds() / SECONDS_PER_MONTH


def role_end(entry: ExperienceEntry, now: datetime) -> Optional[datetime]:
    if entry.is_current:
        return _naive(now)
    return parse_date(entry.end_date, now)


def role_months(entry: ExperienceEntry, now: datetime) -> Optional[float]:
    """Duration of one role in months, or None when a date is unreadable."""
    start = parse_date(entry.start_date, now)
    end = role_end(entry, now)
    if start is None or end is None:
        return None
    return months_between(start, end)


def total_years(experience: Iterable[ExperienceEntry], now: datetime) -> float:
    """Sum of role durations; roles with unreadable dates count as zero."""
    months = 0.0
    for entry in experience:
        duration = role_months(entry, now)
        if duration is not None:
            months += max(0.0, duration)
    return months / 12


def detect_seniority(experience: List[ExperienceEntry], now: datetime) -> str:
    years = total_years(experience, now)
    titles = [entry.position.lower() for entry in experience]
    if years >= 5 or any(SENIOR_TITLE_PATTERN.search(t) for t in titles):
        return "senior"
    if years >= 2:
        return "mid"
    if years >= 0.5:
        return "junior"
    return "fresher"


def seniority_gap(user_level: str, target_level: str) -> int:
    levels = SENIORITY_LEVELS
    user_idx = levels.index(user_level) if user_level in levels else levels.index("mid")
    target_idx = levels.index(target_level) if target_level in levels else levels.index("mid")
    return abs(user_idx - target_idx)


def title_level(title: str) -> int:
    lowered = title.lower()
    for idx, keyword in enumerate(TITLE_LEVEL_KEYWORDS):
        if keyword in lowered:
            return idx
    return DEFAULT_TITLE_LEVEL


def has_progression(experience: List[ExperienceEntry]) -> bool:
    """True when the latest role is at least as senior as the earliest one.

    Experience is ordered most recent first.
    """
    if len(experience) < 2:
        return False
    return title_level(experience[0].position) >= title_level(experience[-1].position)


def parse_years(text: str) -> int:
    """First integer in a requirement like "3-5 years"; 0 when absent."""
    match = re.search(r"(\d+)", text or "")
    return int(match.group(1)) if match else 0


def detect_domain(role: str) -> str:
    lowered = (role or "").lower()
    for domain, pattern in _DOMAIN_PATTERNS:
        if pattern.search(lowered):
            return domain
    return "general"


def is_career_switch(current_role: str, target_role: str) -> bool:
    if not current_role or not target_role:
        return False
    current, target = detect_domain(current_role), detect_domain(target_role)
    return current != target and "general" not in (current, target)


def classify_user_type(
    experience: List[ExperienceEntry],
    target_role: str,
    now: datetime,
) -> str:
    """Bucket a candidate as fresher, 1-3yrs, 3-5yrs or switcher.

    Five or more years still lands in 3-5yrs; there is no senior bucket.
    """
    current_role = experience[0].position if experience else ""
    if is_career_switch(current_role, target_role):
        return "switcher"

    years = total_years(experience, now)
    if years < 1:
        return "fresher"
    if years < 3:
        return "1-3yrs"
    return "3-5yrs"
