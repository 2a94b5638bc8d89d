"""Canonical resume and job-description records.

Upstream parsers and LLMs hand us loosely shaped dictionaries: camelCase or
snake_case keys, ``role`` instead of ``position``, bullets under
``highlights`` or ``bullets``, skills as nested categories or a comma
separated string. All of that is resolved here, once, so the evaluators only
ever see one shape.
"""

from typing import Any, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


PRESENT_MARKERS = {"", "present", "current", "now", "ongoing"}


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value)


def _as_text_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [_as_text(v) for v in value if _as_text(v)]
    return []


class _Record(BaseModel):
    """Base for boundary records: accept camelCase or snake_case, drop extras."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Basics(_Record):
    full_name: str = Field(
        default="",
        validation_alias=AliasChoices("full_name", "fullName", "name"),
    )
    email: str = ""
    phone: str = ""
    location: str = ""
    linkedin: str = ""
    github: str = ""
    target_role: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _blank_strings(cls, value: Any) -> str:
        return _as_text(value)


class ExperienceEntry(_Record):
    id: str = ""
    company: str = Field(
        default="",
        validation_alias=AliasChoices("company", "organization", "employer"),
    )
    position: str = Field(
        default="",
        validation_alias=AliasChoices("position", "role", "title"),
    )
    start_date: str = Field(
        default="",
        validation_alias=AliasChoices("start_date", "startDate", "start"),
    )
    end_date: str = Field(
        default="",
        validation_alias=AliasChoices("end_date", "endDate", "end"),
    )
    highlights: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("highlights", "bullets", "description"),
    )

    @field_validator("id", "company", "position", "start_date", "end_date", mode="before")
    @classmethod
    def _blank_strings(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("highlights", mode="before")
    @classmethod
    def _bullets(cls, value: Any) -> List[str]:
        return _as_text_list(value)

    @property
    def is_current(self) -> bool:
        """True when the role has no end date or is marked as ongoing."""
        return self.end_date.lower() in PRESENT_MARKERS


class EducationEntry(_Record):
    id: str = ""
    institution: str = Field(
        default="",
        validation_alias=AliasChoices("institution", "school", "university"),
    )
    degree: str = ""
    field: str = Field(
        default="",
        validation_alias=AliasChoices("field", "major"),
    )
    graduation_date: str = Field(
        default="",
        validation_alias=AliasChoices(
            "graduation_date", "graduationDate", "year", "endDate"
        ),
    )

    @field_validator("*", mode="before")
    @classmethod
    def _blank_strings(cls, value: Any) -> str:
        return _as_text(value)


class ProjectEntry(_Record):
    id: str = ""
    name: str = Field(default="", validation_alias=AliasChoices("name", "title"))
    description: str = ""
    github_link: str = Field(
        default="",
        validation_alias=AliasChoices("github_link", "githubLink", "link", "url"),
    )

    @field_validator("*", mode="before")
    @classmethod
    def _blank_strings(cls, value: Any) -> str:
        return _as_text(value)


class Achievement(_Record):
    id: str = ""
    description: str = Field(
        default="",
        validation_alias=AliasChoices("description", "text"),
    )

    @field_validator("*", mode="before")
    @classmethod
    def _blank_strings(cls, value: Any) -> str:
        return _as_text(value)


class ResumeData(_Record):
    """The normalized resume every unit works with.

    Experience is ordered most recent first, as resumes are written.
    """
    basics: Basics = Field(default_factory=Basics)
    summary: str = Field(
        default="",
        validation_alias=AliasChoices("summary", "profile"),
    )
    experience: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    projects: List[ProjectEntry] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    achievements: List[Achievement] = Field(default_factory=list)

    @field_validator("basics", mode="before")
    @classmethod
    def _basics(cls, value: Any) -> Any:
        return value if value is not None else {}

    @field_validator("summary", mode="before")
    @classmethod
    def _summary(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("experience", "education", "projects", mode="before")
    @classmethod
    def _records(cls, value: Any) -> List[Any]:
        if not isinstance(value, (list, tuple)):
            return []
        return [v for v in value if isinstance(v, (dict, BaseModel))]

    @field_validator("achievements", mode="before")
    @classmethod
    def _achievements(cls, value: Any) -> List[Any]:
        if not isinstance(value, (list, tuple)):
            return []
        return [{"description": v} if isinstance(v, str) else v for v in value]

    @field_validator("skills", mode="before")
    @classmethod
    def _flatten_skills(cls, value: Any) -> List[str]:
        if isinstance(value, str):
            return [s.strip() for s in value.split(",") if s.strip()]
        if not isinstance(value, (list, tuple)):
            return []

        flat: List[str] = []
        for skill in value:
            if isinstance(skill, str):
                if skill.strip():
                    flat.append(skill.strip())
            elif isinstance(skill, dict):
                # Category blocks: {"name": "Languages", "items": [...]}
                items = skill.get("items") or skill.get("skills") or []
                flat.extend(_as_text_list(items))
        return flat

    @property
    def all_bullets(self) -> List[str]:
        return [b for exp in self.experience for b in exp.highlights]

    @property
    def current_role(self) -> str:
        return self.experience[0].position if self.experience else ""


SeniorityLevel = Literal["fresher", "junior", "mid", "senior", "lead"]


class JDRequirements(_Record):
    must_have: List[str] = Field(default_factory=list)
    preferred: List[str] = Field(default_factory=list)
    experience: str = ""
    education: List[str] = Field(default_factory=list)

    @field_validator("must_have", "preferred", "education", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[str]:
        return _as_text_list(value)

    @field_validator("experience", mode="before")
    @classmethod
    def _experience(cls, value: Any) -> str:
        return _as_text(value)


class JDAnalysis(_Record):
    """Structured requirements of a job description (extracted or generated)."""
    mode: Literal["extracted", "generated"] = "extracted"
    raw_jd: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("raw_jd", "rawJD", "rawJd"),
    )
    generated_jd: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("generated_jd", "generatedJD", "generatedJd"),
    )
    requirements: JDRequirements = Field(default_factory=JDRequirements)
    ats_keywords: List[str] = Field(default_factory=list)
    technical_skills: List[str] = Field(default_factory=list)
    soft_skills: List[str] = Field(default_factory=list)
    red_flags: List[str] = Field(default_factory=list)
    fresher_chance: Literal["high", "low", "none"] = "low"
    seniority_level: SeniorityLevel = "mid"
    cultural_signals: List[str] = Field(default_factory=list)

    @field_validator(
        "ats_keywords", "technical_skills", "soft_skills", "red_flags",
        "cultural_signals", mode="before",
    )
    @classmethod
    def _lists(cls, value: Any) -> List[str]:
        return _as_text_list(value)

    @field_validator("requirements", mode="before")
    @classmethod
    def _requirements(cls, value: Any) -> Any:
        return value if value is not None else {}

    @field_validator("seniority_level", mode="before")
    @classmethod
    def _seniority(cls, value: Any) -> str:
        level = _as_text(value).lower()
        return level if level in {"fresher", "junior", "mid", "senior", "lead"} else "mid"

    @field_validator("fresher_chance", mode="before")
    @classmethod
    def _fresher_chance(cls, value: Any) -> str:
        chance = _as_text(value).lower()
        return chance if chance in {"high", "low", "none"} else "low"

    @field_validator("mode", mode="before")
    @classmethod
    def _mode(cls, value: Any) -> str:
        return "generated" if _as_text(value).lower() == "generated" else "extracted"
