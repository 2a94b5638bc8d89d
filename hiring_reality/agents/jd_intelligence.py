"""JD intelligence unit - extracts requirements from a JD or generates a realistic one."""

import logging
import re
import time
from typing import Any, Dict, List, Mapping, Optional

from ..models.resume import JDAnalysis, JDRequirements
from ..models.state import OutputOrigin, RunContext, UnitOutput
from ..services.gateway import ProviderGateway
from .base import CapabilityUnit, target_role_from, text_input

logger = logging.getLogger(__name__)


MIN_JD_CHARS = 50
MAX_JD_PROMPT_CHARS = 5000

_JD_SCHEMA = """{
  "requirements": {
    "mustHave": ["skill1", "skill2"],
    "preferred": ["skill3"],
    "experience": "2-4 years",
    "education": ["B.Tech", "BCA"]
  },
  "atsKeywords": ["React", "Node.js", "AWS"],
  "technicalSkills": ["React", "Node.js"],
  "softSkills": ["communication", "teamwork"],
  "redFlags": [],
  "fresherChance": "high|low|none",
  "seniorityLevel": "junior|mid|senior|lead",
  "culturalSignals": ["startup", "corporate", "remote-friendly"]
}"""

JD_EXTRACT_SYSTEM_PROMPT = f"""You are a Job Description analyzer for Indian companies.

Extract structured requirements from the provided JD.

Output JSON:
{_JD_SCHEMA}

Rules:
1. Extract EXACT skill names as written in the JD
2. Identify seniority from title and requirements
3. Flag unrealistic requirements (e.g. "10 years React") under redFlags
4. Detect fresher-friendliness from phrases like "fresh graduates welcome\""""

JD_GENERATE_SYSTEM_PROMPT = f"""You are a Job Description generator for the Indian job market.

Generate a REALISTIC JD for the given role: what companies actually require,
not an aspirational wish list.

Output JSON (include the full JD text under "generatedJD"):
{_JD_SCHEMA}

Rules:
1. Use real Indian market requirements
2. Keep must-have skills to 3-5
3. Match experience to role level realistically
4. Include a salary range if known for the Indian market"""

TECH_KEYWORDS = [
    "javascript", "typescript", "python", "java", "c++", "c#", "go", "rust",
    "react", "angular", "vue", "node.js", "express", "django", "flask", "spring",
    "sql", "mysql", "postgresql", "mongodb", "redis", "elasticsearch",
    "aws", "azure", "gcp", "docker", "kubernetes", "jenkins", "git",
    "html", "css", "sass", "tailwind", "bootstrap",
    "machine learning", "deep learning", "tensorflow", "pytorch", "pandas",
    "rest api", "graphql", "microservices", "agile", "scrum",
]

SOFT_KEYWORDS = [
    "communication", "teamwork", "leadership", "problem-solving", "analytical",
    "collaboration", "stakeholder management", "presentation", "mentoring",
    "time management", "adaptability", "creativity", "critical thinking",
]

DEFAULT_EDUCATION = ["B.Tech", "B.E.", "BCA", "MCA"]

_EXPERIENCE_RANGE = re.compile(r"(\d+)\s*(?:-|–|to)+\s*(\d+)\s*years?", re.IGNORECASE)
_SENIOR_PATTERN = re.compile(r"senior|sr\.|lead|principal|staff", re.IGNORECASE)
_JUNIOR_PATTERN = re.compile(r"junior|jr\.|entry|fresher|graduate", re.IGNORECASE)
_FRESHER_FRIENDLY = re.compile(r"fresh\s*graduate|fresher|entry[\s-]level|0-1\s*year", re.IGNORECASE)
_FRESHER_HOSTILE = re.compile(r"5\+\s*years|senior|lead", re.IGNORECASE)

ROLE_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "software engineer": {
        "technical_skills": ["JavaScript", "Python", "SQL", "Git", "REST APIs"],
        "soft_skills": ["communication", "teamwork", "problem-solving"],
        "must_have": ["JavaScript", "Python or Java", "SQL", "Git"],
        "preferred": ["React", "Node.js", "AWS"],
        "education": ["B.Tech", "B.E.", "MCA"],
    },
    "data scientist": {
        "technical_skills": ["Python", "SQL", "Machine Learning", "Pandas", "NumPy"],
        "soft_skills": ["analytical thinking", "communication", "presentation"],
        "must_have": ["Python", "SQL", "Machine Learning basics", "Statistics"],
        "preferred": ["TensorFlow", "PyTorch", "Spark"],
        "education": ["B.Tech", "M.Tech", "MSc Statistics"],
    },
    "product manager": {
        "technical_skills": ["Jira", "SQL", "Analytics tools", "Figma basics"],
        "soft_skills": ["stakeholder management", "communication", "analytical thinking"],
        "must_have": ["Product roadmap experience", "Stakeholder management", "Analytics"],
        "preferred": ["B2B experience", "Technical background"],
        "education": ["MBA", "B.Tech"],
        "experience": "3-5 years",
    },
}
DEFAULT_TEMPLATE = "software engineer"


def _find_keywords(text: str, keywords: List[str]) -> List[str]:
    """Keywords present in ``text`` as whole tokens ("go" does not match "good")."""
    lowered = text.lower()
    found = []
    for keyword in keywords:
        pattern = rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])"
        if re.search(pattern, lowered):
            found.append(keyword)
    return found


def extract_by_rules(jd_text: str) -> JDAnalysis:
    """Keyword-list extraction used when the model's answer is unusable."""
    technical = _find_keywords(jd_text, TECH_KEYWORDS)
    soft = _find_keywords(jd_text, SOFT_KEYWORDS)

    match = _EXPERIENCE_RANGE.search(jd_text)
    experience = f"{match.group(1)}-{match.group(2)} years" if match else "2-4 years"

    seniority = "mid"
    if _SENIOR_PATTERN.search(jd_text):
        seniority = "senior"
    elif _JUNIOR_PATTERN.search(jd_text):
        seniority = "junior"

    fresher_chance = "low"
    if _FRESHER_FRIENDLY.search(jd_text):
        fresher_chance = "high"
    elif _FRESHER_HOSTILE.search(jd_text):
        fresher_chance = "none"

    return JDAnalysis(
        mode="extracted",
        raw_jd=jd_text,
        requirements=JDRequirements(
            must_have=technical[:5],
            preferred=technical[5:8],
            experience=experience,
            education=list(DEFAULT_EDUCATION),
        ),
        ats_keywords=(technical + soft)[:20],
        technical_skills=technical,
        soft_skills=soft,
        fresher_chance=fresher_chance,
        seniority_level=seniority,
    )


def generate_by_template(target_role: str, experience_level: str) -> JDAnalysis:
    """Canned JD for the closest known role; software engineer otherwise."""
    role = target_role.lower()
    key = next((k for k in ROLE_TEMPLATES if k in role), DEFAULT_TEMPLATE)
    template = ROLE_TEMPLATES[key]
    fresher = experience_level == "fresher"

    experience = template.get("experience") or ("0-1 years" if fresher else "2-4 years")
    return JDAnalysis(
        mode="generated",
        requirements=JDRequirements(
            must_have=template["must_have"],
            preferred=template["preferred"],
            experience=experience,
            education=template["education"],
        ),
        ats_keywords=template["technical_skills"] + template["soft_skills"],
        technical_skills=template["technical_skills"],
        soft_skills=template["soft_skills"],
        fresher_chance="high" if fresher else "low",
        seniority_level="junior" if fresher else "mid",
        cultural_signals=["startup-friendly"],
    )


class JDIntelligenceUnit(CapabilityUnit):
    """Extract mode when a real JD is supplied, generate mode otherwise."""

    name = "jd_intelligence"
    system_prompt = JD_EXTRACT_SYSTEM_PROMPT
    preferred_provider = "gemini"

    async def execute(
        self,
        bag: Mapping[str, Any],
        context: RunContext,
        gateway: Optional[ProviderGateway] = None,
    ) -> UnitOutput:
        jd_text = text_input(bag, "jd_text", "job_description")
        if len(jd_text.strip()) < MIN_JD_CHARS:
            return await self._generate(bag, context, gateway)
        return await self._extract(jd_text, gateway)

    async def _extract(self, jd_text: str, gateway: Optional[ProviderGateway]) -> UnitOutput:
        started = time.perf_counter()
        prompt = (
            "Extract requirements from this Job Description:\n\n"
            f"JD TEXT:\n{jd_text[:MAX_JD_PROMPT_CHARS]}\n\n"
            "Return structured JSON with all requirements, skills, and keywords."
        )
        parsed, response = await self.generate(
            gateway, prompt, system_prompt=JD_EXTRACT_SYSTEM_PROMPT,
            max_tokens=2000, json_mode=True,
        )

        analysis = self.validate(JDAnalysis, parsed)
        if analysis is None:
            logger.info("Using rule-based JD extraction")
            return self.success(
                extract_by_rules(jd_text), started, response,
                origin=OutputOrigin.APPROXIMATED,
            )

        analysis = analysis.model_copy(update={"mode": "extracted", "raw_jd": jd_text})
        return self.success(analysis, started, response, origin=OutputOrigin.GENERATED)

    async def _generate(
        self,
        bag: Mapping[str, Any],
        context: RunContext,
        gateway: Optional[ProviderGateway],
    ) -> UnitOutput:
        started = time.perf_counter()

        target_role = target_role_from(bag, context)
        if not target_role:
            return self.failure("Cannot generate JD without target role", started)

        profile = bag.get("user_profile") or {}
        experience_level = profile.get("user_type") or "1-3yrs"

        prompt = (
            "Generate a realistic Job Description for the Indian job market:\n\n"
            f"ROLE: {target_role}\n"
            f"EXPERIENCE LEVEL: {experience_level}\n"
            f"MARKET: {context.market}\n\n"
            "Generate what a real company would post, with 3-5 must-have skills, a\n"
            "reasonable experience range and the typical salary range.\n\n"
            "Return full JD text and structured requirements as JSON."
        )
        parsed, response = await self.generate(
            gateway, prompt, system_prompt=JD_GENERATE_SYSTEM_PROMPT,
            max_tokens=3000, json_mode=True,
        )

        analysis = self.validate(JDAnalysis, parsed)
        if analysis is None:
            logger.info(f"Using template JD for {target_role}")
            return self.success(
                generate_by_template(target_role, experience_level), started, response,
                origin=OutputOrigin.APPROXIMATED,
            )

        analysis = analysis.model_copy(update={"mode": "generated"})
        return self.success(analysis, started, response, origin=OutputOrigin.GENERATED)
