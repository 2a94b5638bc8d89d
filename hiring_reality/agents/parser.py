"""Resume parser unit - verbatim extraction of raw resume text into ResumeData."""

import logging
import re
import time
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from ..models.resume import ResumeData
from ..models.state import OutputOrigin, RunContext, UnitOutput
from ..services.gateway import ProviderGateway
from .base import CapabilityUnit, text_input

logger = logging.getLogger(__name__)


MIN_RESUME_CHARS = 50
MAX_PROMPT_CHARS = 15000

RESUME_PARSER_SYSTEM_PROMPT = """You are a VERBATIM resume data extractor.

Extract EXACTLY what is written. NO interpretation, NO improvement, NO assumptions.

Output JSON:
{
  "basics": {
    "fullName": "exact name",
    "email": "exact email",
    "phone": "exact phone",
    "location": "city, state",
    "linkedin": "URL if present",
    "github": "URL if present",
    "targetRole": "if mentioned"
  },
  "summary": "the complete summary, word for word",
  "experience": [
    {
      "company": "exact company name",
      "position": "exact role title",
      "startDate": "MM/YYYY or YYYY",
      "endDate": "MM/YYYY or Present",
      "highlights": ["bullet 1 word for word", "bullet 2 word for word"]
    }
  ],
  "education": [
    {"institution": "exact school name", "degree": "exact degree", "field": "field of study", "graduationDate": "year"}
  ],
  "projects": [
    {"name": "project name", "description": "full description", "githubLink": "URL if present"}
  ],
  "skills": ["skill1", "skill2"],
  "achievements": [{"description": "achievement text"}]
}

Rules:
1. Copy every word of the summary and every bullet point
2. Never shorten, summarize or paraphrase
3. Use "Present" for current jobs
4. Mark unclear data as "[UNCLEAR: original text]"
5. Return valid JSON only"""

# Order matters: collapse whitespace, then split glued words and numbers
_CLEANUP_RULES = [
    (re.compile(r"\s+"), " "),
    (re.compile(r"([a-z])([A-Z])"), r"\1 \2"),
    (re.compile(r"(\d)([A-Za-z])"), r"\1 \2"),
    (re.compile(r"([A-Za-z])(\d)"), r"\1 \2"),
    (re.compile(r"  +"), " "),
]

_ID_PREFIXES = {
    "experience": "exp",
    "education": "edu",
    "projects": "proj",
    "achievements": "ach",
}


def clean_pdf_text(text: str) -> str:
    """Undo the usual PDF extraction damage (run-together words, stray spacing)."""
    for pattern, replacement in _CLEANUP_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


def assign_ids(resume: ResumeData) -> ResumeData:
    """Give every record without one a stable id such as ``exp-1``."""
    updates: Dict[str, List[Any]] = {}
    for section, prefix in _ID_PREFIXES.items():
        records = getattr(resume, section)
        updates[section] = [
            record if record.id else record.model_copy(update={"id": f"{prefix}-{idx}"})
            for idx, record in enumerate(records, start=1)
        ]
    return resume.model_copy(update=updates)


class ResumeParserUnit(CapabilityUnit):
    """Turns raw resume text into the canonical ResumeData record.

    There is no rule-based approximation: a response that cannot be parsed
    is a capability failure, since guessing at a resume would be worse than
    asking the user to retry.
    """

    name = "resume_parser"
    system_prompt = RESUME_PARSER_SYSTEM_PROMPT
    preferred_provider = "groq"

    async def execute(
        self,
        bag: Mapping[str, Any],
        context: RunContext,
        gateway: Optional[ProviderGateway] = None,
    ) -> UnitOutput:
        started = time.perf_counter()

        resume_text = text_input(bag, "resume_text", "raw_text")
        if len(resume_text) < MIN_RESUME_CHARS:
            return self.failure("No resume text provided or text too short", started)

        cleaned = clean_pdf_text(resume_text)
        prompt = (
            "Extract resume data as JSON. Copy 100% of the text verbatim, never summarize.\n\n"
            f"RESUME TEXT:\n{cleaned[:MAX_PROMPT_CHARS]}\n\n"
            "Return structured JSON with all fields populated from the resume."
        )

        parsed, response = await self.generate(
            gateway, prompt, max_tokens=8000, temperature=0.1
        )
        if parsed is None:
            return self.failure(
                "Failed to parse LLM response as JSON", started,
                kind="capability", response=response,
            )

        try:
            resume = ResumeData.model_validate(parsed)
        except ValidationError as e:
            return self.failure(
                f"Parsed resume failed validation: {e.error_count()} errors",
                started, kind="capability", response=response,
            )

        resume = assign_ids(resume)
        logger.info(
            f"Parsed resume: {len(resume.experience)} roles, "
            f"{len(resume.education)} education, {len(resume.skills)} skills"
        )
        return self.success(resume, started, response, origin=OutputOrigin.GENERATED)
