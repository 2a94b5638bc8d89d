"""Rewrite units: grammar-only (free), STAR rewrite (paid) and premium rewrite.

Usage:
    unit = RewriteFreeUnit()
    output = await unit.execute({"text": bullet, "context": "bullet"}, context, gateway)
"""

import logging
import random
import re
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..models.resume import _as_text_list
from ..models.schemas import (
    HighlightedChange,
    KeywordMatchResult,
    PremiumRewriteOutput,
    RewriteOutput,
    SemanticMatch,
)
from ..models.state import OutputOrigin, RunContext, UnitOutput
from ..services.gateway import ProviderGateway
from .base import CapabilityUnit, target_role_from, text_input

logger = logging.getLogger(__name__)


MIN_REWRITE_CHARS = 5
LLM_GRAMMAR_MIN_CHARS = 50
VAGUE_TEXT_CHARS = 30


def _word(phrase: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(phrase)}\b", re.IGNORECASE)


def _rewrite_inputs(bag: Mapping[str, Any]) -> Tuple[str, str, List[str]]:
    text = text_input(bag, "text", "bullet")
    context = text_input(bag, "context") or "bullet"
    keywords = [str(k) for k in (bag.get("jd_keywords") or []) if str(k).strip()]
    return text, context, keywords


# === Free: grammar and formatting only ===

REWRITE_FREE_SYSTEM_PROMPT = """You are a grammar and clarity fixer ONLY.

Your job:
- Fix grammar, spelling, and punctuation
- Fix capitalization (proper nouns, sentence starts)
- Fix tech name formatting (node -> Node.js, react -> React, aws -> AWS)
- Standardize date formats

Do NOT change the meaning, add metrics, add tools not mentioned, add buzzwords,
or rewrite the bullet entirely. If the text is already correct, return it UNCHANGED.

Output JSON:
{
  "rewritten": "The corrected text",
  "changes": ["Fixed capitalization of React", "Added period at end"],
  "unchanged": false
}"""

TECH_NAME_FIXES = {
    "javascript": "JavaScript",
    "typescript": "TypeScript",
    "node.js": "Node.js",
    "nodejs": "Node.js",
    "react": "React",
    "reactjs": "React",
    "angular": "Angular",
    "vue": "Vue",
    "vuejs": "Vue.js",
    "python": "Python",
    "java": "Java",
    "aws": "AWS",
    "gcp": "GCP",
    "azure": "Azure",
    "docker": "Docker",
    "kubernetes": "Kubernetes",
    "k8s": "Kubernetes",
    "mongodb": "MongoDB",
    "postgresql": "PostgreSQL",
    "mysql": "MySQL",
    "redis": "Redis",
    "graphql": "GraphQL",
    "restful": "RESTful",
    "rest api": "REST API",
    "api": "API",
    "apis": "APIs",
    "html": "HTML",
    "css": "CSS",
    "sql": "SQL",
    "nosql": "NoSQL",
    "git": "Git",
    "github": "GitHub",
    "gitlab": "GitLab",
    "jenkins": "Jenkins",
    "ci/cd": "CI/CD",
    "devops": "DevOps",
    "tensorflow": "TensorFlow",
    "pytorch": "PyTorch",
    "pandas": "Pandas",
    "numpy": "NumPy",
    "scikit-learn": "scikit-learn",
    "kafka": "Kafka",
    "rabbitmq": "RabbitMQ",
    "elasticsearch": "Elasticsearch",
    "linux": "Linux",
    "macos": "macOS",
    "ios": "iOS",
    "android": "Android",
}

TYPO_FIXES = {
    "teh": "the",
    "recieve": "receive",
    "occurence": "occurrence",
    "seperate": "separate",
    "definately": "definitely",
    "occured": "occurred",
    "succesful": "successful",
    "neccessary": "necessary",
}


def apply_rule_fixes(text: str) -> Tuple[str, List[str]]:
    """Deterministic grammar/formatting fixes; returns (fixed text, changes)."""
    result = text
    changes: List[str] = []

    for wrong, correct in TECH_NAME_FIXES.items():
        pattern = _word(wrong)
        # Text that already spells the name correctly is left alone
        if pattern.search(result) and correct not in result:
            result = pattern.sub(correct, result)
            changes.append(f"Fixed capitalization: {wrong} → {correct}")

    if result and result[0] != result[0].upper():
        result = result[0].upper() + result[1:]
        changes.append("Capitalized first letter")

    if len(result) > 10 and not re.search(r"[.!?]$", result.strip()):
        result = result.strip() + "."
        changes.append("Added period at end")

    if re.search(r"  +", result):
        result = re.sub(r"  +", " ", result)
        changes.append("Removed double spaces")

    for typo, correct in TYPO_FIXES.items():
        pattern = _word(typo)
        if pattern.search(result):
            result = pattern.sub(correct, result)
            changes.append(f"Fixed typo: {typo} → {correct}")

    return result, changes


class RewriteFreeUnit(CapabilityUnit):
    """Grammar fixes only; the model is consulted for long, rule-clean text."""

    name = "rewrite_free"
    system_prompt = REWRITE_FREE_SYSTEM_PROMPT
    preferred_provider = "groq"

    async def execute(
        self,
        bag: Mapping[str, Any],
        context: RunContext,
        gateway: Optional[ProviderGateway] = None,
    ) -> UnitOutput:
        started = time.perf_counter()

        text, section, _ = _rewrite_inputs(bag)
        if len(text) < MIN_REWRITE_CHARS:
            return self.failure("No text provided for rewrite", started)

        fixed, changes = apply_rule_fixes(text)
        rule_result = RewriteOutput(original=text, rewritten=fixed, changes=changes)
        if changes or len(text) < LLM_GRAMMAR_MIN_CHARS:
            return self.success(rule_result, started)

        prompt = (
            "Fix grammar and formatting only. Do NOT change meaning or add content.\n\n"
            f'ORIGINAL TEXT ({section}):\n"{text}"\n\n'
            "Return JSON with corrected text and list of changes made."
        )
        parsed, response = await self.generate(gateway, prompt, max_tokens=500, temperature=0.1)

        rewrite = None
        if parsed and parsed.get("rewritten"):
            rewrite = self.validate(RewriteOutput, {
                "original": text,
                "rewritten": text if parsed.get("unchanged") else str(parsed["rewritten"]),
                "changes": parsed.get("changes") or [],
            })
        if rewrite is None:
            return self.success(rule_result, started, response, origin=OutputOrigin.APPROXIMATED)
        return self.success(rewrite, started, response, origin=OutputOrigin.GENERATED)


# === Paid: STAR rewrite aligned with JD keywords ===

REWRITE_PAID_SYSTEM_PROMPT = """You are a professional resume writer for the Indian job market.

Transform resume bullets into recruiter-optimized content using STAR format:
- Situation/Task: what was the challenge
- Action: what you did (with tools/methods)
- Result: impact (quantified if possible, inferred if not)

Rules:
1. Keep the core truth intact - never invent experience
2. Add implied metrics ONLY if logical, prefixed with "~" or "approximately"
3. Use JD keywords naturally - don't force them
4. Start with strong action verbs: Built, Developed, Led, Created, Implemented, Designed, Optimized

Avoid buzzwords (leveraged, synergized, revolutionized, spearheaded), generic
phrases (results-driven, dynamic professional, passionate), fake achievements
and technologies not implied by the original.

Output JSON:
{
  "rewritten": "The improved bullet",
  "changes": ["Added metric inference", "Added JD keyword: React"],
  "keywordsAdded": ["React", "Node.js"],
  "metricsAdded": true,
  "improvement": "Brief explanation of what was improved"
}"""

PAID_TIER_MESSAGE = "Paid rewrite requires premium subscription"
PARSE_FAILED_CHANGE = "Rewrite parsing failed - keeping original"
MIN_PRESERVED_RATIO = 0.2

SUSPICIOUS_REWRITE_PATTERNS = [
    re.compile(r"\d{3,}%"),
    re.compile(r"\$\d{6,}"),
    re.compile(r"\d{2,}\s*million"),
    re.compile(r"revolutionized|pioneered|transformed the industry", re.IGNORECASE),
]


def validate_truth(original: str, rewritten: str) -> str:
    """``flagged`` when the rewrite strays too far from the original words."""
    original_words = set(original.lower().split())
    rewritten_words = rewritten.lower().split()
    if not rewritten_words:
        return "flagged"

    preserved = sum(1 for word in rewritten_words if word in original_words)
    ratio = preserved / len(rewritten_words)
    suspicious = any(p.search(rewritten) for p in SUSPICIOUS_REWRITE_PATTERNS)
    return "flagged" if ratio < MIN_PRESERVED_RATIO or suspicious else "passed"


class RewritePaidUnit(CapabilityUnit):
    name = "rewrite_paid"
    system_prompt = REWRITE_PAID_SYSTEM_PROMPT
    preferred_provider = "openai"
    paid_only = True

    async def execute(
        self,
        bag: Mapping[str, Any],
        context: RunContext,
        gateway: Optional[ProviderGateway] = None,
    ) -> UnitOutput:
        started = time.perf_counter()

        text, section, keywords = _rewrite_inputs(bag)
        if len(text) < MIN_REWRITE_CHARS:
            return self.failure("No text provided for rewrite", started)
        if not context.is_paid:
            return self.failure(PAID_TIER_MESSAGE, started, kind="tier")

        prompt = (
            f"Rewrite this resume {section} for maximum recruiter impact.\n\n"
            f'ORIGINAL:\n"{text}"\n\n'
            "CONTEXT:\n"
            f"- Current Role: {text_input(bag, 'role') or 'Not specified'}\n"
            f"- Target Role: {target_role_from(bag, context) or 'Not specified'}\n"
            f"- JD Keywords to incorporate (only if relevant): {', '.join(keywords) or 'None provided'}\n\n"
            "INSTRUCTIONS:\n"
            "1. Keep the core achievement/responsibility intact\n"
            "2. Start with a strong action verb\n"
            "3. Add a metric ONLY if it can be logically inferred\n"
            "4. Keep it concise (max 25-30 words)\n"
            "5. Don't add tools/technologies not implied by the original\n\n"
            "Return JSON with the improved bullet and explanation."
        )
        parsed, response = await self.generate(
            gateway, prompt, max_tokens=500, temperature=0.4, json_mode=True
        )

        rewrite = None
        if parsed and parsed.get("rewritten"):
            rewritten = str(parsed["rewritten"])
            rewrite = self.validate(RewriteOutput, {
                "original": text,
                "rewritten": rewritten,
                "changes": parsed.get("changes") or [],
                "keywords_added": parsed.get("keywordsAdded") or parsed.get("keywords_added") or [],
                "metrics_added": bool(parsed.get("metricsAdded") or parsed.get("metrics_added")),
                "truth_check": validate_truth(text, rewritten),
            })

        if rewrite is None:
            kept = RewriteOutput(original=text, rewritten=text, changes=[PARSE_FAILED_CHANGE])
            return self.success(kept, started, response, origin=OutputOrigin.APPROXIMATED)
        if rewrite.truth_check == "flagged":
            logger.warning("Paid rewrite flagged by truth check")
        return self.success(rewrite, started, response, origin=OutputOrigin.GENERATED)


# === Premium: verb strengthening, industry terms, keyword coverage ===

PREMIUM_SYSTEM_PROMPT = """You are an expert resume rewriter for premium users. Transform weak,
generic bullet points into powerful, metrics-driven achievements.

Transformation rules:
1. START with a strong action verb (Led, Developed, Improved, Reduced, etc.)
2. ADD specific metrics when possible (percentages, numbers, amounts)
3. INCLUDE technical context (tools, frameworks, methodologies used)
4. SHOW impact on business/team/product
5. USE industry-specific terminology
6. KEEP it concise (max 2 lines)

Example:
"Worked on React projects and helped the team" ->
"Led development of 3 React-based web applications, improving team velocity by ~25%
through a reusable component library and CI/CD best practices"

Strict rules:
- Do not fabricate specific numbers (use realistic estimates marked with ~)
- Do not add skills/tools the user didn't mention
- Preserve the core meaning and experience level
- Flag if the original is too vague to improve meaningfully

Output JSON:
{
  "rewritten": "The transformed bullet point",
  "changes": ["Change 1", "Change 2"],
  "keywordsAdded": ["keyword1", "keyword2"],
  "metricsAdded": true,
  "skillsInferred": ["React", "CI/CD"],
  "confidence": 0.8,
  "originalTooVague": false
}"""

PREMIUM_TIER_MESSAGE = "Premium rewrite requires premium subscription"

INDUSTRY_KEYWORDS: Dict[str, List[str]] = {
    "tech": [
        "scalable", "microservices", "CI/CD", "agile", "sprint", "code review",
        "refactoring", "optimization", "performance", "monitoring", "deployment",
        "containerization", "cloud-native", "serverless", "distributed systems",
        "API design", "system architecture", "technical debt", "best practices",
    ],
    "marketing": [
        "ROI", "conversion rate", "A/B testing", "customer acquisition", "retention",
        "brand awareness", "engagement", "funnel optimization", "lead generation",
        "market research", "campaign analytics", "SEO/SEM", "content strategy",
    ],
    "finance": [
        "P&L", "ROI", "EBITDA", "compliance", "audit", "risk management",
        "financial modeling", "forecasting", "budget optimization", "cost reduction",
        "regulatory compliance", "SOX", "due diligence", "stakeholder reporting",
    ],
    "healthcare": [
        "HIPAA", "patient outcomes", "clinical workflows", "EHR/EMR", "compliance",
        "quality assurance", "patient safety", "care coordination", "regulatory",
        "healthcare analytics", "patient satisfaction", "clinical trials",
    ],
    "sales": [
        "revenue growth", "quota attainment", "pipeline management", "deal closure",
        "client relationships", "account management", "CRM", "sales enablement",
        "territory expansion", "customer retention", "upselling", "cross-selling",
    ],
    "operations": [
        "process optimization", "efficiency", "SLA", "KPI", "lean methodology",
        "continuous improvement", "supply chain", "vendor management", "logistics",
        "quality control", "capacity planning", "resource allocation",
    ],
}

_INDUSTRY_PATTERNS = [
    ("tech", re.compile(
        r"software|developer|engineer|frontend|backend|fullstack|devops|data\s*scientist|ml|ai"
    )),
    ("marketing", re.compile(r"marketing|brand|content|seo|growth|advertising")),
    ("finance", re.compile(r"finance|accounting|analyst|investment|banking|audit")),
    ("healthcare", re.compile(r"healthcare|medical|clinical|hospital|patient|nurse|doctor")),
    ("sales", re.compile(r"sales|account\s*manager|business\s*development|revenue")),
    ("operations", re.compile(r"operations|supply\s*chain|logistics|procurement|process")),
]

WEAK_VERBS: Dict[str, List[str]] = {
    "worked on": ["Led development of", "Developed", "Built"],
    "helped with": ["Contributed to", "Supported", "Collaborated on"],
    "was responsible for": ["Managed", "Oversaw", "Drove"],
    "participated in": ["Contributed to", "Collaborated on", "Engaged in"],
    "involved in": ["Drove", "Led", "Spearheaded"],
    "assisted with": ["Supported", "Enabled", "Facilitated"],
    "did": ["Executed", "Performed", "Completed"],
    "made": ["Created", "Developed", "Produced"],
    "handled": ["Managed", "Oversaw", "Coordinated"],
    "dealt with": ["Resolved", "Addressed", "Managed"],
}

SKILL_INFERENCE_PATTERNS = [
    (re.compile(r"web\s*(app|application|site)"), ["HTML", "CSS", "JavaScript"]),
    (re.compile(r"database|sql|query"), ["Database Management", "SQL"]),
    (re.compile(r"api|endpoint|rest"), ["API Development", "REST"]),
    (re.compile(r"deploy|ci/cd|pipeline"), ["CI/CD", "DevOps"]),
    (re.compile(r"test|qa|automation"), ["Testing", "QA"]),
    (re.compile(r"team|collaborat|cross-functional"), ["Collaboration", "Teamwork"]),
    (re.compile(r"lead|mentor|manage"), ["Leadership", "Mentoring"]),
    (re.compile(r"optimize|performance|scale"), ["Performance Optimization"]),
    (re.compile(r"customer|user|client"), ["Customer Focus", "Stakeholder Management"]),
]

KEYWORD_SYNONYMS: Dict[str, List[str]] = {
    "javascript": ["js", "ecmascript", "es6", "es2020"],
    "typescript": ["ts"],
    "react": ["reactjs", "react.js"],
    "node.js": ["nodejs", "node"],
    "postgresql": ["postgres", "psql"],
    "kubernetes": ["k8s"],
    "continuous integration": ["ci", "ci/cd"],
    "machine learning": ["ml", "ai"],
    "leadership": ["led", "lead", "managed", "directed"],
    "development": ["developed", "built", "created"],
    "optimization": ["optimized", "improved", "enhanced"],
}


def detect_industry(role: str, section: str = "") -> str:
    text = f"{role} {section}".lower()
    for industry, pattern in _INDUSTRY_PATTERNS:
        if pattern.search(text):
            return industry
    return "tech"


def replace_weak_verbs(text: str, rng: random.Random) -> Tuple[str, List[str]]:
    """Swap a weak opening phrase ("worked on") for a stronger verb."""
    result = text
    changes: List[str] = []
    for weak, replacements in WEAK_VERBS.items():
        pattern = re.compile(rf"^{re.escape(weak)}\b", re.IGNORECASE)
        if pattern.search(result):
            replacement = rng.choice(replacements)
            result = pattern.sub(replacement, result, count=1)
            changes.append(f'Replaced "{weak}" with "{replacement}"')
    return result, changes


def infer_skills(text: str) -> List[str]:
    lowered = text.lower()
    inferred: List[str] = []
    for pattern, skills in SKILL_INFERENCE_PATTERNS:
        if pattern.search(lowered):
            inferred.extend(s for s in skills if s not in inferred)
    return inferred


def analyze_keyword_matches(text: str, jd_keywords: Sequence[str]) -> KeywordMatchResult:
    """Exact and synonym-level coverage of JD keywords in a piece of text."""
    lowered = text.lower()
    exact: List[str] = []
    semantic: List[SemanticMatch] = []

    for keyword in jd_keywords:
        keyword_lower = keyword.lower()
        if _word(keyword_lower).search(lowered):
            exact.append(keyword)
            continue

        for base, synonyms in KEYWORD_SYNONYMS.items():
            if keyword_lower != base and keyword_lower not in synonyms:
                continue
            for variant in [base] + synonyms:
                if _word(variant).search(lowered):
                    semantic.append(SemanticMatch(original=keyword, matched=variant))
                    break

    total = len(jd_keywords)
    matched = len(exact) + len(semantic)
    return KeywordMatchResult(
        exact_matches=exact,
        semantic_matches=semantic,
        inferred_skills=infer_skills(text),
        match_score=round(matched / total * 100) if total else 0,
        total_keywords=total,
    )


def highlight_changes(analysis: KeywordMatchResult) -> List[HighlightedChange]:
    highlights = [HighlightedChange(type="exact", text=kw, keyword=kw) for kw in analysis.exact_matches]
    highlights += [
        HighlightedChange(type="semantic", text=m.matched, keyword=m.original)
        for m in analysis.semantic_matches
    ]
    highlights += [HighlightedChange(type="inferred", text=skill) for skill in analysis.inferred_skills]
    return highlights


class RewritePremiumUnit(CapabilityUnit):
    """Full rewrite for paid users.

    Weak-verb replacement draws from a ``random.Random`` seeded with
    ``seed`` when given, else with the session id, so one session always
    gets the same wording.
    """

    name = "rewrite_premium"
    system_prompt = PREMIUM_SYSTEM_PROMPT
    preferred_provider = "gemini"
    paid_only = True

    def __init__(self, seed: Optional[Union[int, str]] = None):
        self.seed = seed

    def rng_for(self, context: RunContext) -> random.Random:
        return random.Random(self.seed if self.seed is not None else context.session_id)

    async def execute(
        self,
        bag: Mapping[str, Any],
        context: RunContext,
        gateway: Optional[ProviderGateway] = None,
    ) -> UnitOutput:
        started = time.perf_counter()

        text, section, keywords = _rewrite_inputs(bag)
        if len(text) < MIN_REWRITE_CHARS:
            return self.failure("No text provided for premium rewrite", started)
        if not context.is_paid:
            return self.failure(PREMIUM_TIER_MESSAGE, started, kind="tier")

        target_role = target_role_from(bag, context)
        industry = detect_industry(target_role, section)
        verb_fixed, verb_changes = replace_weak_verbs(text, self.rng_for(context))
        relevant = keywords[:10] + INDUSTRY_KEYWORDS[industry][:5]

        prompt = (
            f"Transform this {section} into a powerful, metrics-driven achievement.\n\n"
            f'ORIGINAL TEXT:\n"{verb_fixed}"\n\n'
            f"TARGET ROLE: {target_role or 'Professional'}\n"
            f"INDUSTRY: {industry}\n"
            f"RELEVANT KEYWORDS TO NATURALLY INCLUDE: {', '.join(relevant)}\n\n"
            "Return JSON with rewritten text, changes made, keywords added, and confidence score."
        )
        parsed, response = await self.generate(gateway, prompt, max_tokens=800, temperature=0.4)

        rewrite = None
        if parsed and parsed.get("rewritten"):
            rewritten = str(parsed["rewritten"])
            analysis = analyze_keyword_matches(rewritten, keywords)
            confidence = parsed.get("confidence")
            rewrite = self.validate(PremiumRewriteOutput, {
                "original": text,
                "rewritten": rewritten,
                "changes": verb_changes + _as_text_list(parsed.get("changes")),
                "keywords_added": parsed.get("keywordsAdded") or [],
                "metrics_added": bool(parsed.get("metricsAdded")),
                "skills_inferred": parsed.get("skillsInferred") or infer_skills(rewritten),
                "confidence": confidence if isinstance(confidence, (int, float)) and 0 < confidence <= 1 else 0.8,
                "original_too_vague": bool(parsed.get("originalTooVague")),
                "highlighted_changes": highlight_changes(analysis),
            })

        if rewrite is None:
            fallback = PremiumRewriteOutput(
                original=text,
                rewritten=verb_fixed,
                changes=verb_changes,
                skills_inferred=infer_skills(text),
                confidence=0.5,
                original_too_vague=len(text) < VAGUE_TEXT_CHARS,
            )
            return self.success(fallback, started, response, origin=OutputOrigin.APPROXIMATED)
        return self.success(rewrite, started, response, origin=OutputOrigin.GENERATED)
