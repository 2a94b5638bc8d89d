import random

from hiring_reality.agents import (
    RewriteFreeUnit,
    RewritePaidUnit,
    RewritePremiumUnit,
    TruthValidatorUnit,
)
from hiring_reality.agents.rewrite import (
    PARSE_FAILED_CHANGE,
    WEAK_VERBS,
    analyze_keyword_matches,
    apply_rule_fixes,
    detect_industry,
    replace_weak_verbs,
    validate_truth,
)
from hiring_reality.agents.truth_validator import quick_truth_check, validate_resume
from hiring_reality.models import ExperienceEntry, OutputOrigin, ResumeData
from hiring_reality.models.config import GatewayConfig
from hiring_reality.services.gateway import ProviderGateway

from conftest import FakeBackend


NOT_JSON = "Here's a better version, hope it helps!"
CLEAN_LONG_TEXT = "Built a billing service that processes invoices for enterprise customers."


def gateway_for(context, health, *backends):
    return ProviderGateway(
        {b.name: b for b in backends},
        context.budget,
        tier=context.tier,
        health=health,
        config=GatewayConfig(request_timeout=5),
    )


# === Truth validator ===

def test_quick_check_blocks_unrealistic_metrics():
    result = quick_truth_check("Spearheaded a 500% increase in quarterly sales")

    assert result.action == "block"
    assert result.overall_truth_score == "low"
    assert result.flagged_phrases == ["spearheaded"]
    assert result.blocked_phrases == ["500% increase"]


def test_quick_check_superlatives_respect_hedging_and_word_boundaries():
    assert quick_truth_check("Best developer in the company").action == "flag"
    assert quick_truth_check("One of the best developers in the company").action == "approve"
    assert quick_truth_check("Mapped network topology for 3 offices").action == "approve"


def test_quick_check_junior_leading_large_team():
    role = ExperienceEntry(position="Junior Developer")

    result = quick_truth_check("Led team of 15 engineers on the payments rewrite", role)

    assert result.action == "flag"
    assert result.issues[0].severity == "medium"
    assert quick_truth_check("Led team of 15 engineers on the payments rewrite").action == "approve"


def test_validate_resume(resume_data):
    assert validate_resume(ResumeData.model_validate(resume_data)).action == "approve"

    resume_data["experience"][0]["highlights"].append("Saved the company $25000000 through cutting-edge work")
    result = validate_resume(ResumeData.model_validate(resume_data))

    assert result.action == "block"
    assert result.blocked_phrases == ["$25000000"]
    assert result.flagged_phrases == ["cutting-edge"]


async def test_truth_validator_short_text_skips_model(free_context):
    output = await TruthValidatorUnit().execute({"text": "Revolutionized hiring"}, free_context)

    assert output.success
    assert output.data["action"] == "flag"
    assert output.provider_used is None


async def test_truth_validator_long_text_uses_model(free_context, health):
    gemini = FakeBackend("gemini", {"issues": [], "overallTruthScore": "high", "action": "approve"})
    gateway = gateway_for(free_context, health, gemini)
    text = CLEAN_LONG_TEXT + " Wrote the reconciliation jobs and on-call runbooks for the team."

    output = await TruthValidatorUnit().execute({"text": text}, free_context, gateway)

    assert output.origin == OutputOrigin.GENERATED
    assert output.data["action"] == "approve"
    assert gemini.requests[0].max_tokens == 500


async def test_truth_validator_model_garbage_keeps_quick_result(free_context, health):
    gateway = gateway_for(free_context, health, FakeBackend("gemini", NOT_JSON))
    text = CLEAN_LONG_TEXT + " Wrote the reconciliation jobs and on-call runbooks for the team."

    output = await TruthValidatorUnit().execute({"text": text}, free_context, gateway)

    assert output.origin == OutputOrigin.APPROXIMATED
    assert output.data["action"] == "approve"


async def test_truth_validator_needs_input(free_context):
    output = await TruthValidatorUnit().execute({}, free_context)

    assert output.error_kind == "input"


# === Free rewrite ===

def test_rule_fixes():
    fixed, changes = apply_rule_fixes("developed apis using nodejs and  mongodb, recieve data")

    assert fixed == "Developed APIs using Node.js and MongoDB, receive data."
    assert "Capitalized first letter" in changes
    assert "Added period at end" in changes
    assert "Removed double spaces" in changes
    assert "Fixed typo: recieve → receive" in changes


def test_rule_fixes_leave_correct_names_alone():
    assert apply_rule_fixes("Built React and react native apps.") == ("Built React and react native apps.", [])


async def test_free_rewrite_rules_only(free_context):
    output = await RewriteFreeUnit().execute({"text": "worked on react dashboards"}, free_context)

    assert output.origin == OutputOrigin.DETERMINISTIC
    assert output.data["rewritten"] == "Worked on React dashboards."
    assert output.data["original"] == "worked on react dashboards"


async def test_free_rewrite_model_for_clean_text(free_context, health):
    groq = FakeBackend("groq", [
        {"rewritten": "Built a billing service that processes invoices for enterprise clients.", "changes": ["Word choice"]},
        {"rewritten": "ignored", "unchanged": True},
    ])
    gateway = gateway_for(free_context, health, groq)
    unit = RewriteFreeUnit()

    first = await unit.execute({"text": CLEAN_LONG_TEXT}, free_context, gateway)
    second = await unit.execute({"text": CLEAN_LONG_TEXT}, free_context, gateway)

    assert first.origin == OutputOrigin.GENERATED
    assert first.data["changes"] == ["Word choice"]
    assert second.data["rewritten"] == CLEAN_LONG_TEXT
    assert groq.requests[0].temperature == 0.1


async def test_free_rewrite_needs_text(free_context):
    output = await RewriteFreeUnit().execute({"text": "hi"}, free_context)

    assert output.error == "No text provided for rewrite"


# === Paid rewrite ===

async def test_paid_rewrite_requires_paid_tier(free_context):
    output = await RewritePaidUnit().execute({"text": CLEAN_LONG_TEXT}, free_context)

    assert not output.success
    assert output.error_kind == "tier"
    assert output.error == "Paid rewrite requires premium subscription"


async def test_paid_rewrite(paid_context, health):
    openai = FakeBackend("openai", {
        "rewritten": "Built a billing service in Python that processes invoices for enterprise customers",
        "changes": ["Added JD keyword: Python"],
        "keywordsAdded": ["Python"],
        "metricsAdded": False,
    })
    gateway = gateway_for(paid_context, health, openai)
    bag = {"text": CLEAN_LONG_TEXT, "context": "bullet", "jd_keywords": ["Python"]}

    output = await RewritePaidUnit().execute(bag, paid_context, gateway)

    assert output.origin == OutputOrigin.GENERATED
    assert output.provider_used == "openai"
    assert output.data["keywords_added"] == ["Python"]
    assert output.data["truth_check"] == "passed"
    assert "Python" in openai.requests[0].prompt
    assert openai.requests[0].temperature == 0.4


async def test_paid_rewrite_parse_failure_keeps_original(paid_context, health):
    gateway = gateway_for(paid_context, health, FakeBackend("openai", NOT_JSON))

    output = await RewritePaidUnit().execute({"text": CLEAN_LONG_TEXT}, paid_context, gateway)

    assert output.origin == OutputOrigin.APPROXIMATED
    assert output.data["rewritten"] == CLEAN_LONG_TEXT
    assert output.data["changes"] == [PARSE_FAILED_CHANGE]


def test_validate_truth():
    original = "worked on billing"
    assert validate_truth(original, "Built billing workflows") == "passed"
    assert validate_truth(original, "Revolutionized global payments infrastructure") == "flagged"
    assert validate_truth(original, "Built billing with 300% gains") == "flagged"


# === Premium rewrite ===

async def test_premium_rewrite_requires_paid_tier(free_context):
    output = await RewritePremiumUnit().execute({"text": CLEAN_LONG_TEXT}, free_context)

    assert output.error_kind == "tier"
    assert output.error == "Premium rewrite requires premium subscription"


def test_replace_weak_verbs_is_seeded():
    first, changes = replace_weak_verbs("worked on the billing module", random.Random(3))
    second, _ = replace_weak_verbs("worked on the billing module", random.Random(3))

    assert first == second
    assert any(first.startswith(v) for v in WEAK_VERBS["worked on"])
    assert changes[0].startswith('Replaced "worked on"')
    assert replace_weak_verbs("Built the billing module", random.Random(3)) == ("Built the billing module", [])


def test_rng_defaults_to_session_id(paid_context):
    seeded = RewritePremiumUnit(seed=42).rng_for(paid_context).random()
    by_session = RewritePremiumUnit().rng_for(paid_context).random()

    assert seeded == random.Random(42).random()
    assert by_session == random.Random("session-paid").random()


def test_keyword_matches():
    result = analyze_keyword_matches(
        "Built ReactJS dashboards backed by Postgres on k8s",
        ["React", "PostgreSQL", "Kubernetes", "GraphQL"],
    )

    assert result.exact_matches == []
    assert [(m.original, m.matched) for m in result.semantic_matches] == [
        ("React", "reactjs"),
        ("PostgreSQL", "postgres"),
        ("Kubernetes", "k8s"),
    ]
    assert result.match_score == 75
    assert result.total_keywords == 4
    assert analyze_keyword_matches("anything", []).match_score == 0


def test_detect_industry():
    assert detect_industry("Backend Developer") == "tech"
    assert detect_industry("Brand Manager") == "marketing"
    assert detect_industry("Head Chef") == "tech"


async def test_premium_rewrite_with_model(paid_context, health):
    gemini = FakeBackend("gemini", {
        "rewritten": "Led development of React dashboards used by 200 analysts",
        "changes": ["Added metric"],
        "keywordsAdded": ["React"],
        "metricsAdded": True,
        "confidence": 0.9,
    })
    gateway = gateway_for(paid_context, health, gemini)
    bag = {"text": "worked on react dashboards for analysts", "context": "bullet", "jd_keywords": ["React"]}

    output = await RewritePremiumUnit(seed=1).execute(bag, paid_context, gateway)

    assert output.origin == OutputOrigin.GENERATED
    assert output.data["changes"][0].startswith('Replaced "worked on"')
    assert output.data["changes"][-1] == "Added metric"
    assert output.data["confidence"] == 0.9
    assert output.data["metrics_added"] is True
    assert {"type": "exact", "text": "React", "keyword": "React"} in output.data["highlighted_changes"]
    assert gemini.requests[0].max_tokens == 800


async def test_premium_rewrite_fallback_is_deterministic(paid_context, health):
    gemini = FakeBackend("gemini", NOT_JSON)
    gateway = gateway_for(paid_context, health, gemini)
    bag = {"text": "worked on dashboards", "context": "bullet"}

    first = await RewritePremiumUnit(seed=5).execute(bag, paid_context, gateway)
    second = await RewritePremiumUnit(seed=5).execute(bag, paid_context, gateway)

    assert first.origin == OutputOrigin.APPROXIMATED
    assert first.data["rewritten"] == second.data["rewritten"]
    assert first.data["confidence"] == 0.5
    assert first.data["original_too_vague"] is True


async def test_premium_rewrite_normalizes_loosely_shaped_model_json(paid_context, health):
    gemini = FakeBackend("gemini", {
        "rewritten": "Led React dashboard development for 200 analysts",
        "changes": "Added metric",
        "skillsInferred": "React, Node",
        "keywordsAdded": None,
    })
    gateway = gateway_for(paid_context, health, gemini)
    bag = {"text": "worked on react dashboards for analysts", "context": "bullet"}

    output = await RewritePremiumUnit(seed=1).execute(bag, paid_context, gateway)

    assert output.success
    assert output.origin == OutputOrigin.GENERATED
    assert output.data["skills_inferred"] == ["React, Node"]
    assert output.data["changes"][-1] == "Added metric"
    assert output.data["keywords_added"] == []


async def test_paid_rewrite_normalizes_loosely_shaped_model_json(paid_context, health):
    openai = FakeBackend("openai", {
        "rewritten": "Built a billing service that processes invoices for enterprise customers",
        "changes": "Tightened wording",
        "keywordsAdded": {"unexpected": "shape"},
    })
    gateway = gateway_for(paid_context, health, openai)

    output = await RewritePaidUnit().execute({"text": CLEAN_LONG_TEXT}, paid_context, gateway)

    assert output.success
    assert output.origin == OutputOrigin.GENERATED
    assert output.data["changes"] == ["Tightened wording"]
    assert output.data["keywords_added"] == []


async def test_premium_rewrite_invalid_model_result_falls_back(paid_context, health, monkeypatch):
    monkeypatch.setattr("hiring_reality.agents.rewrite.highlight_changes", lambda analysis: [{"type": "bogus"}])
    gateway = gateway_for(paid_context, health, FakeBackend("gemini", {"rewritten": "Led dashboards"}))
    bag = {"text": "worked on dashboards", "context": "bullet"}

    output = await RewritePremiumUnit(seed=5).execute(bag, paid_context, gateway)

    assert output.success
    assert output.origin == OutputOrigin.APPROXIMATED
    assert output.data["confidence"] == 0.5
    assert output.data["rewritten"] != "Led dashboards"
