import pytest

from hiring_reality.core import CatalogError, PipelineCatalog, TaskRegistry, build_default_registry
from hiring_reality.core.catalog import parse_pipelines
from hiring_reality.agents import SectionPriorityUnit


EXPECTED_PIPELINES = {
    "full_processing",
    "jd_analysis",
    "ats_comparison",
    "rewrite_free",
    "rewrite_paid",
    "rewrite_premium",
    "validation",
    "profile_classification",
}


def test_bundled_catalog_loads():
    catalog = PipelineCatalog.load()

    assert set(catalog.names) == EXPECTED_PIPELINES
    full = catalog.get("full_processing")
    assert [s.unit for s in full.steps] == [
        "resume_parser",
        "user_profiler",
        "jd_intelligence",
        "market_reality",
        "ats_reality_matcher",
        "section_priority",
        "truth_validator",
    ]
    assert full.steps[-1].optional
    assert not any(s.optional for s in full.steps[:-1])


def test_every_catalog_unit_is_registered():
    catalog = PipelineCatalog.load()
    registry = build_default_registry()

    for definition in catalog:
        for step in definition.steps:
            assert step.unit in registry, f"{definition.name} uses unknown unit {step.unit}"


def test_definitions_are_frozen():
    definition = PipelineCatalog.load().get("validation")

    with pytest.raises(Exception):
        definition.steps[0].unit = "something_else"


def test_unknown_pipeline_is_none():
    catalog = PipelineCatalog.load()

    assert catalog.get("does_not_exist") is None
    assert "does_not_exist" not in catalog


def test_custom_catalog_file(tmp_path):
    path = tmp_path / "pipelines.yaml"
    path.write_text(
        "quick_check:\n"
        "  description: Just the truth check\n"
        "  steps:\n"
        "    - unit: truth_validator\n"
        "      requires: [text]\n"
        "      output_key: truth_validation\n"
    )

    catalog = PipelineCatalog.load(path)

    assert catalog.names == ["quick_check"]
    step = catalog.get("quick_check").steps[0]
    assert step.requires == ("text",)
    assert step.optional is False


def test_missing_catalog_file(tmp_path):
    with pytest.raises(CatalogError):
        PipelineCatalog.load(tmp_path / "nope.yaml")


def test_malformed_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("full_processing: [unclosed\n")

    with pytest.raises(CatalogError):
        PipelineCatalog.load(path)


@pytest.mark.parametrize("raw", [
    {"empty": {"steps": []}},
    {"no_output": {"steps": [{"unit": "truth_validator", "requires": ["text"]}]}},
    {"not_a_mapping": "truth_validator"},
])
def test_invalid_definitions_rejected(raw):
    with pytest.raises(CatalogError):
        parse_pipelines(raw)


def test_registry_replaces_by_name():
    registry = TaskRegistry()
    first, second = SectionPriorityUnit(), SectionPriorityUnit()

    registry.register(first)
    registry.register(second)

    assert registry.names == ["section_priority"]
    assert registry.get("section_priority") is second


def test_registry_rejects_nameless_unit():
    unit = SectionPriorityUnit()
    unit.name = ""

    with pytest.raises(ValueError):
        TaskRegistry().register(unit)
