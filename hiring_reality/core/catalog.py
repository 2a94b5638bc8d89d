"""Pipeline catalog - declarative step lists loaded from YAML."""

import yaml
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from pydantic import ValidationError

from ..models.state import PipelineDefinition, StepSpec

logger = logging.getLogger(__name__)


DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "pipelines.yaml"


class CatalogError(Exception):
    """Pipeline definitions could not be loaded."""
    pass


def parse_pipelines(raw_data: Dict[str, Any]) -> Dict[str, PipelineDefinition]:
    """Build frozen pipeline definitions from a parsed YAML mapping.

    Raises:
        CatalogError: A pipeline is not a mapping, has no steps, or a step
            is missing ``unit``/``output_key``.
    """
    if not isinstance(raw_data, dict):
        raise CatalogError("Pipeline catalog must be a mapping of pipeline names")

    pipelines: Dict[str, PipelineDefinition] = {}
    for name, body in raw_data.items():
        if not isinstance(body, dict) or not body.get("steps"):
            raise CatalogError(f"Pipeline '{name}' has no steps")
        try:
            steps = tuple(
                StepSpec(
                    unit=step["unit"],
                    requires=tuple(step.get("requires") or ()),
                    output_key=step["output_key"],
                    optional=bool(step.get("optional", False)),
                )
                for step in body["steps"]
            )
            pipelines[name] = PipelineDefinition(
                name=name,
                description=body.get("description", ""),
                steps=steps,
            )
        except (KeyError, TypeError, ValidationError) as e:
            raise CatalogError(f"Invalid step in pipeline '{name}': {e}") from e
    return pipelines


class PipelineCatalog:
    """Named pipelines, loaded once at startup.

    Usage:
        catalog = PipelineCatalog.load()
        definition = catalog.get("full_processing")
    """

    def __init__(self, pipelines: Dict[str, PipelineDefinition]):
        self._pipelines = dict(pipelines)

    @classmethod
    def load(cls, yaml_path: Optional[Path] = None) -> "PipelineCatalog":
        path = yaml_path or DEFAULT_CATALOG_PATH
        if not path.exists():
            raise CatalogError(f"Pipeline catalog not found: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                raw_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise CatalogError(f"Failed to parse pipeline catalog {path}: {e}") from e

        pipelines = parse_pipelines(raw_data or {})
        logger.info(f"Loaded {len(pipelines)} pipelines from {path.name}")
        return cls(pipelines)

    def get(self, name: str) -> Optional[PipelineDefinition]:
        return self._pipelines.get(name)

    @property
    def names(self) -> List[str]:
        return list(self._pipelines)

    def __contains__(self, name: str) -> bool:
        return name in self._pipelines

    def __iter__(self) -> Iterator[PipelineDefinition]:
        return iter(self._pipelines.values())
