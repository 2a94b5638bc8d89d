"""Core orchestration and assessment logic."""

from .catalog import CatalogError, PipelineCatalog
from .registry import TaskRegistry, build_default_registry
from .pipeline import PipelineOrchestrator, create_context
from .reality import assess

__all__ = [
    "CatalogError",
    "PipelineCatalog",
    "TaskRegistry",
    "build_default_registry",
    "PipelineOrchestrator",
    "create_context",
    "assess",
]
