"""Hiring Reality - task orchestration and honest resume assessment.

Runs declarative pipelines of analysis units over resume data, routing model
calls through a budget-aware provider gateway, and produces five-panel
reality assessments instead of a single ATS score.
"""

from .core import PipelineOrchestrator, assess, create_context
from .models import AppConfig, RealityAnalysis, ResumeData, RunResult

__version__ = "0.1.0"

__all__ = [
    "PipelineOrchestrator",
    "assess",
    "create_context",
    "AppConfig",
    "RealityAnalysis",
    "ResumeData",
    "RunResult",
]
