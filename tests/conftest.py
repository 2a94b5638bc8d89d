import json
from datetime import datetime
from typing import List, Union

import pytest

from hiring_reality.core import PipelineOrchestrator, create_context
from hiring_reality.core.catalog import PipelineCatalog
from hiring_reality.core.registry import build_default_registry
from hiring_reality.models import AppConfig
from hiring_reality.services.health import ProviderHealthRegistry
from hiring_reality.services.llm_service import CompletionRequest, CompletionResponse


NOW = datetime(2025, 6, 1)


class FakeBackend:
    """In-process provider: replays scripted responses, records every request.

    A scripted ``Exception`` is raised instead of returned. Once the script
    runs out, the last entry repeats.
    """

    def __init__(self, name: str, responses: Union[str, Exception, List] = "{}", tokens: int = 10):
        self.name = name
        self.responses = list(responses) if isinstance(responses, list) else [responses]
        self.tokens = tokens
        self.requests: List[CompletionRequest] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.requests.append(request)
        idx = min(len(self.requests) - 1, len(self.responses) - 1)
        response = self.responses[idx]
        if isinstance(response, Exception):
            raise response
        if not isinstance(response, str):
            response = json.dumps(response)
        return CompletionResponse(
            content=response,
            tokens_used=self.tokens,
            provider=self.name,
            model=f"{self.name}-fake",
        )


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def health(clock):
    return ProviderHealthRegistry(failure_threshold=2, cooldown_seconds=60, clock=clock)


@pytest.fixture
def config():
    return AppConfig(_env_file=None, rewrite_seed=7)


@pytest.fixture
def free_context(config, now):
    return create_context("session-free", tier="free", target_role="Backend Developer", now=now, config=config)


@pytest.fixture
def paid_context(config, now):
    return create_context("session-paid", tier="paid", target_role="Backend Developer", now=now, config=config)


@pytest.fixture
def make_orchestrator(config, health):
    """Factory: orchestrator over the bundled catalog with fake backends."""

    def _make(backends=None, registry=None, halt=False, catalog=None):
        cfg = config.model_copy(update={
            "pipeline": config.pipeline.model_copy(update={"halt_on_required_failure": halt}),
        })
        return PipelineOrchestrator(
            registry=registry or build_default_registry(cfg),
            catalog=catalog or PipelineCatalog.load(),
            backends=backends or {},
            health=health,
            config=cfg,
        )

    return _make


@pytest.fixture
def resume_data():
    """Mid-level backend developer, most recent role first."""
    return {
        "basics": {
            "fullName": "Priya Sharma",
            "email": "priya@example.com",
            "phone": "+91 98765 43210",
            "location": "Pune",
        },
        "summary": (
            "Backend developer with two years of experience building REST APIs in Python "
            "and Node.js for fintech products, focused on reliable payment flows and clean "
            "database design across high volume merchant integrations."
        ),
        "experience": [
            {
                "company": "Acme Fintech",
                "position": "Software Developer",
                "startDate": "2023-01",
                "endDate": "Present",
                "highlights": [
                    "Built payment reconciliation APIs in Python serving 40000 users across merchant partners",
                    "Reduced nightly batch runtime by 35% by rewriting PostgreSQL queries",
                    "Designed Docker based deployment pipeline that cut release time by 50%",
                ],
            },
            {
                "company": "Nimbus Labs",
                "position": "Junior Developer",
                "startDate": "2021-06",
                "endDate": "2022-12",
                "highlights": [
                    "Developed reporting service in Node.js handling 10000 requests per day",
                    "Migrated 12 legacy Excel reports to PostgreSQL dashboards",
                ],
            },
        ],
        "education": [
            {
                "institution": "University of Pune",
                "degree": "B.Tech",
                "field": "Computer Engineering",
                "graduationDate": "2021",
            }
        ],
        "projects": [
            {"name": "ledger-lite", "description": "Double-entry ledger API in Python"},
        ],
        "skills": ["Python", "Node.js", "PostgreSQL", "Docker", "AWS", "Git", "REST APIs"],
    }
