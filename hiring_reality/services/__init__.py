"""External service integrations."""

from .gateway import (
    ProviderGateway,
    GatewayError,
    LimitReachedError,
    BudgetExhaustedError,
    ProvidersUnavailableError,
)
from .health import ProviderHealthRegistry, get_health_registry
from .llm_service import (
    CompletionRequest,
    CompletionResponse,
    LLMBackend,
    LangChainBackend,
    build_backends,
    parse_json_response,
)

__all__ = [
    "ProviderGateway",
    "GatewayError",
    "LimitReachedError",
    "BudgetExhaustedError",
    "ProvidersUnavailableError",
    "ProviderHealthRegistry",
    "get_health_registry",
    "CompletionRequest",
    "CompletionResponse",
    "LLMBackend",
    "LangChainBackend",
    "build_backends",
    "parse_json_response",
]
