from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings
from typing import Dict, List, Literal, Optional
from pathlib import Path


ProviderName = Literal["gemini", "groq", "openai"]

DEFAULT_MODELS: Dict[str, str] = {
    "gemini": "gemini-1.5-flash",
    "groq": "llama-3.3-70b-versatile",
    "openai": "gpt-4o-mini",
}


class ProviderConfig(BaseModel):
    """Connection settings for one text-generation provider."""
    model: Optional[str] = Field(
        default=None,
        description="Model identifier (falls back to the provider default)"
    )
    api_key: Optional[str] = Field(
        default=None,
        description="API key; a provider without a key is never registered"
    )
    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Lower = more deterministic outputs"
    )
    max_tokens: int = Field(
        default=4096,
        ge=1,
        description="Upper bound when a request does not set its own"
    )


class BudgetConfig(BaseModel):
    """Per-tier call quotas. Paid tier unlocks the premium-only provider."""
    free: Dict[str, int] = Field(
        default_factory=lambda: {"gemini": 60, "groq": 30, "openai": 0}
    )
    paid: Dict[str, int] = Field(
        default_factory=lambda: {"gemini": 120, "groq": 60, "openai": 25}
    )


class GatewayConfig(BaseModel):
    """Provider health and fallback settings."""
    failure_threshold: int = Field(
        default=2,
        ge=1,
        description="Consecutive failures before a provider is put on cooldown"
    )
    cooldown_seconds: float = Field(
        default=60.0,
        ge=0.0,
        description="How long an unavailable provider stays benched"
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="Seconds before a single provider call is abandoned"
    )
    free_chain: List[str] = Field(default_factory=lambda: ["gemini", "groq"])
    paid_chain: List[str] = Field(
        default_factory=lambda: ["gemini", "groq", "openai"]
    )


class PipelineConfig(BaseModel):
    """Orchestrator behavior."""
    halt_on_required_failure: bool = Field(
        default=False,
        description="Stop the run after the first failed non-optional step"
    )
    catalog_path: Optional[Path] = Field(
        default=None,
        description="Custom pipelines YAML (uses the bundled catalog if None)"
    )


class AppConfig(BaseSettings):
    """Root application configuration.

    Loads from environment variables with the HIRING_ prefix.
    Example: HIRING_GROQ__API_KEY for groq.api_key
    """
    gemini: ProviderConfig = Field(default_factory=ProviderConfig)
    groq: ProviderConfig = Field(default_factory=ProviderConfig)
    openai: ProviderConfig = Field(
        default_factory=lambda: ProviderConfig(temperature=0.4)
    )
    budgets: BudgetConfig = Field(default_factory=BudgetConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    rewrite_seed: Optional[int] = Field(
        default=None,
        description="Seed for premium verb replacement (session id is used if None)"
    )
    debug: bool = Field(
        default=False,
        description="Enable verbose logging"
    )

    class Config:
        env_prefix = "HIRING_"
        env_nested_delimiter = "__"

    def provider(self, name: str) -> ProviderConfig:
        """Return the settings block for a provider by name."""
        return getattr(self, name)

    def model_for(self, name: str) -> str:
        return self.provider(name).model or DEFAULT_MODELS[name]
