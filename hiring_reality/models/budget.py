"""Per-session provider call quotas."""

from typing import Dict, Mapping

from pydantic import BaseModel, Field


class ProviderQuota(BaseModel):
    used: int = Field(default=0, ge=0)
    max: int = Field(default=0, ge=0)

    @property
    def remaining(self) -> int:
        return max(0, self.max - self.used)


class BudgetLedger(BaseModel):
    """Call counters for one session.

    Only the provider gateway mutates a ledger. Exhaustion is terminal: a
    fresh ledger (new session context) is the only way to reset it.
    """
    tier: str = "free"
    quotas: Dict[str, ProviderQuota] = Field(default_factory=dict)

    @classmethod
    def for_tier(cls, tier: str, limits: Mapping[str, int]) -> "BudgetLedger":
        return cls(
            tier=tier,
            quotas={name: ProviderQuota(max=limit) for name, limit in limits.items()},
        )

    def has_budget(self, provider: str) -> bool:
        quota = self.quotas.get(provider)
        return quota is not None and quota.used < quota.max

    def consume(self, provider: str) -> None:
        quota = self.quotas.get(provider)
        if quota is None:
            raise KeyError(f"No quota configured for provider: {provider}")
        quota.used += 1

    def remaining(self, provider: str) -> int:
        quota = self.quotas.get(provider)
        return quota.remaining if quota else 0

    def snapshot(self) -> Dict[str, Dict[str, int]]:
        """Plain copy of the counters, safe to hand to callers."""
        return {
            name: {"used": quota.used, "max": quota.max}
            for name, quota in self.quotas.items()
        }
