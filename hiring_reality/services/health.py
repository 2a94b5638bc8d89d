"""Process-wide provider health tracking.

Provider outages are global, not per user, so one registry is shared by every
session. Access is serialized with a lock because concurrent runs may report
failures for the same provider at the same time.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class ProviderHealth:
    available: bool = True
    consecutive_errors: int = 0
    last_error_at: Optional[float] = None


class ProviderHealthRegistry:
    """Consecutive-failure cooldown for each provider.

    A provider is benched after ``failure_threshold`` consecutive failures and
    comes back once ``cooldown_seconds`` have passed since the last failure.
    Recovery is lazy: it happens inside ``is_available``, there is no timer.

    Usage:
        health = ProviderHealthRegistry(failure_threshold=2, cooldown_seconds=60)
        if health.is_available("groq"):
            ...
    """

    def __init__(
        self,
        failure_threshold: int = 2,
        cooldown_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._providers: Dict[str, ProviderHealth] = {}

    def _get(self, provider: str) -> ProviderHealth:
        if provider not in self._providers:
            self._providers[provider] = ProviderHealth()
        return self._providers[provider]

    def is_available(self, provider: str) -> bool:
        with self._lock:
            status = self._get(provider)
            if not status.available and status.last_error_at is not None:
                if self._clock() - status.last_error_at >= self.cooldown_seconds:
                    logger.info(f"Provider {provider} recovered after cooldown")
                    status.available = True
                    status.consecutive_errors = 0
            return status.available

    def record_failure(self, provider: str) -> None:
        with self._lock:
            status = self._get(provider)
            status.consecutive_errors += 1
            status.last_error_at = self._clock()
            if status.available and status.consecutive_errors >= self.failure_threshold:
                status.available = False
                logger.warning(
                    f"Provider {provider} unavailable for {self.cooldown_seconds:.0f}s "
                    f"after {status.consecutive_errors} consecutive failures"
                )

    def record_success(self, provider: str) -> None:
        with self._lock:
            self._get(provider).consecutive_errors = 0

    def status(self) -> Dict[str, ProviderHealth]:
        """Copy of the current per-provider state (no recovery applied)."""
        with self._lock:
            return {
                name: ProviderHealth(
                    available=s.available,
                    consecutive_errors=s.consecutive_errors,
                    last_error_at=s.last_error_at,
                )
                for name, s in self._providers.items()
            }

    def reset(self) -> None:
        with self._lock:
            self._providers.clear()


# Global registry instance
_registry: Optional[ProviderHealthRegistry] = None
_registry_lock = threading.Lock()


def get_health_registry(
    failure_threshold: int = 2,
    cooldown_seconds: float = 60.0,
) -> ProviderHealthRegistry:
    """Get or create the shared provider health registry.

    Settings only apply on first creation.
    """
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = ProviderHealthRegistry(failure_threshold, cooldown_seconds)
        return _registry
