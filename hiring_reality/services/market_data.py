"""Market Data Service - offline role reference for market reality lookups.

Loads the role table from YAML and resolves free-form target roles onto it.
"""

import yaml
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..models.schemas import MarketReality

logger = logging.getLogger(__name__)


DEFAULT_MARKET_DATA_PATH = Path(__file__).resolve().parent.parent / "data" / "market_roles.yaml"


def _contains_phrase(text: str, phrase: str) -> bool:
    return re.search(rf"(?<![a-z0-9]){re.escape(phrase)}(?![a-z0-9])", text) is not None


class MarketDataService:
    """Service for offline market lookups.

    Resolution order for a target role:
    - Direct match on the canonical title
    - Partial match (either title contains the other)
    - Synonyms, longest first, so "react developer" wins over "developer"
    """

    def __init__(self, yaml_path: Optional[Path] = None):
        self.yaml_path = yaml_path or DEFAULT_MARKET_DATA_PATH
        self._roles: Dict[str, MarketReality] = {}
        self._synonyms: List[Tuple[str, str]] = []
        self._loaded = False

    def load(self) -> None:
        """Load role table from YAML file."""
        if not self.yaml_path.exists():
            logger.warning(f"Market data file not found: {self.yaml_path}")
            return

        try:
            with open(self.yaml_path, encoding="utf-8") as f:
                raw_data = yaml.safe_load(f) or {}

            self._roles = {
                key.lower(): MarketReality.model_validate(role_data)
                for key, role_data in (raw_data.get("roles") or {}).items()
            }
            synonyms = raw_data.get("synonyms") or {}
            self._synonyms = sorted(
                ((alias.lower(), canonical.lower()) for alias, canonical in synonyms.items()),
                key=lambda pair: len(pair[0]),
                reverse=True,
            )

            logger.info(
                f"Loaded market data: {len(self._roles)} roles, {len(self._synonyms)} synonyms"
            )
            self._loaded = True

        except Exception as e:
            logger.error(f"Failed to load market data: {e}")
            raise

    @property
    def roles(self) -> List[str]:
        if not self._loaded:
            self.load()
        return list(self._roles)

    def find_role(self, target_role: str) -> Optional[MarketReality]:
        """Offline market data for a role, or None when the role is unknown."""
        if not self._loaded:
            self.load()

        role = (target_role or "").strip().lower()
        if not role:
            return None

        if role in self._roles:
            return self._roles[role].model_copy(deep=True)

        for key, data in self._roles.items():
            if key in role or role in key:
                return data.model_copy(deep=True)

        for alias, canonical in self._synonyms:
            if _contains_phrase(role, alias) and canonical in self._roles:
                logger.debug(f"Resolved '{target_role}' to '{canonical}' via '{alias}'")
                return self._roles[canonical].model_copy(deep=True)

        return None


# Global service instance
_service: Optional[MarketDataService] = None


def get_market_service() -> MarketDataService:
    """Get or create the market data service instance."""
    global _service
    if _service is None:
        _service = MarketDataService()
        _service.load()
    return _service
