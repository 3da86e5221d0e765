"""
Strategies for short-code generation in link_platform.

Provided strategies:
- RandomStrategy: `length` symbols drawn uniformly from the 62-symbol
  alphanumeric alphabet (A-Z, a-z, 0-9). Uniqueness is not the strategy's
  job: the storage backend re-checks it under the insert lock and the
  manager asks for a fresh code on collision.

Common helpers:
- _safe_len: Resolve/normalize desired code length from argument/config (clamped to [4, 32])

Configuration (via link_platform.config.settings):
- CODE_STRATEGY: "random" (default)
- CODE_LENGTH: Default code length (default 6; clamped 4..32)

Notes:
- Strategies are stateless; tests inject a seeded `random.Random` to get
  reproducible (and deliberately colliding) codes.
"""

import logging
import random
import string
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional, Type

from link_platform.config import settings

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
MIN_CODE_LENGTH = 4
MAX_CODE_LENGTH = 32


def _safe_len(length: Optional[int]) -> int:
    """
    Resolve desired code length from arg or config, clamped to [4, 32].
    """
    L = int(length) if length is not None else int(getattr(settings, "CODE_LENGTH", 6))
    return max(MIN_CODE_LENGTH, min(MAX_CODE_LENGTH, L))


class BaseStrategy(ABC):
    """Abstract base for code generation strategies."""
    @abstractmethod
    def generate(self, *, length: Optional[int] = None) -> str:
        """
        Produce one candidate short code of the requested length.
        Callers must still check the candidate for uniqueness.
        """
        raise NotImplementedError


@dataclass(frozen=True)
class RandomStrategy(BaseStrategy):
    """
    Random Base62 codes; rely on storage-level uniqueness (check under lock + retry).
    Uses the OS entropy source unless an explicit `rng` is injected.
    """
    rng: random.Random = field(default_factory=random.SystemRandom)

    def generate(self, *, length: Optional[int] = None) -> str:
        L = _safe_len(length)
        return "".join(self.rng.choice(ALPHABET) for _ in range(L))


# Strategy registry and factory
STRATEGY_REGISTRY: Dict[str, Type[BaseStrategy]] = {
    "random": RandomStrategy,
    "rand": RandomStrategy,
}


def get_strategy_from_config(name: Optional[str] = None) -> BaseStrategy:
    """
    Resolve the active strategy from parameter or settings.CODE_STRATEGY.
    Unknown names fall back to "random".
    """
    key = (name or getattr(settings, "CODE_STRATEGY", "random") or "random").strip().lower()
    cls = STRATEGY_REGISTRY.get(key)
    if cls is None:
        logger.warning("Unknown code strategy %r, falling back to 'random'", key)
        cls = RandomStrategy
    logger.debug("Using code strategy: %s -> %s", key, cls.__name__)
    return cls()
