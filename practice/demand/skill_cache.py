"""
Skill mapping cache.

Resolves stored skill references (skill ids) to the skill names demand is
reported under. The full mapping is loaded in one call and kept for a TTL
supplied by the owner; nothing is shared between instances.

Features:
- TTL with lazy reload on first read after expiry
- Explicit invalidate() / refresh()
- Unknown references resolve to themselves
- Hit/miss statistics
"""

import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

SkillLoader = Callable[[], dict[str, str]]


@dataclass
class SkillCacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    loads: int = 0
    size: int = 0
    age_seconds: float | None = None

    def to_dict(self) -> dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "loads": self.loads,
            "size": self.size,
            "age_seconds": self.age_seconds,
        }


class SkillMappingCache:
    """Thread-safe skill reference -> skill name mapping with a TTL."""

    def __init__(
        self,
        loader: SkillLoader | None = None,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            loader: Returns the complete {skill_ref: skill_name} mapping.
                None means every reference resolves to itself.
            ttl_seconds: Seconds a loaded mapping stays fresh.
            clock: Monotonic time source.
        """
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._mapping: dict[str, str] = {}
        self._loaded_at: float | None = None
        self._hits = 0
        self._misses = 0
        self._loads = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def is_stale(self) -> bool:
        with self._lock:
            if self._loaded_at is None:
                return True
            return self._clock() - self._loaded_at >= self._ttl

    def refresh(self) -> int:
        """
        Reload the mapping now.

        Returns:
            Number of mapped skills after reload
        """
        with self._lock:
            if self._loader is None:
                self._mapping = {}
            else:
                mapping = self._loader() or {}
                self._mapping = {str(k): str(v) for k, v in mapping.items()}
            self._loaded_at = self._clock()
            self._loads += 1
            logger.debug("Skill mapping loaded: %d entries", len(self._mapping))
            return len(self._mapping)

    def invalidate(self) -> None:
        """Drop the mapping; the next read reloads it."""
        with self._lock:
            self._mapping = {}
            self._loaded_at = None

    def get(self, skill_ref: str) -> str:
        """Skill name for a reference, or the reference itself if unmapped."""
        with self._lock:
            if self.is_stale():
                self.refresh()
            name = self._mapping.get(skill_ref)
            if name is None:
                self._misses += 1
                return skill_ref
            self._hits += 1
            return name

    def resolve_many(self, skill_refs: Iterable[str]) -> list[str]:
        """Resolve references, dropping exact duplicates, keeping first-seen order."""
        seen: dict[str, None] = {}
        for ref in skill_refs:
            seen.setdefault(self.get(ref), None)
        return list(seen)

    def stats(self) -> SkillCacheStats:
        with self._lock:
            age = None if self._loaded_at is None else self._clock() - self._loaded_at
            return SkillCacheStats(
                hits=self._hits,
                misses=self._misses,
                loads=self._loads,
                size=len(self._mapping),
                age_seconds=age,
            )
