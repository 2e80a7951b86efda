"""In-memory summary cache whose expiry is driven by an injected clock."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, Field

from threaddigest import config
from threaddigest.models import SummaryResult, TokenUsage

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CachedSummary(BaseModel):
    summary: str
    tokens_used: TokenUsage = Field(default_factory=TokenUsage)
    cost: float = 0.0
    cached_at: datetime
    expires_at: datetime

    def to_result(self, selected_ids: list[str]) -> SummaryResult:
        return SummaryResult(
            summary=self.summary,
            tokens_used=self.tokens_used,
            cost=self.cost,
            selected_ids=selected_ids,
        )


class CacheStats(BaseModel):
    size: int
    oldest_entry_age: timedelta | None = None


class SummaryCache:
    """Summaries keyed by topic and the set of message ids they cover.

    The cache registers no timers. Expired entries are dropped lazily on
    :meth:`get` and in bulk when the owner calls :meth:`cleanup`.
    """

    def __init__(
        self,
        clock: Clock = _utcnow,
        default_ttl: timedelta = timedelta(hours=config.SUMMARY_CACHE_TTL_HOURS),
    ) -> None:
        self._clock = clock
        self._default_ttl = default_ttl
        self._entries: dict[str, CachedSummary] = {}

    @staticmethod
    def key(message_ids: Iterable[str], topic: str) -> str:
        return f"{topic}:{','.join(sorted(message_ids))}"

    def get(self, message_ids: Iterable[str], topic: str) -> CachedSummary | None:
        key = self.key(message_ids, topic)
        cached = self._entries.get(key)
        if cached is None:
            return None

        now = self._clock()
        if now >= cached.expires_at:
            del self._entries[key]
            logger.debug("Summary cache expired [topic=%s]", topic)
            return None

        logger.debug(
            "Summary cache hit [topic=%s, age=%dmin]",
            topic,
            (now - cached.cached_at).total_seconds() // 60,
        )
        return cached

    def set(
        self,
        message_ids: Iterable[str],
        topic: str,
        result: SummaryResult,
        ttl: timedelta | None = None,
    ) -> CachedSummary:
        """Store *result*; the lifetime is never shorter than the default TTL."""
        ids = list(message_ids)
        lifetime = max(self._default_ttl, ttl or self._default_ttl)
        now = self._clock()
        entry = CachedSummary(
            summary=result.summary,
            tokens_used=result.tokens_used,
            cost=result.cost,
            cached_at=now,
            expires_at=now + lifetime,
        )
        self._entries[self.key(ids, topic)] = entry
        logger.debug(
            "Summary cached [topic=%s, messages=%d, tokens=%d]",
            topic,
            len(ids),
            result.tokens_used.input + result.tokens_used.output,
        )
        return entry

    def cleanup(self) -> int:
        """Drop expired entries; return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info("Summary cache cleanup removed %d entries", len(expired))
        return len(expired)

    def stats(self) -> CacheStats:
        now = self._clock()
        ages = [now - entry.cached_at for entry in self._entries.values()]
        return CacheStats(size=len(self._entries), oldest_entry_age=max(ages, default=None))

    def clear(self) -> None:
        size = len(self._entries)
        self._entries.clear()
        logger.info("Summary cache cleared (%d entries)", size)

    def __len__(self) -> int:
        return len(self._entries)
