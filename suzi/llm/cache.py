"""
Answer Cache — In-memory caching of router answers with TTL.

Keys are fingerprints of (guild, user, question type, normalized
question), so the same question text asked in another guild, by another
user or under another type never shares an entry. Tenant isolation comes
from the key itself, not from an access check.

Expired entries are treated as absent and evicted lazily on lookup;
there is no background sweep. No capacity bound by default.

Usage:
    from suzi.llm.cache import ResponseCache

    cache = ResponseCache(ttl_seconds=180)

    key = cache.make_key(guild_id="g1", user_id="u1",
                         question_type=QuestionType.GAME,
                         question="Best class in Elden Ring?")
    entry = cache.get(key)
    if entry is None:
        ...
        cache.put(key, text, provider=ProviderId.GROQ, model=model,
                  intent=Intent.QUICK_FACT)
"""

from __future__ import annotations

import hashlib
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional

from suzi.llm.intent import normalize_question
from suzi.llm.types import Intent, ProviderId, QuestionType

logger = logging.getLogger(__name__)

DEFAULT_QUESTION_TYPE = QuestionType.GAME


# ---------------------------------------------------------------------------
# Cache Entry
# ---------------------------------------------------------------------------

@dataclass
class CacheEntry:
    """A cached answer with its origin."""

    key: str
    text: str
    provider: ProviderId
    model: str
    intent: Intent
    created_at: float             # clock() at store time
    hit_count: int = 0


# ---------------------------------------------------------------------------
# Response Cache
# ---------------------------------------------------------------------------

class ResponseCache:
    """
    In-memory answer cache with TTL expiration.

    Safe for single-threaded asyncio: every operation is synchronous, so
    no await point splits a read from its write.
    """

    def __init__(
        self,
        ttl_seconds: float = 180.0,
        *,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be None or >= 1, got {max_entries}")

        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock

        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

        self._hits: int = 0
        self._misses: int = 0
        self._evictions: int = 0
        self._stores: int = 0

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    @property
    def hit_rate(self) -> float:
        total = self._hits + self._misses
        return self._hits / total if total > 0 else 0.0

    # --- Key Generation ---

    @staticmethod
    def make_key(
        *,
        guild_id: Optional[str],
        user_id: Optional[str],
        question_type: Optional[QuestionType],
        question: str,
    ) -> str:
        """
        Build the fingerprint `guild:user:type:hash`.

        Missing scope parts default to `dm` / `anon` / GAME. The hash is
        the first 16 hex chars of SHA-256 over the normalized question.
        """
        scope_guild = guild_id or "dm"
        scope_user = user_id or "anon"
        qtype = (question_type or DEFAULT_QUESTION_TYPE).value
        digest = hashlib.sha256(normalize_question(question).encode()).hexdigest()[:16]
        return f"{scope_guild}:{scope_user}:{qtype}:{digest}"

    # --- Core Operations ---

    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Look up a cached answer.

        Returns the entry if found and not older than the TTL, otherwise
        None. Expired entries are evicted here.
        """
        entry = self._entries.get(key)

        if entry is None:
            self._misses += 1
            return None

        if self._clock() - entry.created_at > self._ttl:
            del self._entries[key]
            self._misses += 1
            self._evictions += 1
            return None

        entry.hit_count += 1
        self._hits += 1

        logger.debug(
            "cache_hit",
            extra={
                "provider": entry.provider.value,
                "model": entry.model,
                "hit_count": entry.hit_count,
            },
        )
        return entry

    def put(
        self,
        key: str,
        text: str,
        *,
        provider: ProviderId,
        model: str,
        intent: Intent,
    ) -> CacheEntry:
        """Store (or overwrite) the answer for a fingerprint."""
        if key in self._entries:
            del self._entries[key]

        if self._max_entries is not None:
            while self._entries and len(self._entries) >= self._max_entries:
                self._entries.popitem(last=False)
                self._evictions += 1

        entry = CacheEntry(
            key=key,
            text=text,
            provider=provider,
            model=model,
            intent=intent,
            created_at=self._clock(),
        )
        self._entries[key] = entry
        self._stores += 1
        return entry

    def clear(self) -> int:
        """Clear all cached entries. Returns number of entries cleared."""
        count = len(self._entries)
        self._entries.clear()
        return count

    # --- Stats ---

    def get_stats(self) -> dict[str, Any]:
        """Return cache performance statistics."""
        return {
            "size": self.size,
            "max_entries": self._max_entries,
            "ttl_seconds": self._ttl,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self.hit_rate, 3),
            "evictions": self._evictions,
            "stores": self._stores,
        }
