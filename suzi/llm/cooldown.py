"""
Cooldown Tracker — a lightweight per-provider circuit breaker.

A provider that fails in a way that signals sustained degradation
(rate limit, timeout, server error) is skipped for a fixed interval.
Failures attributable to the request or to configuration (auth,
invalid request) never trip it, and neither do opaque network/unknown
failures unless they carry a 5xx status.

State is a map provider -> monotonic "unavailable until"; absent or past
means available. Read-then-act without locks: losing a race costs at
most one redundant call.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from suzi.llm.types import ErrorType, LLMFailure, ProviderId

logger = logging.getLogger(__name__)

_COOLDOWN_ERROR_TYPES = frozenset({
    ErrorType.RATE_LIMIT,
    ErrorType.TIMEOUT,
    ErrorType.SERVER,
})


def should_cooldown(error_type: ErrorType, status: Optional[int] = None) -> bool:
    """True for rate_limit, timeout, server, or any status >= 500."""
    if error_type in _COOLDOWN_ERROR_TYPES:
        return True
    return status is not None and status >= 500


class CooldownTracker:
    """Per-provider "do not use until" timestamps."""

    def __init__(
        self,
        cooldown_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._cooldown = cooldown_seconds
        self._clock = clock
        self._until: dict[ProviderId, float] = {}

    def is_available(self, provider: ProviderId) -> bool:
        return self._clock() >= self._until.get(provider, 0.0)

    def mark_unavailable(self, provider: ProviderId) -> None:
        self._until[provider] = self._clock() + self._cooldown
        logger.warning(
            "llm_cooldown_marked",
            extra={"provider": provider.value, "cooldown_seconds": self._cooldown},
        )

    def record_failure(self, failure: LLMFailure) -> bool:
        """Apply the cooldown policy to a failure. Returns True if marked."""
        if should_cooldown(failure.error_type, failure.status):
            self.mark_unavailable(failure.provider)
            return True
        return False

    def remaining_seconds(self, provider: ProviderId) -> float:
        return max(0.0, self._until.get(provider, 0.0) - self._clock())

    def clear(self, provider: Optional[ProviderId] = None) -> None:
        if provider is None:
            self._until.clear()
        else:
            self._until.pop(provider, None)
