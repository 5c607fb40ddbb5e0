"""
Usage Counters — per-provider call counts for the current day.

Observability only; not authoritative for billing. A counter resets the
first time it is touched after the wall-clock day key changes. The day
key is computed in `USAGE_DAY_TZ` when set, otherwise in local time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from suzi.llm.types import ProviderId

logger = logging.getLogger(__name__)


def today_key(tz_name: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """Day key `YYYY-MM-DD`, in `tz_name` if it names a valid zone."""
    if tz_name:
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("usage_invalid_timezone", extra={"tz": tz_name})
        else:
            current = now.astimezone(tz) if now else datetime.now(tz)
            return current.strftime("%Y-%m-%d")
    current = now or datetime.now()
    return current.strftime("%Y-%m-%d")


@dataclass
class ProviderCounter:
    day_key: str
    count_today: int = 0


class UsageCounters:
    """Daily success counters keyed by provider."""

    def __init__(
        self,
        tz_name: Optional[str] = None,
        *,
        day_key_fn: Optional[Callable[[], str]] = None,
    ):
        self._day_key_fn = day_key_fn or (lambda: today_key(tz_name))
        self._counters: dict[ProviderId, ProviderCounter] = {}

    def bump(self, provider: ProviderId) -> int:
        """Count one successful call. Returns today's count."""
        day_key = self._day_key_fn()
        counter = self._counters.get(provider)
        if counter is None or counter.day_key != day_key:
            counter = ProviderCounter(day_key=day_key)
            self._counters[provider] = counter
        counter.count_today += 1
        return counter.count_today

    def count_today(self, provider: ProviderId) -> int:
        counter = self._counters.get(provider)
        if counter is None or counter.day_key != self._day_key_fn():
            return 0
        return counter.count_today

    def snapshot(self) -> dict[str, int]:
        return {provider.value: self.count_today(provider) for provider in ProviderId}
