"""Tests for daily per-provider usage counters."""

from __future__ import annotations

from datetime import datetime, timezone

from suzi.llm.types import ProviderId
from suzi.llm.usage import UsageCounters, today_key


class TestTodayKey:

    def test_format(self):
        now = datetime(2026, 3, 9, 15, 0, tzinfo=timezone.utc)
        assert today_key("UTC", now) == "2026-03-09"

    def test_timezone_shifts_day(self):
        now = datetime(2026, 3, 9, 1, 30, tzinfo=timezone.utc)
        assert today_key("America/Sao_Paulo", now) == "2026-03-08"

    def test_invalid_timezone_falls_back(self):
        now = datetime(2026, 3, 9, 12, 0)
        assert today_key("Not/AZone", now) == "2026-03-09"


class TestUsageCounters:

    def test_bump_counts(self):
        counters = UsageCounters(day_key_fn=lambda: "2026-01-01")
        assert counters.bump(ProviderId.GROQ) == 1
        assert counters.bump(ProviderId.GROQ) == 2
        assert counters.count_today(ProviderId.GROQ) == 2
        assert counters.count_today(ProviderId.GEMINI) == 0

    def test_rollover_on_new_day(self):
        day = {"key": "2026-01-01"}
        counters = UsageCounters(day_key_fn=lambda: day["key"])
        counters.bump(ProviderId.GEMINI)
        counters.bump(ProviderId.GEMINI)

        day["key"] = "2026-01-02"
        assert counters.count_today(ProviderId.GEMINI) == 0
        assert counters.bump(ProviderId.GEMINI) == 1

    def test_snapshot_covers_every_provider(self):
        counters = UsageCounters(day_key_fn=lambda: "d")
        counters.bump(ProviderId.POE)
        assert counters.snapshot() == {"gemini": 0, "groq": 0, "poe": 1}
