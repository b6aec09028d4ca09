"""
POS Core Time — Clock
=======================
Pricing rules never read the wall clock. The pieces that need "now"
(rule-set cache expiry, campaign validity at the HTTP edge, refund
stamping) are handed a Clock.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now_utc(self) -> datetime:
        ...  # pragma: no cover


class SystemClock:
    """Wall-clock time in UTC."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Frozen time for tests; advance() steps it forward, e.g. past a
    cache TTL or a campaign's valid_to.
    """

    def __init__(self, at: datetime) -> None:
        if at.tzinfo is None:
            raise ValueError("FixedClock needs a timezone-aware datetime.")
        self._at = at

    def now_utc(self) -> datetime:
        return self._at

    def advance(self, seconds: float) -> None:
        self._at += timedelta(seconds=seconds)


_SYSTEM_CLOCK = SystemClock()


def get_default_clock() -> Clock:
    """Clock used when a component is built without one."""
    return _SYSTEM_CLOCK
