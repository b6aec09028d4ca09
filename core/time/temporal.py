"""
POS Core Time — Windows and Expiry
====================================
Pure functions over explicit datetimes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class TimeWindow:
    """
    Campaign validity interval, inclusive at both ends.

    A None bound is open: no start means "always started", no end means
    "never expires".
    """

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError(
                f"TimeWindow start ({self.start}) is after its end ({self.end})."
            )

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        return self.end is None or moment <= self.end


def is_expired(created_at: datetime, ttl_seconds: float, now: datetime) -> bool:
    """True once strictly more than ttl_seconds have passed since created_at."""
    return (now - created_at).total_seconds() > ttl_seconds
