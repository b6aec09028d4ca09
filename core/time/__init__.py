"""
POS Core Time — Public API
============================
"""

from core.time.clock import Clock, FixedClock, SystemClock, get_default_clock
from core.time.temporal import TimeWindow, is_expired

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "get_default_clock",
    "TimeWindow",
    "is_expired",
]
