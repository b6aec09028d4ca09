"""
Tests — core.time
===================
Clocks as the pricing layer uses them: cache expiry and campaign windows.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from core.time import FixedClock, SystemClock, TimeWindow, get_default_clock, is_expired


OPENING = datetime(2026, 3, 2, 8, 30, tzinfo=timezone.utc)


class TestClocks:
    def test_system_clock_is_utc(self):
        assert SystemClock().now_utc().tzinfo == timezone.utc

    def test_default_clock_is_system_clock(self):
        assert isinstance(get_default_clock(), SystemClock)
        assert get_default_clock() is get_default_clock()

    def test_fixed_clock_stands_still_until_advanced(self):
        clock = FixedClock(OPENING)
        assert clock.now_utc() == clock.now_utc() == OPENING
        clock.advance(90)
        clock.advance(0.5)
        assert clock.now_utc() == OPENING + timedelta(seconds=90.5)

    def test_fixed_clock_needs_aware_datetime(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            FixedClock(datetime(2026, 3, 2, 8, 30))


class TestCampaignWindow:
    WEEKEND = TimeWindow(
        start=datetime(2026, 3, 7, tzinfo=timezone.utc),
        end=datetime(2026, 3, 8, 23, 59, 59, tzinfo=timezone.utc),
    )

    @pytest.mark.parametrize(
        "moment,inside",
        [
            (datetime(2026, 3, 6, 23, 59, 59, tzinfo=timezone.utc), False),
            (datetime(2026, 3, 7, tzinfo=timezone.utc), True),
            (datetime(2026, 3, 8, 12, tzinfo=timezone.utc), True),
            (datetime(2026, 3, 8, 23, 59, 59, tzinfo=timezone.utc), True),
            (datetime(2026, 3, 9, tzinfo=timezone.utc), False),
        ],
    )
    def test_bounds_are_inclusive(self, moment, inside):
        assert self.WEEKEND.contains(moment) is inside

    def test_unbounded_window_always_contains(self):
        assert TimeWindow().contains(OPENING)

    def test_open_ended_campaign(self):
        launched = TimeWindow(start=OPENING)
        assert launched.contains(OPENING + timedelta(days=3650))
        assert not launched.contains(OPENING - timedelta(seconds=1))

    def test_campaign_without_start(self):
        closing = TimeWindow(end=OPENING)
        assert closing.contains(datetime(2000, 1, 1, tzinfo=timezone.utc))
        assert not closing.contains(OPENING + timedelta(seconds=1))

    def test_reversed_window_rejected(self):
        with pytest.raises(ValueError, match="after its end"):
            TimeWindow(start=OPENING, end=OPENING - timedelta(days=1))


class TestExpiry:
    def test_live_up_to_and_including_ttl(self):
        assert not is_expired(OPENING, 300, OPENING + timedelta(seconds=299))
        assert not is_expired(OPENING, 300, OPENING + timedelta(seconds=300))

    def test_expired_past_ttl(self):
        assert is_expired(OPENING, 300, OPENING + timedelta(seconds=300, microseconds=1))
