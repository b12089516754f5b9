# Overview: Pytest coverage for UTC helpers and local-calendar period starts.

import time
from datetime import date, datetime

import pytest

from stockroom.time_utils import local_period_start, parse_iso_datetime, to_utc_z, utc_day_bounds


def _pin_timezone(monkeypatch, name):
    monkeypatch.setenv("TZ", name)
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.fixture
def new_york(monkeypatch):
    """Server local time is US Eastern (DST from 2026-03-08 to 2026-11-01)."""
    yield from _pin_timezone(monkeypatch, "America/New_York")


@pytest.fixture
def utc_server(monkeypatch):
    yield from _pin_timezone(monkeypatch, "UTC")


class TestUtcHelpers:
    def test_parse_iso_normalizes_offset(self):
        assert parse_iso_datetime("2026-01-05T12:00:00+02:00") == datetime(2026, 1, 5, 10, 0)
        assert parse_iso_datetime("2026-01-05T12:00:00Z") == datetime(2026, 1, 5, 12, 0)

    def test_parse_iso_blank(self):
        assert parse_iso_datetime("") is None
        assert parse_iso_datetime(None) is None

    def test_to_utc_z(self):
        assert to_utc_z(datetime(2026, 1, 5, 12, 0, 0, 500)) == "2026-01-05T12:00:00Z"

    def test_day_bounds_half_open(self):
        start, end = utc_day_bounds(date(2026, 1, 5))
        assert start == datetime(2026, 1, 5)
        assert end == datetime(2026, 1, 6)


class TestLocalPeriodStart:
    def test_year_start_uses_winter_offset(self, new_york):
        """Jan 1 midnight is EST (UTC-5) even when now is in EDT."""
        assert local_period_start("year", datetime(2026, 7, 15, 12, 0)) == datetime(2026, 1, 1, 5, 0)

    def test_month_start_uses_offset_of_the_first(self, new_york):
        """Nov 1 midnight is still EDT (UTC-4) although now is in EST."""
        assert local_period_start("month", datetime(2026, 11, 15, 12, 0)) == datetime(2026, 11, 1, 4, 0)

    def test_today_on_spring_forward_day(self, new_york):
        """Midnight before the 02:00 switch is EST."""
        assert local_period_start("today", datetime(2026, 3, 8, 16, 0)) == datetime(2026, 3, 8, 5, 0)

    def test_today_follows_local_date(self, new_york):
        """03:00 UTC on Jan 15 is still Jan 14 in New York."""
        assert local_period_start("today", datetime(2026, 1, 15, 3, 0)) == datetime(2026, 1, 14, 5, 0)

    def test_week_is_exact_hours_across_dst(self, new_york):
        now = datetime(2026, 3, 10, 12, 0)
        assert local_period_start("week", now) == datetime(2026, 3, 3, 12, 0)

    def test_utc_server_boundaries(self, utc_server):
        now = datetime(2026, 3, 15, 12, 0)
        assert local_period_start("today", now) == datetime(2026, 3, 15)
        assert local_period_start("month", now) == datetime(2026, 3, 1)
        assert local_period_start("year", now) == datetime(2026, 1, 1)

    def test_starts_not_after_now(self):
        now = datetime(2026, 3, 15, 12, 0)
        for period in ("today", "week", "month", "year"):
            assert local_period_start(period, now) <= now

    def test_unknown_period(self):
        with pytest.raises(ValueError):
            local_period_start("fortnight")
