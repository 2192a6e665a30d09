"""
Unit tests for the company-day helpers in app.shared.timezone.
"""

from datetime import date, datetime, timezone

import pytest

from app.shared.timezone import (
    IST,
    company_day_bounds,
    parse_day,
    resolve_zone,
    to_company_day,
    to_naive_utc,
)


def test_to_naive_utc_converts_aware_datetimes():
    aware = datetime(2026, 3, 10, 11, 30, tzinfo=IST)
    assert to_naive_utc(aware) == datetime(2026, 3, 10, 6, 0)


def test_to_naive_utc_keeps_naive_datetimes():
    naive = datetime(2026, 3, 10, 6, 0)
    assert to_naive_utc(naive) is naive


class TestToCompanyDay:

    def test_late_utc_evening_is_next_day_in_india(self):
        assert to_company_day(datetime(2026, 3, 10, 20, 0), "Asia/Kolkata") == "2026-03-11"

    def test_same_instant_is_still_previous_day_in_new_york(self):
        assert to_company_day(datetime(2026, 3, 10, 20, 0), "America/New_York") == "2026-03-10"

    def test_aware_datetime_uses_its_own_offset(self):
        aware = datetime(2026, 3, 10, 23, 30, tzinfo=timezone.utc)
        assert to_company_day(aware, "Asia/Kolkata") == "2026-03-11"

    def test_date_and_string_pass_through(self):
        assert to_company_day(date(2026, 3, 10), "Asia/Kolkata") == "2026-03-10"
        assert to_company_day("2026-03-10", "Asia/Kolkata") == "2026-03-10"

    def test_invalid_string_raises(self):
        with pytest.raises(ValueError):
            to_company_day("10/03/2026", "Asia/Kolkata")


def test_company_day_bounds_cover_local_midnight_to_midnight():
    start, end = company_day_bounds("2026-03-10", "Asia/Kolkata")

    assert start == datetime(2026, 3, 9, 18, 30)
    assert end == datetime(2026, 3, 10, 18, 30)


def test_unknown_zone_falls_back_to_ist():
    assert resolve_zone("Mars/Olympus_Mons") == IST
    assert resolve_zone(None) == IST


def test_parse_day_rejects_impossible_dates():
    with pytest.raises(ValueError):
        parse_day("2026-02-30")
