"""Tests for the period resolver and period navigation"""
import pytest
from datetime import date, datetime, timedelta

from nest.domain.errors import ValidationError
from nest.domain.period import (
    Period,
    RESET_PERIODS,
    STATIC,
    last_day_of_month,
    parse_reference_date,
    resolve_period,
    shift_period,
)


def _dates(start: date, end: date):
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


SAMPLE_DATES = list(_dates(date(2023, 12, 20), date(2025, 1, 15)))


class TestResolvePeriod:
    def test_weekly_wednesday(self):
        """2024-06-12 is a Wednesday -> Mon 10 .. Sun 16"""
        assert resolve_period("weekly", date(2024, 6, 12)) == Period(date(2024, 6, 10), date(2024, 6, 16))

    def test_weekly_sunday_belongs_to_previous_monday(self):
        assert resolve_period("weekly", date(2024, 6, 16)) == Period(date(2024, 6, 10), date(2024, 6, 16))

    def test_weekly_monday_starts_week(self):
        assert resolve_period("weekly", date(2024, 6, 17)).start == date(2024, 6, 17)

    def test_daily(self):
        d = date(2024, 2, 29)
        assert resolve_period("daily", d) == Period(d, d)

    def test_monthly_leap_february(self):
        assert resolve_period("monthly", date(2024, 2, 10)) == Period(date(2024, 2, 1), date(2024, 2, 29))

    def test_monthly_non_leap_february(self):
        assert resolve_period("monthly", date(2023, 2, 10)).end == date(2023, 2, 28)

    @pytest.mark.parametrize("d, expected", [
        (date(2024, 1, 1), Period(date(2024, 1, 1), date(2024, 3, 31))),
        (date(2024, 5, 15), Period(date(2024, 4, 1), date(2024, 6, 30))),
        (date(2024, 9, 30), Period(date(2024, 7, 1), date(2024, 9, 30))),
        (date(2024, 12, 31), Period(date(2024, 10, 1), date(2024, 12, 31))),
    ])
    def test_quarterly(self, d, expected):
        assert resolve_period("quarterly", d) == expected

    def test_annually(self):
        assert resolve_period("annually", date(2024, 7, 4)) == Period(date(2024, 1, 1), date(2024, 12, 31))

    def test_static_has_no_boundary(self):
        assert resolve_period(STATIC, date(2024, 6, 12)) is None
        assert resolve_period(STATIC, date(1999, 1, 1)) is None

    def test_unknown_period_rejected(self):
        with pytest.raises(ValidationError):
            resolve_period("hourly", date(2024, 6, 12))

    def test_fortnightly_is_two_monday_aligned_weeks(self):
        period = resolve_period("fortnightly", date(2024, 6, 12))
        assert period.start.weekday() == 0
        assert period.days == 14
        assert period.start <= date(2024, 6, 12) <= period.end

    def test_fortnightly_blocks_are_contiguous(self):
        period = resolve_period("fortnightly", date(2024, 6, 12))
        following = resolve_period("fortnightly", period.end + timedelta(days=1))
        assert following.start == period.end + timedelta(days=1)
        assert resolve_period("fortnightly", period.end) == period


class TestPeriodProperties:
    @pytest.mark.parametrize("reset_period", [p for p in RESET_PERIODS if p != STATIC])
    def test_contains_reference_date(self, reset_period):
        for d in SAMPLE_DATES:
            period = resolve_period(reset_period, d)
            assert period.start <= d <= period.end

    @pytest.mark.parametrize("reset_period", [p for p in RESET_PERIODS if p != STATIC])
    def test_idempotent(self, reset_period):
        for d in SAMPLE_DATES[::7]:
            assert resolve_period(reset_period, d) == resolve_period(reset_period, d)

    def test_lengths(self):
        for d in SAMPLE_DATES:
            assert (resolve_period("daily", d).end - resolve_period("daily", d).start).days == 0
            assert (resolve_period("weekly", d).end - resolve_period("weekly", d).start).days == 6
            assert (resolve_period("fortnightly", d).end - resolve_period("fortnightly", d).start).days == 13

            month = resolve_period("monthly", d)
            assert month.start.day == 1
            assert month.end.day == last_day_of_month(d.year, d.month)

            quarter = resolve_period("quarterly", d)
            assert quarter.start.month in (1, 4, 7, 10)
            assert quarter.end.month == quarter.start.month + 2
            assert quarter.end.day == last_day_of_month(quarter.end.year, quarter.end.month)

            year = resolve_period("annually", d)
            assert (year.start, year.end) == (date(d.year, 1, 1), date(d.year, 12, 31))

    def test_bounds_cover_whole_days(self):
        start, end = Period(date(2024, 6, 10), date(2024, 6, 16)).bounds()
        assert start == datetime(2024, 6, 10, 0, 0, 0)
        assert end == datetime(2024, 6, 16, 23, 59, 59)


class TestShiftPeriod:
    def test_previous_week(self):
        period = shift_period("weekly", date(2024, 6, 12), -1, today=date(2024, 6, 12))
        assert period == Period(date(2024, 6, 3), date(2024, 6, 9))

    def test_next_week_in_the_past_is_allowed(self):
        period = shift_period("weekly", date(2024, 6, 3), 1, today=date(2024, 6, 12))
        assert period == Period(date(2024, 6, 10), date(2024, 6, 16))

    def test_future_is_clamped_to_current_period(self):
        period = shift_period("weekly", date(2024, 6, 12), 1, today=date(2024, 6, 12))
        assert period == Period(date(2024, 6, 10), date(2024, 6, 16))

    def test_far_future_clamped(self):
        period = shift_period("monthly", date(2024, 6, 12), 12, today=date(2024, 6, 12))
        assert period == Period(date(2024, 6, 1), date(2024, 6, 30))

    def test_next_month_from_january_31(self):
        period = shift_period("monthly", date(2024, 1, 31), 1, today=date(2024, 12, 1))
        assert period == Period(date(2024, 2, 1), date(2024, 2, 29))

    def test_previous_quarter(self):
        period = shift_period("quarterly", date(2024, 11, 15), -1, today=date(2024, 11, 15))
        assert period == Period(date(2024, 7, 1), date(2024, 9, 30))

    def test_previous_quarter_crosses_year(self):
        period = shift_period("quarterly", date(2024, 2, 1), -1, today=date(2024, 2, 1))
        assert period == Period(date(2023, 10, 1), date(2023, 12, 31))

    def test_two_years_back(self):
        period = shift_period("annually", date(2024, 6, 1), -2, today=date(2024, 6, 1))
        assert period == Period(date(2022, 1, 1), date(2022, 12, 31))

    def test_previous_day(self):
        period = shift_period("daily", date(2024, 3, 1), -1, today=date(2024, 3, 1))
        assert period == Period(date(2024, 2, 29), date(2024, 2, 29))

    def test_step_beyond_calendar_range_rejected(self):
        with pytest.raises(ValidationError) as exc:
            shift_period("annually", date(2024, 6, 12), -5000, today=date(2024, 6, 12))
        assert exc.value.fields == ["step"]

    @pytest.mark.parametrize("reset_period", ["daily", "fortnightly", "monthly", "quarterly"])
    def test_huge_step_rejected(self, reset_period):
        with pytest.raises(ValidationError):
            shift_period(reset_period, date(2024, 6, 12), -10 ** 9, today=date(2024, 6, 12))

    def test_static_never_navigates(self):
        assert shift_period(STATIC, date(2024, 6, 12), -1, today=date(2024, 6, 12)) is None


class TestParseReferenceDate:
    def test_valid(self):
        assert parse_reference_date("2024-06-12") == date(2024, 6, 12)

    def test_default_when_missing(self):
        assert parse_reference_date(None, default=date(2024, 1, 1)) == date(2024, 1, 1)

    def test_invalid(self):
        with pytest.raises(ValidationError) as exc:
            parse_reference_date("12/06/2024")
        assert exc.value.fields == ["date"]
