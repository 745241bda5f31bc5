"""
Period resolver: maps a reset period and a reference date to calendar boundaries.

Dates only, no timezone. Periods:
- daily:       the reference day
- weekly:      Monday..Sunday week containing the date
- fortnightly: 14-day Monday..Sunday block, aligned to FORTNIGHT_ANCHOR
- monthly:     first..last day of the month
- quarterly:   Jan-Mar, Apr-Jun, Jul-Sep, Oct-Dec
- annually:    Jan 1..Dec 31
- static:      no boundary (None), completions are cumulative
"""
import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from nest.domain.errors import ValidationError

DAILY = "daily"
WEEKLY = "weekly"
FORTNIGHTLY = "fortnightly"
MONTHLY = "monthly"
QUARTERLY = "quarterly"
ANNUALLY = "annually"
STATIC = "static"

RESET_PERIODS = (DAILY, WEEKLY, FORTNIGHTLY, MONTHLY, QUARTERLY, ANNUALLY, STATIC)
GOAL_PERIODS = (DAILY, WEEKLY, MONTHLY, QUARTERLY, ANNUALLY)

# A Monday; fortnight blocks start on it and every 14 days before/after
FORTNIGHT_ANCHOR = date(1970, 1, 5)

END_OF_DAY = time(23, 59, 59)


@dataclass(frozen=True)
class Period:
    start: date
    end: date

    def bounds(self) -> tuple[datetime, datetime]:
        """Inclusive timestamp range: start 00:00:00 .. end 23:59:59"""
        return datetime.combine(self.start, time.min), datetime.combine(self.end, END_OF_DAY)

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(d: date, n: int) -> date:
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = min(d.day, last_day_of_month(year, month))
    return date(year, month, day)


def _week_start(d: date) -> date:
    # date.weekday(): Monday=0 .. Sunday=6, so Sunday belongs to the preceding Monday
    return d - timedelta(days=d.weekday())


def resolve_period(reset_period: str, reference_date: date) -> Period | None:
    """
    Resolve the period containing reference_date.

    Returns None for 'static' lists. Raises ValidationError for unknown periods.
    """
    d = reference_date
    if reset_period == DAILY:
        return Period(d, d)
    if reset_period == WEEKLY:
        start = _week_start(d)
        return Period(start, start + timedelta(days=6))
    if reset_period == FORTNIGHTLY:
        offset = (_week_start(d) - FORTNIGHT_ANCHOR).days // 14
        start = FORTNIGHT_ANCHOR + timedelta(days=offset * 14)
        return Period(start, start + timedelta(days=13))
    if reset_period == MONTHLY:
        return Period(
            date(d.year, d.month, 1),
            date(d.year, d.month, last_day_of_month(d.year, d.month)),
        )
    if reset_period == QUARTERLY:
        first_month = (d.month - 1) // 3 * 3 + 1
        last_month = first_month + 2
        return Period(
            date(d.year, first_month, 1),
            date(d.year, last_month, last_day_of_month(d.year, last_month)),
        )
    if reset_period == ANNUALLY:
        return Period(date(d.year, 1, 1), date(d.year, 12, 31))
    if reset_period == STATIC:
        return None
    raise ValidationError(f"Unknown reset period: {reset_period}", fields=["reset_period"])


def shift_period(reset_period: str, reference_date: date, steps: int, today: date) -> Period | None:
    """
    Move `steps` periods back (negative) or forward (positive) from the period
    containing reference_date.

    A period starting after `today` is never returned: navigation clamps to the
    period containing today.

    Raises:
        ValidationError: steps lands outside the supported date range
    """
    current = resolve_period(reset_period, reference_date)
    if current is None:
        return None

    try:
        if reset_period in (DAILY, WEEKLY, FORTNIGHTLY):
            target = current.start + timedelta(days=current.days * steps)
        elif reset_period == MONTHLY:
            target = add_months(current.start, steps)
        elif reset_period == QUARTERLY:
            target = add_months(current.start, 3 * steps)
        else:
            target = date(current.start.year + steps, 1, 1)
        shifted = resolve_period(reset_period, target)
    except (ValueError, OverflowError):
        raise ValidationError(f"Cannot move {steps} periods from {reference_date}", fields=["step"])

    if shifted.start > today:
        return resolve_period(reset_period, today)
    return shifted


def parse_reference_date(value: str | None, default: date | None = None) -> date:
    """Parse 'YYYY-MM-DD'; missing value falls back to default"""
    if value is None or value == "":
        if default is None:
            raise ValidationError("Date is required", fields=["date"])
        return default
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}, expected YYYY-MM-DD", fields=["date"])
