"""
Local time helpers.

Completion timestamps are stored as naive local time (settings.TIMEZONE),
formatted 'YYYY-MM-DD HH:MM:SS' on the wire.
"""
from datetime import date, datetime
from zoneinfo import ZoneInfo

from nest.config import get_settings

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def local_now() -> datetime:
    """Current local time, naive, truncated to seconds"""
    tz = ZoneInfo(get_settings().TIMEZONE)
    return datetime.now(tz=tz).replace(tzinfo=None, microsecond=0)


def local_today() -> date:
    return local_now().date()


def format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.strftime(TIMESTAMP_FORMAT)
