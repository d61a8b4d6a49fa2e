"""Local calendar-day arithmetic.

Every day boundary in Daybook is a *local* midnight. Moments are carried around as
timezone-aware datetimes; naive values and plain dates are interpreted as local time.
Days are advanced with calendar arithmetic, so a 23 or 25 hour DST day still ends at the
next local midnight.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)


def local_now() -> datetime:
    return datetime.now().astimezone()


def local_start_of_day(moment: date | datetime) -> datetime:
    if isinstance(moment, datetime):
        if moment.tzinfo is not None:
            moment = moment.astimezone()
        day = moment.date()
    else:
        day = moment
    start = datetime(day.year, day.month, day.day).astimezone()
    if start.date() != day:
        # Midnight falls in a DST gap; the day starts at the first instant after it.
        start = datetime(day.year, day.month, day.day, fold=1).astimezone()
    return start


def next_local_midnight(moment: date | datetime) -> datetime:
    start = local_start_of_day(moment)
    return local_start_of_day(start.date() + timedelta(days=1))


def day_window(moment: date | datetime) -> tuple[datetime, datetime]:
    return local_start_of_day(moment), next_local_midnight(moment)


def is_same_day(first: date | datetime, second: date | datetime) -> bool:
    return local_start_of_day(first).date() == local_start_of_day(second).date()


def seconds_until_next_midnight(now: datetime) -> float:
    if now.tzinfo is None:
        now = now.astimezone()
    return max(0.0, (next_local_midnight(now) - now).total_seconds())


def to_epoch_us(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return (moment - _EPOCH) // _MICROSECOND


def from_epoch_us(value: int) -> datetime:
    return (_EPOCH + timedelta(microseconds=int(value))).astimezone()


def medium_date(moment: date | datetime) -> str:
    day = local_start_of_day(moment)
    return f"{day:%b} {day.day}, {day.year}"


def full_date(moment: date | datetime) -> str:
    day = local_start_of_day(moment)
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"
