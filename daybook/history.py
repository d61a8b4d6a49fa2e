from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Sequence

from .days import full_date, local_start_of_day, medium_date
from .models import Activity, DaySections, DaySummary


@dataclass(frozen=True)
class HistoryDay:
    day: datetime
    activities: list[Activity]

    def sections(self) -> DaySections:
        return DaySections(
            incomplete=[a for a in self.activities if not a.is_completed and not a.is_archived],
            completed=[a for a in self.activities if a.is_completed and not a.is_archived],
            archived=[a for a in self.activities if a.is_archived],
        )

    def summary(self) -> DaySummary:
        return DaySummary(
            total=len(self.activities),
            completed=sum(1 for a in self.activities if a.is_completed),
            archived=sum(1 for a in self.activities if a.is_archived),
        )


def group_by_day(records: Sequence[Activity]) -> list[HistoryDay]:
    """Bucket records by local creation day, most recent day first.

    Records keep their incoming relative order inside each bucket.
    """
    buckets: dict[date, list[Activity]] = {}
    starts: dict[date, datetime] = {}
    for record in records:
        start = local_start_of_day(record.created_at)
        key = start.date()
        starts.setdefault(key, start)
        buckets.setdefault(key, []).append(record)

    return [HistoryDay(day=starts[key], activities=buckets[key]) for key in sorted(buckets, reverse=True)]


def day_label(day: date | datetime, today: date | datetime) -> str:
    target = local_start_of_day(day).date()
    current = local_start_of_day(today).date()
    if target == current:
        return "Today"
    if target == current - timedelta(days=1):
        return "Yesterday"
    if target.isocalendar()[:2] == current.isocalendar()[:2]:
        return f"{target:%A}"
    return medium_date(target)


def day_title(day: date | datetime, today: date | datetime) -> str:
    target = local_start_of_day(day).date()
    current = local_start_of_day(today).date()
    if target == current:
        return "Today"
    if target == current - timedelta(days=1):
        return "Yesterday"
    return full_date(target)
