from __future__ import annotations

import unittest
from dataclasses import replace
from datetime import date, timedelta, timezone

from daybook.days import local_start_of_day
from daybook.history import HistoryDay, day_label, day_title, group_by_day
from daybook.models import Activity

from fakes import pin_local_timezone


def _activity(
    idx: int,
    day: date,
    hour: int,
    completed: bool = False,
    archived: bool = False,
) -> Activity:
    created_at = local_start_of_day(day) + timedelta(hours=hour)
    return Activity(
        id=f"act-{idx}",
        description=f"Activity {idx}",
        created_at=created_at,
        is_completed=completed,
        completed_at=created_at + timedelta(minutes=5) if completed else None,
        is_archived=archived,
    )


class HistoryTests(unittest.TestCase):
    def test_groups_by_local_day_newest_first(self) -> None:
        records = [
            _activity(1, date(2025, 11, 21), 9),
            _activity(2, date(2025, 11, 19), 23),
            _activity(3, date(2025, 11, 21), 0),
            _activity(4, date(2025, 11, 20), 12),
        ]
        buckets = group_by_day(records)

        self.assertEqual([b.day.date() for b in buckets], [date(2025, 11, 21), date(2025, 11, 20), date(2025, 11, 19)])
        self.assertEqual([a.id for a in buckets[0].activities], ["act-1", "act-3"])
        self.assertEqual(buckets[0].day, local_start_of_day(date(2025, 11, 21)))

    def test_empty_history(self) -> None:
        self.assertEqual(group_by_day([]), [])

    def test_sections_partition_and_keep_order(self) -> None:
        bucket = HistoryDay(
            day=local_start_of_day(date(2025, 11, 20)),
            activities=[
                _activity(1, date(2025, 11, 20), 8, completed=True),
                _activity(2, date(2025, 11, 20), 9),
                _activity(3, date(2025, 11, 20), 10, completed=True, archived=True),
                _activity(4, date(2025, 11, 20), 11, completed=True),
                _activity(5, date(2025, 11, 20), 12),
                _activity(6, date(2025, 11, 20), 13, archived=True),
            ],
        )
        sections = bucket.sections()
        self.assertEqual([a.id for a in sections.incomplete], ["act-2", "act-5"])
        self.assertEqual([a.id for a in sections.completed], ["act-1", "act-4"])
        self.assertEqual([a.id for a in sections.archived], ["act-3", "act-6"])

        summary = bucket.summary()
        self.assertEqual((summary.total, summary.completed, summary.archived), (6, 3, 2))

    def test_day_labels(self) -> None:
        today = date(2025, 11, 20)
        self.assertEqual(day_label(today, today), "Today")
        self.assertEqual(day_label(date(2025, 11, 19), today), "Yesterday")
        self.assertEqual(day_label(date(2025, 11, 17), today), "Monday")
        self.assertEqual(day_label(date(2025, 11, 16), today), "Nov 16, 2025")
        self.assertEqual(day_label(local_start_of_day(today) + timedelta(hours=22), today), "Today")

    def test_day_titles(self) -> None:
        today = date(2025, 11, 20)
        self.assertEqual(day_title(today, today), "Today")
        self.assertEqual(day_title(date(2025, 11, 19), today), "Yesterday")
        self.assertEqual(day_title(date(2025, 11, 17), today), "Monday, November 17, 2025")


class HistoryTimeZoneTests(unittest.TestCase):
    def test_buckets_follow_local_date_not_utc(self) -> None:
        pin_local_timezone(self, "America/Los_Angeles")
        late = _activity(1, date(2025, 11, 20), 23)
        late = replace(late, created_at=(late.created_at + timedelta(minutes=30)).astimezone(timezone.utc))
        morning = _activity(2, date(2025, 11, 21), 9)

        buckets = group_by_day([morning, late])
        self.assertEqual([b.day.date() for b in buckets], [date(2025, 11, 21), date(2025, 11, 20)])
        self.assertEqual([a.id for a in buckets[1].activities], ["act-1"])

    def test_day_without_a_midnight_gets_its_own_bucket(self) -> None:
        pin_local_timezone(self, "America/Santiago")
        saturday = _activity(1, date(2025, 9, 6), 22)
        sunday = _activity(2, date(2025, 9, 7), 9)

        buckets = group_by_day([sunday, saturday])
        self.assertEqual([b.day.date() for b in buckets], [date(2025, 9, 7), date(2025, 9, 6)])
        self.assertEqual(buckets[0].day, local_start_of_day(date(2025, 9, 7)))
        self.assertEqual(day_label(buckets[0].day, date(2025, 9, 7)), "Today")
        self.assertEqual(day_label(buckets[1].day, date(2025, 9, 7)), "Yesterday")


if __name__ == "__main__":
    unittest.main()
