from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Callable

from .database import DaybookDatabase
from .days import day_window, local_now, local_start_of_day
from .errors import NotFoundError, ValidationError
from .history import HistoryDay, group_by_day
from .models import Activity, ActivityQuery
from .observable import Observers, Subscription

logger = logging.getLogger(__name__)

SAMPLE_ACTIVITIES = (
    "Review quarterly reports",
    "Call dentist for appointment",
    "Grocery shopping",
    "Exercise for 30 minutes",
    "Read chapter 5",
)


class ActivityStore:
    """State transitions and read queries over the activity records.

    Every mutation builds a new record, commits it, and only then returns it. A failed
    commit raises ``PersistenceError`` and leaves the stored record as it was.
    """

    def __init__(self, db: DaybookDatabase, now: Callable[[], datetime] = local_now):
        self._db = db
        self._now = now
        self._changes: Observers[str] = Observers("activity_store")

    def subscribe(self, callback: Callable[[str], None]) -> Subscription:
        return self._changes.subscribe(callback)

    def get(self, activity_id: str) -> Activity:
        activity = self._db.get(activity_id)
        if activity is None:
            raise NotFoundError(activity_id)
        return activity

    def add(self, description: str) -> Activity:
        activity = Activity(
            id=uuid.uuid4().hex,
            description=_clean_description(description),
            created_at=self._now(),
        )
        self._db.commit([activity])
        logger.info("Added activity %s", activity.id)
        self._changes.publish("add")
        return activity

    def edit(self, activity_id: str, new_description: str) -> Activity:
        description = _clean_description(new_description)
        updated = replace(self.get(activity_id), description=description)
        self._db.commit([updated])
        self._changes.publish("edit")
        return updated

    def toggle_completion(self, activity_id: str) -> Activity:
        current = self.get(activity_id)
        if current.is_completed:
            updated = replace(current, is_completed=False, completed_at=None)
        else:
            updated = replace(current, is_completed=True, completed_at=self._now())
        self._db.commit([updated])
        logger.info("Activity %s completed=%s", activity_id, updated.is_completed)
        self._changes.publish("toggle_completion")
        return updated

    def delete(self, activity_id: str) -> None:
        if not self._db.delete(activity_id):
            raise NotFoundError(activity_id)
        logger.info("Deleted activity %s", activity_id)
        self._changes.publish("delete")

    def clear_completed(self, for_day: date | datetime) -> list[Activity]:
        start, end = day_window(for_day)
        finished = self._db.query(
            ActivityQuery(created_from=start, created_before=end, is_completed=True, is_archived=False)
        )
        if not finished:
            return []
        archived = [replace(activity, is_archived=True) for activity in finished]
        self._db.commit(archived)
        logger.info("Archived %d completed activities for %s", len(archived), start.date())
        self._changes.publish("clear_completed")
        return archived

    def query_today(self, day: date | datetime) -> list[Activity]:
        start, end = day_window(day)
        return self._db.query(ActivityQuery(created_from=start, created_before=end, is_archived=False))

    def query_history(self) -> list[HistoryDay]:
        return group_by_day(self._db.query(ActivityQuery(newest_first=True)))

    def seed_sample_activities(self) -> list[Activity]:
        now = self._now()
        today = local_start_of_day(now)
        time_of_day = now - today
        samples: list[Activity] = []
        for index, description in enumerate(SAMPLE_ACTIVITIES):
            day = local_start_of_day(today.date() - timedelta(days=index))
            created_at = day + time_of_day
            completed = index % 2 == 0
            samples.append(
                Activity(
                    id=uuid.uuid4().hex,
                    description=description,
                    created_at=created_at,
                    is_completed=completed,
                    completed_at=created_at if completed else None,
                )
            )
        self._db.commit(samples)
        self._changes.publish("seed")
        return samples


def _clean_description(raw: str) -> str:
    text = (raw or "").strip()
    if not text:
        raise ValidationError("Activity description cannot be empty.")
    return text
