from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Activity:
    id: str
    description: str
    created_at: datetime
    is_completed: bool = False
    completed_at: datetime | None = None
    is_archived: bool = False


@dataclass(frozen=True)
class ActivityQuery:
    """Filter and ordering applied by the store; ``None`` fields are unconstrained.

    The window is half-open: ``created_from <= created_at < created_before``.
    """

    created_from: datetime | None = None
    created_before: datetime | None = None
    is_archived: bool | None = None
    is_completed: bool | None = None
    newest_first: bool = False


@dataclass(frozen=True)
class DaySections:
    incomplete: list[Activity]
    completed: list[Activity]
    archived: list[Activity]


@dataclass(frozen=True)
class DaySummary:
    total: int
    completed: int
    archived: int
