from __future__ import annotations


class DaybookError(Exception):
    """Base class for errors surfaced by the activity store."""


class ValidationError(DaybookError):
    """Input was rejected before anything was written."""


class NotFoundError(DaybookError):
    def __init__(self, activity_id: str):
        super().__init__(f"Activity {activity_id!r} no longer exists.")
        self.activity_id = activity_id


class PersistenceError(DaybookError):
    """The underlying store failed to read or commit."""


class StoreUnavailableError(PersistenceError):
    """The database could not be opened at startup."""
