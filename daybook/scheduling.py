from __future__ import annotations

from typing import Any, Callable, Protocol


class Scheduler(Protocol):
    """Single event context on which timers and clock notifications run."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        ...

    def cancel(self, handle: Any) -> None:
        ...
