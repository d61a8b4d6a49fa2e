from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any, Callable

from .days import local_now, seconds_until_next_midnight
from .observable import Observers, Subscription
from .scheduling import Scheduler

logger = logging.getLogger(__name__)

MIDNIGHT_SLACK_SECONDS = 1.0
WATCHDOG_INTERVAL_MS = 5000
SUSPEND_GAP_SECONDS = 30.0


class LifecycleSignals:
    """Source of the two platform signals: day boundary crossed and process resumed."""

    def __init__(self) -> None:
        self._day_boundary: Observers[None] = Observers("day_boundary")
        self._resumed: Observers[None] = Observers("resumed")

    def on_day_boundary(self, callback: Callable[[], None]) -> Subscription:
        return self._day_boundary.subscribe(callback)

    def on_resumed(self, callback: Callable[[], None]) -> Subscription:
        return self._resumed.subscribe(callback)

    def emit_day_boundary(self) -> None:
        self._day_boundary.publish()

    def emit_resumed(self) -> None:
        self._resumed.publish()

    def close(self) -> None:
        self._day_boundary.clear()
        self._resumed.clear()


class TimerLifecycleSignals(LifecycleSignals):
    """Derives both signals from timers on a scheduler.

    A one-shot timer fires just after each local midnight. Resume is detected when the
    wall clock has run ahead of the monotonic clock between two watchdog ticks, which
    happens when the machine slept.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        now: Callable[[], datetime] = local_now,
        wall_clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
        watchdog_interval_ms: int = WATCHDOG_INTERVAL_MS,
    ):
        super().__init__()
        self._scheduler = scheduler
        self._now = now
        self._wall_clock = wall_clock
        self._monotonic = monotonic
        self._watchdog_interval_ms = watchdog_interval_ms
        self._midnight_handle: Any = None
        self._watchdog_handle: Any = None
        self._last_wall = wall_clock()
        self._last_mono = monotonic()
        self._closed = False
        self._arm_midnight()
        self._watchdog_handle = scheduler.call_later(watchdog_interval_ms, self._watchdog)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for handle in (self._midnight_handle, self._watchdog_handle):
            if handle is not None:
                self._scheduler.cancel(handle)
        self._midnight_handle = None
        self._watchdog_handle = None
        super().close()

    def _arm_midnight(self) -> None:
        if self._midnight_handle is not None:
            self._scheduler.cancel(self._midnight_handle)
        delay = seconds_until_next_midnight(self._now()) + MIDNIGHT_SLACK_SECONDS
        self._midnight_handle = self._scheduler.call_later(int(delay * 1000), self._on_midnight)

    def _on_midnight(self) -> None:
        self._midnight_handle = None
        if self._closed:
            return
        logger.debug("Local midnight timer fired")
        self.emit_day_boundary()
        self._arm_midnight()

    def _watchdog(self) -> None:
        self._watchdog_handle = None
        if self._closed:
            return
        wall, mono = self._wall_clock(), self._monotonic()
        drift = (wall - self._last_wall) - (mono - self._last_mono)
        self._last_wall, self._last_mono = wall, mono
        if drift > SUSPEND_GAP_SECONDS:
            logger.info("Wall clock jumped %.0fs ahead; treating as resume from suspend", drift)
            self.emit_resumed()
            self._arm_midnight()
        self._watchdog_handle = self._scheduler.call_later(self._watchdog_interval_ms, self._watchdog)
