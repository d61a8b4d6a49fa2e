"""Authoritative "current local day" for the running process.

One ``DayClock`` is built at startup and handed to every consumer. It re-checks the wall
clock when the platform reports a day boundary, when the process resumes, on a periodic
backstop timer, and on demand. When the day moves it publishes the new day and a short
refresh pulse (``True`` then ``False``) that views use to re-run their "today" queries.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable

from .config import DEFAULT_DAY_CHECK_INTERVAL_SECONDS, DEFAULT_PULSE_RESET_MS, ClockSettings
from .days import is_same_day, local_now, local_start_of_day, medium_date
from .observable import ObservableValue, Subscription
from .scheduling import Scheduler
from .signals import LifecycleSignals

logger = logging.getLogger(__name__)


class DayClock:
    def __init__(
        self,
        scheduler: Scheduler,
        signals: LifecycleSignals | None = None,
        now: Callable[[], datetime] = local_now,
        check_interval_seconds: float = DEFAULT_DAY_CHECK_INTERVAL_SECONDS,
        pulse_reset_ms: int = DEFAULT_PULSE_RESET_MS,
    ):
        self._scheduler = scheduler
        self._signals = signals
        self._now = now
        self._check_interval_ms = max(1, int(check_interval_seconds * 1000))
        self._pulse_reset_ms = max(0, int(pulse_reset_ms))
        self._current_day: ObservableValue[datetime] = ObservableValue("current_day", local_start_of_day(now()))
        self._refresh_pulse: ObservableValue[bool] = ObservableValue("refresh_pulse", False)
        self._tick_handle: Any = None
        self._pulse_handle: Any = None
        self._signal_subscriptions: list[Subscription] = []
        self._running = False
        self._stopped = False

    @classmethod
    def from_settings(
        cls,
        scheduler: Scheduler,
        settings: ClockSettings,
        signals: LifecycleSignals | None = None,
        now: Callable[[], datetime] = local_now,
    ) -> "DayClock":
        return cls(
            scheduler,
            signals=signals,
            now=now,
            check_interval_seconds=settings.day_check_interval_seconds,
            pulse_reset_ms=settings.pulse_reset_ms,
        )

    @property
    def current_day(self) -> datetime:
        return self._current_day.value

    @property
    def refresh_pulse(self) -> bool:
        return self._refresh_pulse.value

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def current_day_label(self) -> str:
        return medium_date(self.current_day)

    def is_today(self, moment: date | datetime) -> bool:
        return is_same_day(moment, self._now())

    def on_day_changed(self, callback: Callable[[datetime, datetime], None]) -> Subscription:
        return self._current_day.subscribe(callback)

    def on_refresh_pulse(self, callback: Callable[[bool, bool], None]) -> Subscription:
        return self._refresh_pulse.subscribe(callback)

    def start(self) -> None:
        if self._stopped:
            raise RuntimeError("DayClock cannot be restarted after stop(); build a new one")
        if self._running:
            return
        self._running = True
        if self._signals is not None:
            self._signal_subscriptions = [
                self._signals.on_day_boundary(self.handle_day_boundary),
                self._signals.on_resumed(self.handle_resume),
            ]
        self._schedule_tick()

    def stop(self) -> None:
        """Tear down for good: timers, signal subscriptions and observers are released."""
        self._running = False
        self._stopped = True
        for handle in (self._tick_handle, self._pulse_handle):
            if handle is not None:
                self._scheduler.cancel(handle)
        self._tick_handle = None
        self._pulse_handle = None
        for subscription in self._signal_subscriptions:
            subscription.cancel()
        self._signal_subscriptions = []
        self._current_day.clear()
        self._refresh_pulse.clear()
        self._refresh_pulse.set(False)

    def handle_day_boundary(self) -> None:
        self.check_for_day_change()

    def handle_resume(self) -> None:
        self.check_for_day_change()

    def check_for_day_change(self) -> bool:
        new_day = local_start_of_day(self._now())
        if is_same_day(new_day, self.current_day):
            return False
        logger.info("Day change detected: %s -> %s", self.current_day.date(), new_day.date())
        self._current_day.set(new_day)
        self._emit_pulse()
        return True

    def force_refresh(self) -> None:
        self._current_day.set(local_start_of_day(self._now()))
        self._emit_pulse()

    def _schedule_tick(self) -> None:
        self._tick_handle = self._scheduler.call_later(self._check_interval_ms, self._tick)

    def _tick(self) -> None:
        self._tick_handle = None
        if not self._running:
            return
        try:
            self.check_for_day_change()
        finally:
            if self._running:
                self._schedule_tick()

    def _emit_pulse(self) -> None:
        if self._pulse_handle is not None:
            self._scheduler.cancel(self._pulse_handle)
            self._pulse_handle = None
            self._refresh_pulse.set(False)
        self._refresh_pulse.set(True)
        self._pulse_handle = self._scheduler.call_later(self._pulse_reset_ms, self._end_pulse)

    def _end_pulse(self) -> None:
        self._pulse_handle = None
        self._refresh_pulse.set(False)
