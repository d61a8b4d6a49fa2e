from __future__ import annotations

from dataclasses import dataclass

from .database import DaybookDatabase

DAY_CHECK_INTERVAL_SETTING_KEY = "day_check_interval_seconds"
PULSE_RESET_MS_SETTING_KEY = "pulse_reset_ms"
SELECTED_TAB_SETTING_KEY = "selected_tab"

DEFAULT_DAY_CHECK_INTERVAL_SECONDS = 300.0
DEFAULT_PULSE_RESET_MS = 100


@dataclass(frozen=True)
class ClockSettings:
    day_check_interval_seconds: float = DEFAULT_DAY_CHECK_INTERVAL_SECONDS
    pulse_reset_ms: int = DEFAULT_PULSE_RESET_MS

    @classmethod
    def from_database(cls, db: DaybookDatabase) -> "ClockSettings":
        interval = db.get_setting_float(DAY_CHECK_INTERVAL_SETTING_KEY, DEFAULT_DAY_CHECK_INTERVAL_SECONDS)
        pulse_ms = db.get_setting_float(PULSE_RESET_MS_SETTING_KEY, float(DEFAULT_PULSE_RESET_MS))
        return cls(
            day_check_interval_seconds=max(5.0, min(3600.0, interval)),
            pulse_reset_ms=max(1, min(5000, int(pulse_ms))),
        )
