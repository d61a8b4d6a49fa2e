from __future__ import annotations

import tkinter as tk
from typing import Callable

from .signals import TimerLifecycleSignals


class TkScheduler:
    def __init__(self, root: tk.Misc):
        self._root = root

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> str:
        return self._root.after(max(0, int(delay_ms)), callback)

    def cancel(self, handle: str) -> None:
        try:
            self._root.after_cancel(handle)
        except tk.TclError:
            pass


class TkLifecycleSignals(TimerLifecycleSignals):
    """Timer-based signals plus a resume whenever the main window is mapped again."""

    def __init__(self, root: tk.Misc, scheduler: TkScheduler | None = None, **kwargs):
        super().__init__(scheduler or TkScheduler(root), **kwargs)
        self._root = root
        self._map_binding = root.bind("<Map>", self._on_map, add="+")

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._root.unbind("<Map>", self._map_binding)
        except tk.TclError:
            pass
        super().close()

    def _on_map(self, event: tk.Event) -> None:
        if self.closed or event.widget is not self._root:
            return
        self.emit_resumed()
