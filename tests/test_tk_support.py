from __future__ import annotations

import tempfile
import unittest
from datetime import timedelta
from pathlib import Path
from types import SimpleNamespace
from unittest import mock

from daybook.activities import ActivityStore
from daybook.database import DaybookDatabase
from daybook.days import local_now, local_start_of_day

from fakes import FixedClock

try:
    import tkinter as tk

    from daybook.app import DaybookApp
    from daybook.tk_support import TkLifecycleSignals, TkScheduler
except ImportError:  # Tk is not present on headless interpreters
    tk = None


def _make_root(test: unittest.TestCase):
    try:
        root = tk.Tk()
    except tk.TclError:
        test.skipTest("no display available for Tk")
    root.withdraw()
    test.addCleanup(root.destroy)
    return root


@unittest.skipIf(tk is None, "tkinter is not available")
class TkSchedulerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.root = _make_root(self)
        self.scheduler = TkScheduler(self.root)

    def test_runs_due_callbacks_on_the_event_loop(self) -> None:
        calls: list[str] = []
        self.scheduler.call_later(0, lambda: calls.append("first"))
        self.scheduler.call_later(-5, lambda: calls.append("second"))
        self.root.update()
        self.assertEqual(calls, ["first", "second"])

    def test_cancel_drops_the_callback(self) -> None:
        calls: list[str] = []
        handle = self.scheduler.call_later(0, lambda: calls.append("ran"))
        self.scheduler.cancel(handle)
        self.scheduler.cancel(handle)
        self.root.update()
        self.assertEqual(calls, [])


@unittest.skipIf(tk is None, "tkinter is not available")
class TkLifecycleSignalsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.root = _make_root(self)
        self.signals = TkLifecycleSignals(self.root)
        self.addCleanup(self.signals.close)
        self.resumes: list[str] = []
        self.signals.on_resumed(lambda: self.resumes.append("resumed"))

    def test_mapping_the_main_window_reports_a_resume(self) -> None:
        self.assertIn(self.signals._map_binding, self.root.bind("<Map>"))
        self.signals._on_map(SimpleNamespace(widget=self.root))
        self.assertEqual(self.resumes, ["resumed"])

    def test_mapping_a_child_widget_is_ignored(self) -> None:
        child = tk.Frame(self.root)
        self.signals._on_map(SimpleNamespace(widget=child))
        self.assertEqual(self.resumes, [])

    def test_close_unbinds_and_silences(self) -> None:
        self.signals.close()
        self.assertTrue(self.signals.closed)
        self.assertNotIn(self.signals._map_binding, self.root.bind("<Map>"))
        self.signals._on_map(SimpleNamespace(widget=self.root))
        self.assertEqual(self.resumes, [])


@unittest.skipIf(tk is None, "tkinter is not available")
class HistoryViewTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.db = DaybookDatabase(Path(self._tmp.name) / "daybook.sqlite3")
        patcher = mock.patch.object(DaybookDatabase, "set_setting_in_background")
        patcher.start()
        self.addCleanup(patcher.stop)

    def _make_app(self) -> DaybookApp:
        try:
            app = DaybookApp(self.db)
        except tk.TclError:
            self.skipTest("no display available for Tk")
        app.withdraw()
        self.addCleanup(app._on_close)
        return app

    def test_selection_stays_on_its_day_when_a_newer_day_appears(self) -> None:
        yesterday = local_start_of_day(local_now().date() - timedelta(days=1))
        ActivityStore(self.db, now=FixedClock(yesterday + timedelta(hours=12))).add("Yesterday's errand")
        app = self._make_app()

        key = yesterday.date().isoformat()
        self.assertEqual(app.days_tree.get_children(), (key,))
        app.days_tree.selection_set(key)
        app._render_day_detail()

        app.store.add("Fresh task")
        self.assertEqual(len(app.days_tree.get_children()), 2)
        self.assertEqual(app.days_tree.selection(), (key,))
        self.assertEqual(app.detail_title_var.get(), "Yesterday")


if __name__ == "__main__":
    unittest.main()
