from __future__ import annotations

import argparse
import logging
import os
import tkinter as tk
from datetime import datetime
from pathlib import Path
from tkinter import simpledialog, ttk
from typing import Callable

from PIL import Image, ImageDraw, ImageTk

from . import __version__
from .activities import ActivityStore
from .config import SELECTED_TAB_SETTING_KEY, ClockSettings
from .database import DaybookDatabase
from .day_clock import DayClock
from .errors import NotFoundError, PersistenceError, StoreUnavailableError, ValidationError
from .history import HistoryDay, day_label, day_title
from .logs import setup_logging
from .models import Activity
from .paths import DATA_DIR_ENV, database_path, ensure_directories
from .tk_support import TkLifecycleSignals, TkScheduler

logger = logging.getLogger(__name__)

VIEW_KEYS = ("today", "history")
ICON_SIZE = 18


class DaybookApp(tk.Tk):
    def __init__(self, db: DaybookDatabase):
        super().__init__()
        self.title("Daybook")
        self.geometry("960x640")
        self.minsize(720, 480)
        self.configure(bg="#f7e3cb")

        self.db = db
        self.store = ActivityStore(db)
        self.scheduler = TkScheduler(self)
        self.signals = TkLifecycleSignals(self, self.scheduler)
        self.day_clock = DayClock.from_settings(self.scheduler, ClockSettings.from_database(db), signals=self.signals)

        self._status_images = self._build_status_images()
        self._history_days: dict[str, HistoryDay] = {}

        self._configure_style()

        saved_view = self.db.get_setting(SELECTED_TAB_SETTING_KEY, "today") or "today"
        self.selected_view = tk.StringVar(value=saved_view if saved_view in VIEW_KEYS else "today")
        self.new_activity_var = tk.StringVar()
        self.day_title_var = tk.StringVar()
        self.status_var = tk.StringVar(value="Ready.")

        self._build_shell()
        self._subscriptions = [
            self.store.subscribe(lambda _operation: self._refresh_all()),
            self.day_clock.on_day_changed(lambda _old, _new: self._update_day_title()),
            self.day_clock.on_refresh_pulse(self._on_refresh_pulse),
        ]
        self.day_clock.start()
        self._update_day_title()
        self._show_view(self.selected_view.get())
        self._refresh_all()
        self._append_log(f"Daybook started ({self.db.path}).")
        self.protocol("WM_DELETE_WINDOW", self._on_close)

    @staticmethod
    def _build_status_images() -> dict[str, ImageTk.PhotoImage]:
        size = ICON_SIZE * 4
        images: dict[str, Image.Image] = {}

        pending = Image.new("RGBA", (size, size), (0, 0, 0, 0))
        ImageDraw.Draw(pending).ellipse((6, 6, size - 6, size - 6), outline=(150, 140, 132, 255), width=7)
        images["incomplete"] = pending

        done = Image.new("RGBA", (size, size), (0, 0, 0, 0))
        draw = ImageDraw.Draw(done)
        draw.ellipse((4, 4, size - 4, size - 4), fill=(72, 160, 96, 255))
        draw.line((20, 38, 31, 50, 53, 24), fill=(255, 255, 255, 255), width=8, joint="curve")
        images["completed"] = done

        archived = Image.new("RGBA", (size, size), (0, 0, 0, 0))
        draw = ImageDraw.Draw(archived)
        draw.rectangle((8, 14, size - 8, 26), fill=(236, 140, 40, 255))
        draw.rectangle((12, 26, size - 12, size - 10), fill=(249, 167, 70, 255))
        draw.rectangle((28, 34, size - 28, 40), fill=(255, 255, 255, 255))
        images["archived"] = archived

        return {
            key: ImageTk.PhotoImage(image.resize((ICON_SIZE, ICON_SIZE), Image.Resampling.LANCZOS))
            for key, image in images.items()
        }

    def _configure_style(self) -> None:
        style = ttk.Style(self)
        try:
            style.theme_use("clam")
        except tk.TclError:
            pass
        style.configure("TFrame", background="#f8d9b9")
        style.configure("TLabel", background="#f8d9b9", foreground="#4e4138")
        style.configure("TEntry", fieldbackground="#fff6ea", foreground="#4e4138", bordercolor="#ebd8c9")
        style.configure("TButton", padding=(10, 5))
        style.configure("Title.TLabel", font=("Georgia", 24), foreground="#2f2a27", background="#f8d9b9")
        style.configure("Subtle.TLabel", font=("Segoe UI", 10), foreground="#6f655d", background="#f8d9b9")
        style.configure(
            "Treeview",
            background="#fff7eb",
            fieldbackground="#fff7eb",
            foreground="#4c4038",
            bordercolor="#ecd6bf",
            rowheight=28,
        )
        style.map("Treeview", background=[("selected", "#f8dcc0")], foreground=[("selected", "#2d2723")])
        style.configure("Treeview.Heading", background="#f4e2cf", foreground="#5b4a3f")

    def _build_shell(self) -> None:
        self.columnconfigure(1, weight=1)
        self.rowconfigure(0, weight=1)

        sidebar = ttk.Frame(self, padding=(12, 16))
        sidebar.grid(row=0, column=0, sticky="ns")
        self.view_buttons: dict[str, ttk.Button] = {}
        for row, (key, label) in enumerate((("today", "Today"), ("history", "History"))):
            button = ttk.Button(sidebar, text=label, command=lambda k=key: self._show_view(k))
            button.grid(row=row, column=0, sticky="ew", pady=4)
            self.view_buttons[key] = button

        container = ttk.Frame(self, padding=(8, 16, 16, 8))
        container.grid(row=0, column=1, sticky="nsew")
        container.columnconfigure(0, weight=1)
        container.rowconfigure(0, weight=1)

        self.views: dict[str, ttk.Frame] = {
            "today": self._build_today_view(container),
            "history": self._build_history_view(container),
        }
        for frame in self.views.values():
            frame.grid(row=0, column=0, sticky="nsew")

        ttk.Label(self, textvariable=self.status_var, style="Subtle.TLabel", padding=(16, 4)).grid(
            row=1, column=0, columnspan=2, sticky="ew"
        )

    def _build_today_view(self, parent: ttk.Frame) -> ttk.Frame:
        frame = ttk.Frame(parent)
        frame.columnconfigure(0, weight=1)
        frame.rowconfigure(2, weight=1)

        ttk.Label(frame, textvariable=self.day_title_var, style="Title.TLabel").grid(row=0, column=0, sticky="w")

        entry_row = ttk.Frame(frame)
        entry_row.grid(row=1, column=0, sticky="ew", pady=(10, 8))
        entry_row.columnconfigure(0, weight=1)
        self.new_activity_entry = ttk.Entry(entry_row, textvariable=self.new_activity_var)
        self.new_activity_entry.grid(row=0, column=0, sticky="ew")
        self.new_activity_entry.bind("<Return>", lambda _e: self._add_activity())
        ttk.Button(entry_row, text="Add Activity", command=self._add_activity).grid(row=0, column=1, padx=(8, 0))

        self.today_tree = ttk.Treeview(frame, columns=("completed",), show="tree headings", selectmode="browse")
        self.today_tree.heading("#0", text="Activity")
        self.today_tree.heading("completed", text="Completed")
        self.today_tree.column("#0", stretch=True)
        self.today_tree.column("completed", width=120, stretch=False, anchor="center")
        self.today_tree.grid(row=2, column=0, sticky="nsew")
        self.today_tree.bind("<Double-1>", lambda _e: self._toggle_selected())
        self.today_tree.bind("<Delete>", lambda _e: self._delete_selected())

        actions = ttk.Frame(frame)
        actions.grid(row=3, column=0, sticky="ew", pady=(8, 0))
        ttk.Button(actions, text="Toggle Done", command=self._toggle_selected).pack(side="left")
        ttk.Button(actions, text="Edit", command=self._edit_selected).pack(side="left", padx=(8, 0))
        ttk.Button(actions, text="Delete", command=self._delete_selected).pack(side="left", padx=(8, 0))
        self.clear_button = ttk.Button(actions, text="Clear Finished", command=self._clear_finished)
        self.clear_button.pack(side="right")
        return frame

    def _build_history_view(self, parent: ttk.Frame) -> ttk.Frame:
        frame = ttk.Frame(parent)
        frame.columnconfigure(1, weight=1)
        frame.rowconfigure(1, weight=1)

        ttk.Label(frame, text="History", style="Title.TLabel").grid(row=0, column=0, columnspan=2, sticky="w")

        self.days_tree = ttk.Treeview(frame, columns=("count", "done", "cleared"), show="tree headings", selectmode="browse")
        self.days_tree.heading("#0", text="Day")
        self.days_tree.heading("count", text="Activities")
        self.days_tree.heading("done", text="Done")
        self.days_tree.heading("cleared", text="Cleared")
        self.days_tree.column("#0", width=160)
        for column in ("count", "done", "cleared"):
            self.days_tree.column(column, width=70, anchor="center", stretch=False)
        self.days_tree.grid(row=1, column=0, sticky="nsew", pady=(10, 0))
        self.days_tree.bind("<<TreeviewSelect>>", lambda _e: self._render_day_detail())

        detail = ttk.Frame(frame)
        detail.grid(row=1, column=1, sticky="nsew", padx=(12, 0), pady=(10, 0))
        detail.columnconfigure(0, weight=1)
        detail.rowconfigure(1, weight=1)
        self.detail_title_var = tk.StringVar(value="")
        ttk.Label(detail, textvariable=self.detail_title_var, style="Subtle.TLabel").grid(row=0, column=0, sticky="w")
        self.detail_tree = ttk.Treeview(detail, columns=("completed",), show="tree", selectmode="none")
        self.detail_tree.column("completed", width=120, stretch=False, anchor="e")
        self.detail_tree.grid(row=1, column=0, sticky="nsew")
        return frame

    def _show_view(self, view_key: str) -> None:
        if view_key not in self.views:
            view_key = "today"
        self.selected_view.set(view_key)
        self.views[view_key].tkraise()
        for key, button in self.view_buttons.items():
            button.state(["pressed"] if key == view_key else ["!pressed"])
        self.db.set_setting_in_background(SELECTED_TAB_SETTING_KEY, view_key)

    def _on_refresh_pulse(self, _old: bool, new: bool) -> None:
        if new:
            self._append_log("New day started; refreshing views.")
            self._refresh_all()

    def _update_day_title(self) -> None:
        self.day_title_var.set(f"Today's Activities - {self.day_clock.current_day_label}")

    def _refresh_all(self) -> None:
        try:
            self._refresh_today()
            self._refresh_history()
        except PersistenceError as exc:
            logger.error("Could not load activities: %s", exc)
            self.status_var.set("Could not load activities. Check the data folder.")

    def _refresh_today(self) -> None:
        activities = self.store.query_today(self.day_clock.current_day)
        self.today_tree.delete(*self.today_tree.get_children())
        for activity in activities:
            self.today_tree.insert(
                "",
                "end",
                iid=activity.id,
                text=f"  {activity.description}",
                image=self._status_images[_status_key(activity)],
                values=(_fmt_time(activity.completed_at),),
            )
        if any(a.is_completed for a in activities):
            self.clear_button.state(["!disabled"])
        else:
            self.clear_button.state(["disabled"])

    def _refresh_history(self) -> None:
        selected = self.days_tree.selection()
        self._history_days = {_day_key(bucket.day): bucket for bucket in self.store.query_history()}
        today = self.day_clock.current_day
        self.days_tree.delete(*self.days_tree.get_children())
        for key, bucket in self._history_days.items():
            summary = bucket.summary()
            self.days_tree.insert(
                "",
                "end",
                iid=key,
                text=day_label(bucket.day, today),
                values=(summary.total, summary.completed, summary.archived or ""),
            )
        if selected and self.days_tree.exists(selected[0]):
            self.days_tree.selection_set(selected[0])
        self._render_day_detail()

    def _render_day_detail(self) -> None:
        self.detail_tree.delete(*self.detail_tree.get_children())
        selected = self.days_tree.selection()
        if not selected or selected[0] not in self._history_days:
            self.detail_title_var.set("Select a day to see its activities.")
            return
        bucket = self._history_days[selected[0]]
        self.detail_title_var.set(day_title(bucket.day, self.day_clock.current_day))
        sections = bucket.sections()
        for label, members in (
            ("Incomplete", sections.incomplete),
            ("Completed", sections.completed),
            ("Cleared", sections.archived),
        ):
            if not members:
                continue
            parent = self.detail_tree.insert("", "end", text=label, open=True)
            for activity in members:
                self.detail_tree.insert(
                    parent,
                    "end",
                    text=f"  {activity.description}",
                    image=self._status_images[_status_key(activity)],
                    values=(_fmt_time(activity.completed_at),),
                )

    def _add_activity(self) -> None:
        text = self.new_activity_var.get()
        if self._run_action(lambda: self.store.add(text), "Activity added."):
            self.new_activity_var.set("")

    def _toggle_selected(self) -> None:
        activity_id = self._selected_activity_id()
        if activity_id is not None:
            self._run_action(lambda: self.store.toggle_completion(activity_id), "Activity updated.")

    def _edit_selected(self) -> None:
        activity_id = self._selected_activity_id()
        if activity_id is None:
            return
        try:
            current = self.store.get(activity_id)
        except NotFoundError:
            self._refresh_all()
            return
        text = current.description
        while True:
            text = simpledialog.askstring("Edit Activity", "Description:", initialvalue=text, parent=self)
            if text is None:
                return
            if self._run_action(lambda: self.store.edit(activity_id, text), "Activity edited."):
                return
            if not self.today_tree.exists(activity_id):
                return

    def _delete_selected(self) -> None:
        activity_id = self._selected_activity_id()
        if activity_id is not None:
            self._run_action(lambda: self.store.delete(activity_id), "Activity deleted.")

    def _clear_finished(self) -> None:
        self._run_action(lambda: self.store.clear_completed(self.day_clock.current_day), "Finished activities cleared.")

    def _run_action(self, action: Callable[[], object], success_message: str) -> bool:
        try:
            action()
        except ValidationError as exc:
            self.status_var.set(str(exc))
            return False
        except NotFoundError as exc:
            logger.info("Dropping stale action: %s", exc)
            self._refresh_all()
            return False
        except PersistenceError as exc:
            logger.error("Save failed: %s", exc)
            self.status_var.set("Save failed; nothing was lost. Please try again.")
            return False
        self._append_log(success_message)
        return True

    def _selected_activity_id(self) -> str | None:
        selected = self.today_tree.selection()
        return selected[0] if selected else None

    def _append_log(self, message: str) -> None:
        logger.info(message)
        self.status_var.set(f"[{_now_stamp()}] {message}")

    def _on_close(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self.day_clock.stop()
        self.signals.close()
        self.destroy()


def _day_key(day: datetime) -> str:
    return day.date().isoformat()


def _status_key(activity: Activity) -> str:
    if activity.is_archived:
        return "archived"
    return "completed" if activity.is_completed else "incomplete"


def _fmt_time(timestamp: datetime | None) -> str:
    if timestamp is None:
        return ""
    return timestamp.astimezone().strftime("%I:%M %p").lstrip("0")


def _now_stamp() -> str:
    return datetime.now().astimezone().strftime("%H:%M:%S")


def _open_database() -> DaybookDatabase:
    try:
        ensure_directories()
    except OSError as exc:
        raise StoreUnavailableError(f"Cannot create data directory: {exc}") from exc
    return DaybookDatabase(database_path())


def _seed_sample_cli(db: DaybookDatabase) -> int:
    created = ActivityStore(db).seed_sample_activities()
    print(f"seeded={len(created)} database={db.path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="daybook")
    parser.add_argument("--version", action="store_true", help="Print app version and exit")
    parser.add_argument("--data-dir", type=Path, help=f"Data directory (default: ${DATA_DIR_ENV} or platform default)")
    parser.add_argument("--seed-sample", action="store_true", help="Insert sample activities and exit")
    parser.add_argument("--log-level", default="INFO", choices=("DEBUG", "INFO", "WARNING", "ERROR"))
    args = parser.parse_args(argv)
    if args.version:
        print(__version__)
        return 0

    setup_logging(getattr(logging, args.log_level))
    if args.data_dir is not None:
        os.environ[DATA_DIR_ENV] = str(args.data_dir)

    try:
        db = _open_database()
    except StoreUnavailableError as exc:
        logger.error("Daybook cannot start: %s", exc)
        return 2

    if args.seed_sample:
        return _seed_sample_cli(db)
    app = DaybookApp(db)
    app.mainloop()
    return 0
