"""Explicit observer lists used in place of live-bound properties.

Callbacks run synchronously, in subscription order, on whichever context publishes.
A failing callback is logged and does not stop the remaining ones.
"""
from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    def __init__(self, release: Callable[[], None]):
        self._release: Callable[[], None] | None = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def cancel(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()


class Observers(Generic[T]):
    def __init__(self, name: str):
        self._name = name
        self._callbacks: list[Callable[..., None]] = []

    def __len__(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: Callable[..., None]) -> Subscription:
        self._callbacks.append(callback)
        return Subscription(lambda: self._discard(callback))

    def publish(self, *args: T) -> None:
        for callback in list(self._callbacks):
            try:
                callback(*args)
            except Exception:  # noqa: BLE001
                logger.exception("Observer of %s failed", self._name)

    def clear(self) -> None:
        self._callbacks.clear()

    def _discard(self, callback: Callable[..., None]) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass


class ObservableValue(Generic[T]):
    """A value whose subscribers receive ``(old, new)`` on every change."""

    def __init__(self, name: str, initial: T):
        self._value = initial
        self._observers: Observers[T] = Observers(name)

    @property
    def value(self) -> T:
        return self._value

    def set(self, new_value: T) -> None:
        old_value = self._value
        if old_value == new_value:
            return
        self._value = new_value
        self._observers.publish(old_value, new_value)

    def subscribe(self, callback: Callable[[T, T], None]) -> Subscription:
        return self._observers.subscribe(callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._observers)

    def clear(self) -> None:
        self._observers.clear()
