"""Explicit change notification.

Each `subscribe()` hands back a `Subscription`; owners keep the handle and
call `unsubscribe()` on teardown. There is no global event bus.
"""

from typing import Callable


class Subscription:
    """Handle returned by Signal.subscribe."""

    def __init__(self, signal: "Signal", callback: Callable):
        self._signal = signal
        self._callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._signal._remove(self)
            self.active = False


class Signal:
    """A named notification source with any number of subscribers."""

    def __init__(self, name: str):
        self.name = name
        self._subscriptions: list[Subscription] = []

    def subscribe(self, callback: Callable) -> Subscription:
        sub = Subscription(self, callback)
        self._subscriptions.append(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        try:
            self._subscriptions.remove(sub)
        except ValueError:
            pass

    def emit(self, *args) -> None:
        # Copy: a callback may unsubscribe itself (or others) while we iterate
        for sub in list(self._subscriptions):
            if sub.active:
                sub._callback(*args)

    def __len__(self) -> int:
        return len(self._subscriptions)
