from __future__ import annotations

import logging
from datetime import timedelta
from functools import partial
from typing import Any, Callable, Optional

import simpy

from .clocktime import ClockTime
from .errors import PastSchedulingError

logger = logging.getLogger(__name__)


class EventHandle:
    """
    Handle for a scheduled callback. Cancelling after the callback fired is a no-op.
    """

    __slots__ = ("time", "callback", "cancelled", "fired")

    def __init__(self, time: ClockTime, callback: Callable[[], Any]):
        self.time = time
        self.callback = callback
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "fired" if self.fired else "pending"
        return f"EventHandle(time={self.time}, {state})"


class Scheduler:
    """
    Callback scheduler on top of a simpy environment whose clock runs in epoch seconds.

    Callbacks scheduled for the same instant run in the order they were scheduled
    (simpy orders same-time events by creation). A callback that raises stops
    `env.run()`, which is how invariant violations halt a run.
    """

    def __init__(self, env: simpy.Environment):
        self.env = env

    @classmethod
    def starting_at(cls, start: ClockTime) -> "Scheduler":
        return cls(simpy.Environment(initial_time=start.seconds))

    def now(self) -> ClockTime:
        return ClockTime(float(self.env.now))

    def schedule_at(self, time: ClockTime, callback: Callable[..., Any], *args: Any) -> EventHandle:
        delay = time.seconds - self.env.now
        if delay < 0:
            raise PastSchedulingError(f"Cannot schedule at {time}: simulation time is already {self.now()}")
        handle = EventHandle(time, partial(callback, *args) if args else callback)
        timeout = self.env.timeout(delay)
        timeout.callbacks.append(partial(self._fire, handle))
        return handle

    def schedule_after(self, duration: timedelta, callback: Callable[..., Any], *args: Any) -> EventHandle:
        return self.schedule_at(self.now().plus(duration), callback, *args)

    def schedule_now(self, callback: Callable[..., Any], *args: Any) -> EventHandle:
        return self.schedule_at(self.now(), callback, *args)

    def cancel(self, handle: Optional[EventHandle]) -> None:
        if handle is None or handle.fired:
            return
        handle.cancelled = True

    def process(self, generator) -> simpy.Process:
        return self.env.process(generator)

    def run(self, until: ClockTime) -> None:
        self.env.run(until=until.seconds)

    def _fire(self, handle: EventHandle, _event: simpy.Event) -> None:
        if handle.cancelled:
            return
        handle.fired = True
        handle.callback()
