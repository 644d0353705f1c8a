from __future__ import annotations

import heapq
import time
from collections.abc import Callable
from typing import Protocol


class Clock(Protocol):
    """Monotonic clock abstraction.

    Core logic depends on this interface rather than calling real time directly.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Production clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


class TimerHandle:
    """A scheduled callback. One-shot unless ``interval_s`` is set."""

    __slots__ = ("_active", "_callback", "_due_s", "_interval_s")

    def __init__(self, *, due_s: float, interval_s: float | None, callback: Callable[[], None]) -> None:
        self._due_s = float(due_s)
        self._interval_s = interval_s
        self._callback = callback
        self._active = True

    @property
    def due_s(self) -> float:
        return self._due_s

    @property
    def repeating(self) -> bool:
        return self._interval_s is not None

    @property
    def active(self) -> bool:
        """False once cancelled, or once a one-shot timer has fired."""

        return self._active

    def cancel(self) -> None:
        self._active = False


class Scheduler:
    """Cooperative timer queue driven by an injected Clock.

    Nothing fires on its own: the owner calls ``run_due()`` (once per frame in
    the UI, after ``FakeClock.advance`` in tests). Callbacks run on the caller's
    thread, in due order; ties fire in scheduling order.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._seq = 0

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        if delay_s < 0.0:
            raise ValueError("delay_s must be >= 0")
        handle = TimerHandle(due_s=self._clock.now() + float(delay_s), interval_s=None, callback=callback)
        self._push(handle)
        return handle

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> TimerHandle:
        if interval_s <= 0.0:
            raise ValueError("interval_s must be > 0")
        handle = TimerHandle(
            due_s=self._clock.now() + float(interval_s),
            interval_s=float(interval_s),
            callback=callback,
        )
        self._push(handle)
        return handle

    def cancel_all(self) -> None:
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()

    def pending_count(self) -> int:
        return sum(1 for _, _, handle in self._queue if handle.active)

    def run_due(self) -> int:
        """Fire every callback due at ``clock.now()``. Returns how many fired.

        A repeating timer that fell behind fires once per missed period.
        """

        now = self._clock.now()
        fired = 0
        while self._queue:
            due_s, _, handle = self._queue[0]
            if due_s > now:
                break
            heapq.heappop(self._queue)
            if not handle.active:
                continue
            if handle._interval_s is not None:
                handle._due_s = due_s + handle._interval_s
                self._push(handle)
            else:
                handle._active = False
            handle._callback()
            fired += 1
        return fired

    def _push(self, handle: TimerHandle) -> None:
        self._seq += 1
        heapq.heappush(self._queue, (handle.due_s, self._seq, handle))
