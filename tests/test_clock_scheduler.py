from __future__ import annotations

from dataclasses import dataclass

import pytest

from brain_trainer.clock import RealClock, Scheduler


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def test_real_clock_is_monotonic() -> None:
    clock = RealClock()
    a = clock.now()
    b = clock.now()
    assert b >= a


def test_call_later_fires_once_when_due() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    fired: list[float] = []

    handle = sched.call_later(0.5, lambda: fired.append(clock.now()))
    assert handle.active
    assert not handle.repeating
    assert sched.pending_count() == 1

    clock.advance(0.49)
    assert sched.run_due() == 0
    clock.advance(0.01)
    assert sched.run_due() == 1
    assert fired == [pytest.approx(0.5)]
    assert handle.active is False
    assert sched.pending_count() == 0

    clock.advance(10.0)
    assert sched.run_due() == 0


def test_call_every_catches_up_one_tick_per_missed_period() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    ticks: list[float] = []

    handle = sched.call_every(1.0, lambda: ticks.append(handle.due_s))
    assert handle.repeating

    clock.advance(3.5)
    assert sched.run_due() == 3
    # Each firing already sees the next due time.
    assert ticks == [2.0, 3.0, 4.0]
    assert sched.pending_count() == 1


def test_cancel_and_cancel_all_drop_pending_callbacks() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    fired: list[str] = []

    a = sched.call_later(1.0, lambda: fired.append("a"))
    sched.call_later(1.0, lambda: fired.append("b"))
    a.cancel()
    assert sched.pending_count() == 1

    clock.advance(1.0)
    sched.run_due()
    assert fired == ["b"]

    sched.call_every(0.25, lambda: fired.append("tick"))
    sched.call_later(0.1, lambda: fired.append("late"))
    sched.cancel_all()
    assert sched.pending_count() == 0
    clock.advance(5.0)
    assert sched.run_due() == 0
    assert fired == ["b"]


def test_due_order_with_ties_in_scheduling_order() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    order: list[str] = []

    sched.call_later(2.0, lambda: order.append("late"))
    sched.call_later(1.0, lambda: order.append("first"))
    sched.call_later(1.0, lambda: order.append("second"))

    clock.advance(2.0)
    assert sched.run_due() == 3
    assert order == ["first", "second", "late"]


def test_callbacks_may_schedule_and_cancel_from_inside_run_due() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    order: list[str] = []

    def chained() -> None:
        order.append("outer")
        sched.call_later(0.0, lambda: order.append("inner"))
        repeating.cancel()

    repeating = sched.call_every(1.0, lambda: order.append("tick"))
    sched.call_later(0.5, chained)

    clock.advance(3.0)
    sched.run_due()
    assert order == ["outer", "inner"]
    assert sched.pending_count() == 0


def test_invalid_delays_are_rejected() -> None:
    sched = Scheduler(FakeClock())
    with pytest.raises(ValueError):
        sched.call_later(-0.1, lambda: None)
    with pytest.raises(ValueError):
        sched.call_every(0.0, lambda: None)
