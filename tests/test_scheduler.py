from __future__ import annotations

from tripsim.scheduler import VirtualClockScheduler


def test_callbacks_run_in_time_order():
    scheduler = VirtualClockScheduler()
    fired = []
    scheduler.call_later(2.0, fired.append, "late")
    scheduler.call_later(0.5, fired.append, "early")
    scheduler.call_later(1.0, fired.append, "middle")

    assert scheduler.run() == 3
    assert fired == ["early", "middle", "late"]
    assert scheduler.time() == 2.0


def test_ties_fire_in_scheduling_order():
    scheduler = VirtualClockScheduler()
    fired = []
    for name in ("a", "b", "c"):
        scheduler.call_later(1.0, fired.append, name)

    scheduler.run()
    assert fired == ["a", "b", "c"]


def test_cancelled_handles_never_fire():
    scheduler = VirtualClockScheduler()
    fired = []
    handle = scheduler.call_later(1.0, fired.append, "cancelled")
    scheduler.call_later(2.0, fired.append, "kept")
    handle.cancel()

    assert handle.cancelled()
    assert scheduler.pending() == 1
    scheduler.run()
    assert fired == ["kept"]


def test_run_until_leaves_later_callbacks_queued():
    scheduler = VirtualClockScheduler()
    fired = []
    scheduler.call_later(1.0, fired.append, 1)
    scheduler.call_later(3.0, fired.append, 3)

    assert scheduler.run(until=2.0) == 1
    assert fired == [1]
    assert scheduler.time() == 2.0
    assert scheduler.pending() == 1


def test_callbacks_may_schedule_more_work():
    scheduler = VirtualClockScheduler()
    ticks = []

    def tick():
        ticks.append(scheduler.time())
        if len(ticks) < 3:
            scheduler.call_later(0.5, tick)

    scheduler.call_later(0.5, tick)
    scheduler.run()
    assert ticks == [0.5, 1.0, 1.5]


def test_run_next_on_empty_queue():
    scheduler = VirtualClockScheduler(start_time=10.0)
    assert scheduler.run_next() is False
    assert scheduler.time() == 10.0
