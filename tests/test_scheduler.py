from __future__ import annotations

import threading

from dinostake.runtime.scheduler import SchedulerConfig, TickScheduler


def test_run_once_runs_tasks_in_order() -> None:
    calls = []
    sched = TickScheduler()
    sched.add_task("a", lambda: calls.append("a"))
    sched.add_task("b", lambda: calls.append("b"))
    assert sched.run_once() == 0
    assert calls == ["a", "b"]

    sched.remove_task("a")
    assert sched.task_names() == ["b"]


def test_failing_task_does_not_stop_the_others() -> None:
    calls = []

    def _boom() -> None:
        raise RuntimeError("tick failed")

    sched = TickScheduler()
    sched.add_task("boom", _boom)
    sched.add_task("ok", lambda: calls.append(1))
    assert sched.run_once() == 1
    assert calls == [1]
    assert sched.last_error.startswith("boom:RuntimeError")

    sched.remove_task("boom")
    assert sched.run_once() == 0
    assert sched.last_error == ""


def test_background_thread_ticks_and_stops() -> None:
    ticked = threading.Event()
    sched = TickScheduler(cfg=SchedulerConfig(interval_ms=10))
    sched.add_task("t", ticked.set)

    sched.start()
    try:
        assert sched.started
        assert ticked.wait(2.0)
    finally:
        sched.stop()
    assert sched.started is False


def test_pause_skips_ticks() -> None:
    hits = []
    sched = TickScheduler(cfg=SchedulerConfig(interval_ms=10))
    sched.add_task("t", lambda: hits.append(1))
    sched.pause()
    assert sched.paused

    sched.start()
    try:
        threading.Event().wait(0.2)
        assert hits == []

        resumed = threading.Event()
        sched.add_task("r", resumed.set)
        sched.resume()
        assert resumed.wait(2.0)
    finally:
        sched.stop()


def test_fail_fast_stops_the_loop() -> None:
    def _boom() -> None:
        raise RuntimeError("always")

    sched = TickScheduler(
        cfg=SchedulerConfig(interval_ms=1, fail_fast_after=2, error_backoff_min_ms=1, error_backoff_max_ms=2)
    )
    sched.add_task("boom", _boom)
    sched.start()

    t = sched._t
    assert t is not None
    t.join(5.0)
    assert not t.is_alive()
    assert sched.started is False
    sched.stop()
