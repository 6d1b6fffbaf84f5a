from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from dinostake.runtime.metrics import inc_counter, set_gauge


log = logging.getLogger("dinostake.scheduler")

TickFn = Callable[[], object]


@dataclass(frozen=True, slots=True)
class SchedulerConfig:
    interval_ms: int = 1_000
    fail_fast_after: int = 10
    error_backoff_min_ms: int = 250
    error_backoff_max_ms: int = 10_000


class TickScheduler:
    """Explicit cooperative ticker for time-driven recomputation.

    Tasks are plain callables (accrual tick, sale-epoch tick, ...). Each tick
    must recompute from absolute timestamps, so pausing, resuming, or a late
    tick never changes the result, only when it becomes visible.

    - start()/stop(): background thread lifecycle
    - pause()/resume(): keep the thread, skip ticks
    - run_once(): run every task synchronously (tests, manual driving)
    """

    def __init__(self, *, name: str = "dinostake-ticker", cfg: Optional[SchedulerConfig] = None) -> None:
        self._name = name
        self._cfg = cfg or SchedulerConfig()
        self._tasks: List[Tuple[str, TickFn]] = []
        self._tasks_lock = threading.Lock()

        self._t: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self._paused = threading.Event()
        self._started = False

        self._consecutive_failures = 0
        self._last_error = ""

    @property
    def started(self) -> bool:
        return self._started

    @property
    def paused(self) -> bool:
        return self._paused.is_set()

    @property
    def last_error(self) -> str:
        return self._last_error

    def add_task(self, name: str, fn: TickFn) -> None:
        with self._tasks_lock:
            self._tasks.append((str(name), fn))

    def remove_task(self, name: str) -> None:
        with self._tasks_lock:
            self._tasks = [(n, f) for (n, f) in self._tasks if n != name]

    def task_names(self) -> List[str]:
        with self._tasks_lock:
            return [n for n, _ in self._tasks]

    def start(self) -> bool:
        if self._started:
            return True
        self._stop.clear()
        self._t = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._t.start()
        self._started = True
        inc_counter("scheduler_start_total", 1)
        return True

    def stop(self) -> None:
        self._stop.set()
        t = self._t
        if t is not None and t is not threading.current_thread():
            t.join(timeout=2.0)
        self._t = None
        self._started = False
        inc_counter("scheduler_stop_total", 1)

    def pause(self) -> None:
        self._paused.set()

    def resume(self) -> None:
        self._paused.clear()

    def run_once(self) -> int:
        """Run all tasks once; returns the number of failed tasks."""
        with self._tasks_lock:
            tasks = list(self._tasks)

        failed = 0
        for name, fn in tasks:
            try:
                fn()
                inc_counter("scheduler_task_ok_total", 1, task=name)
            except Exception as err:
                failed += 1
                self._mark_error(where=name, err=err)
        if failed == 0:
            self._clear_error()
        return failed

    def _mark_error(self, *, where: str, err: Exception) -> None:
        self._consecutive_failures += 1
        self._last_error = f"{where}:{type(err).__name__}:{err}"
        inc_counter("scheduler_errors_total", 1, task=where)
        set_gauge("scheduler_consecutive_failures", self._consecutive_failures)
        log.exception("scheduler task error (%s) failures=%s", where, self._consecutive_failures)

    def _clear_error(self) -> None:
        if self._consecutive_failures == 0 and not self._last_error:
            return
        self._consecutive_failures = 0
        self._last_error = ""
        set_gauge("scheduler_consecutive_failures", 0)

    def _sleep_backoff(self) -> None:
        n = max(1, int(self._consecutive_failures))
        base = int(self._cfg.error_backoff_min_ms)
        cap = int(self._cfg.error_backoff_max_ms)
        ms = min(cap, base * (2 ** min(10, n - 1)))
        self._stop.wait(max(0.0, float(ms) / 1000.0))

    def _run(self) -> None:
        interval_s = float(self._cfg.interval_ms) / 1000.0
        next_ts = time.monotonic()

        while not self._stop.is_set():
            now = time.monotonic()
            if now < next_ts:
                self._stop.wait(min(0.25, next_ts - now))
                continue
            next_ts = now + interval_s

            if self._paused.is_set():
                continue

            inc_counter("scheduler_ticks_total", 1)
            if self.run_once() == 0:
                continue

            if self._consecutive_failures >= int(self._cfg.fail_fast_after):
                set_gauge("scheduler_unhealthy", 1)
                log.error(
                    "scheduler fail-fast tripped: failures=%s last_error=%s",
                    self._consecutive_failures,
                    self._last_error,
                )
                self._stop.set()
                break
            self._sleep_backoff()

        self._started = False


__all__ = ["SchedulerConfig", "TickScheduler"]
