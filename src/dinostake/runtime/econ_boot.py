# src/dinostake/runtime/econ_boot.py
from __future__ import annotations

import logging
import random
import threading
from typing import Callable, Dict, List, Optional

from dinostake.runtime.apply.sale import SaleSchedule
from dinostake.runtime.clock import SystemClock
from dinostake.runtime.config import EconConfig, load_econ_config
from dinostake.runtime.doc_store import DocumentStore, MemoryDocumentStore
from dinostake.runtime.identity import IdentityProvider
from dinostake.runtime.metrics import set_gauge
from dinostake.runtime.runtime_logging import log_event
from dinostake.runtime.scheduler import SchedulerConfig, TickScheduler
from dinostake.runtime.session import HolderSession
from dinostake.runtime.sqlite_db import SqliteDB, SqliteDocumentStore

log = logging.getLogger("dinostake.boot")

MEMORY_DB = "memory"


def build_store(cfg: EconConfig) -> DocumentStore:
    if cfg.db_path.strip().lower() == MEMORY_DB:
        return MemoryDocumentStore()
    db = SqliteDB(path=cfg.db_path)
    return SqliteDocumentStore(db=db)


class EconRuntime:
    """Process-wide wiring: one store, one clock, one sale T0, one session per holder."""

    def __init__(
        self,
        *,
        cfg: EconConfig,
        store: DocumentStore,
        clock=None,
        rng_factory: Optional[Callable[[], object]] = None,
    ) -> None:
        self.cfg = cfg
        self.store = store
        self.clock = clock or SystemClock()
        self._rng_factory = rng_factory or random.Random

        if cfg.sale_start_ms is not None:
            self.sale_schedule = SaleSchedule(start_ms=int(cfg.sale_start_ms))
        else:
            self.sale_schedule = SaleSchedule.starting_after(
                self.clock.now_ms(), offset_days=cfg.sale_start_offset_days
            )

        self._lock = threading.Lock()
        self._sessions: Dict[str, HolderSession] = {}

    def _new_session(self, user_id: Optional[str]) -> HolderSession:
        return HolderSession(
            store=self.store,
            identity=IdentityProvider(user_id),
            clock=self.clock,
            rng=self._rng_factory(),
            sale_schedule=self.sale_schedule,
        )

    def session_for(self, user_id: Optional[str]) -> HolderSession:
        """Cached session for a holder; a blank id gets a throwaway unauthenticated session."""
        ident = IdentityProvider(user_id)
        uid = ident.user_id
        if uid is None:
            return self._new_session(None)

        with self._lock:
            s = self._sessions.get(uid)
            if s is None:
                s = self._new_session(uid)
                self._sessions[uid] = s
                s.initialize()
                set_gauge("sessions_active", len(self._sessions))
                log_event(log, "session_opened", user=uid)
            return s

    def sessions(self) -> List[HolderSession]:
        with self._lock:
            return list(self._sessions.values())

    def tick_accrual_all(self) -> None:
        for s in self.sessions():
            s.tick_accrual()

    def tick_sale_all(self) -> None:
        for s in self.sessions():
            s.tick_sale()

    def build_scheduler(self) -> TickScheduler:
        sched = TickScheduler(
            name="dinostake-ticker",
            cfg=SchedulerConfig(interval_ms=int(self.cfg.tick_interval_ms)),
        )
        sched.add_task("accrual", self.tick_accrual_all)
        sched.add_task("sale_epoch", self.tick_sale_all)
        return sched


def build_runtime(cfg: Optional[EconConfig] = None, *, clock=None) -> EconRuntime:
    """Build the runtime from an explicit config or, if omitted, from file/env."""
    c = cfg or load_econ_config()
    rt = EconRuntime(cfg=c, store=build_store(c), clock=clock)
    log_event(
        log,
        "runtime_booted",
        mode=c.mode,
        db_path=c.db_path,
        sale_start_ms=rt.sale_schedule.start_ms,
    )
    return rt


__all__ = ["EconRuntime", "MEMORY_DB", "build_runtime", "build_store"]
