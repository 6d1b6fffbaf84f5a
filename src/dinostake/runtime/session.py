# src/dinostake/runtime/session.py
from __future__ import annotations

"""Holder session: the single logical owner of one holder's documents.

Every mutating operation follows the same shape:
  1) read the typed records (absent documents -> defaults)
  2) compute the complete next state with the pure policies in runtime/apply
  3) commit all touched documents with ONE store write (the commit point)

Nothing is cached between operations, so a failed write leaves no in-memory
divergence: the next read sees exactly what the store holds. Operations return
an OpResult; reads return typed records.

The session lock is held across the whole read -> compute -> commit of every
mutating operation and scheduler tick, so a tick never writes back a snapshot
that an operation has already replaced. A spin checks its own non-blocking
lock first: a concurrent spin is rejected, never queued behind the first.
"""

import logging
import random
import threading
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional, Type, TypeVar

from dinostake.ledger.constants import (
    DOC_AFFILIATE,
    DOC_RAFFLE,
    DOC_SALE,
    DOC_STAKING,
    GLOBAL_BURN_STATS_KEY,
    SALE_START_OFFSET_DAYS,
)
from dinostake.ledger.types import (
    GlobalBurnStats,
    HolderAccount,
    RaffleAccount,
    ReferralAccount,
    SaleAccount,
)
from dinostake.runtime.apply import burn as burn_policy
from dinostake.runtime.apply import raffle as raffle_policy
from dinostake.runtime.apply import referrals as referral_policy
from dinostake.runtime.apply import rewards as reward_policy
from dinostake.runtime.apply import sale as sale_policy
from dinostake.runtime.apply import slots as slot_policy
from dinostake.runtime.clock import SystemClock
from dinostake.runtime.doc_store import DocumentStore, user_doc_key
from dinostake.runtime.errors import (
    ALREADY_SPINNING,
    INVALID_AMOUNT,
    PERSISTENCE_FAILURE,
    EconError,
    OpResult,
)
from dinostake.runtime.identity import IdentityProvider
from dinostake.runtime.metrics import inc_counter
from dinostake.runtime.runtime_logging import log_event
from dinostake.runtime.scheduler import SchedulerConfig, TickScheduler

Json = Dict[str, Any]
R = TypeVar("R")

log = logging.getLogger("dinostake.session")

_DOC_TYPES = {
    DOC_STAKING: HolderAccount,
    DOC_RAFFLE: RaffleAccount,
    DOC_SALE: SaleAccount,
    DOC_AFFILIATE: ReferralAccount,
}


def _as_count(v: Any, *, field: str) -> int:
    if isinstance(v, bool):
        raise EconError(INVALID_AMOUNT, f"{field}_not_integer", {field: v})
    try:
        n = int(v)
    except (TypeError, ValueError, OverflowError):
        raise EconError(INVALID_AMOUNT, f"{field}_not_integer", {field: str(v)})
    if isinstance(v, (float, Decimal)) and n != v:
        raise EconError(INVALID_AMOUNT, f"{field}_not_integer", {field: str(v)})
    return n


def _persistence_error(where: str, err: Exception) -> EconError:
    return EconError(PERSISTENCE_FAILURE, f"store_{where}_failed", {"error": f"{type(err).__name__}: {err}"})


class HolderSession:
    def __init__(
        self,
        *,
        store: DocumentStore,
        identity: Optional[IdentityProvider] = None,
        clock=None,
        rng=None,
        sale_schedule: Optional[sale_policy.SaleSchedule] = None,
        sale_start_offset_days: int = SALE_START_OFFSET_DAYS,
    ) -> None:
        self._store = store
        self._identity = identity or IdentityProvider(None)
        self._clock = clock or SystemClock()
        self._rng = rng or random.Random()
        self._lock = threading.RLock()

        self._sale_lock = threading.Lock()
        self._sale_schedule = sale_schedule
        self._sale_offset_days = int(sale_start_offset_days)

        self._spin_lock = threading.Lock()
        self._scheduler: Optional[TickScheduler] = None

    # ---- identity / keys ----

    @property
    def user_id(self) -> Optional[str]:
        return self._identity.user_id

    @property
    def identity(self) -> IdentityProvider:
        return self._identity

    def _key(self, doc: str) -> str:
        return user_doc_key(self._identity.require_user_id(), doc)

    # ---- store access ----

    def _read_raw(self, key: str) -> Optional[Json]:
        try:
            return self._store.get(key)
        except Exception as e:
            raise _persistence_error("read", e) from e

    def _load(self, doc: str, cls: Type[R]) -> R:
        """Typed record for one of this holder's documents; defaults without an account."""
        if self.user_id is None:
            return cls()  # type: ignore[call-arg]
        raw = self._read_raw(self._key(doc))
        try:
            return cls.from_dict(raw)  # type: ignore[attr-defined]
        except ValueError as e:
            raise _persistence_error("decode", e) from e

    def _load_global_burn(self) -> GlobalBurnStats:
        raw = self._read_raw(GLOBAL_BURN_STATS_KEY)
        try:
            return GlobalBurnStats.from_dict(raw)
        except ValueError as e:
            raise _persistence_error("decode", e) from e

    def _commit(self, docs: Dict[str, Json]) -> None:
        try:
            self._store.put_many(docs)
        except Exception as e:
            raise _persistence_error("write", e) from e

    def _op(self, name: str, fn: Callable[[], Any], *, reason: str = "applied", locked: bool = True) -> OpResult:
        try:
            if locked:
                with self._lock:
                    value = fn()
            else:
                value = fn()
        except EconError as err:
            inc_counter("op_rejected_total", 1, op=name, code=err.code)
            log_event(
                log,
                "op_rejected",
                level=logging.WARNING if err.code == PERSISTENCE_FAILURE else logging.INFO,
                op=name,
                user=self.user_id,
                code=err.code,
                reason=err.reason,
                details=err.details,
            )
            return OpResult.from_error(err)

        inc_counter("op_applied_total", 1, op=name)
        log_event(log, "op_applied", op=name, user=self.user_id)
        if isinstance(value, OpResult):
            return value
        return OpResult.success(value, reason)

    def _require_auth(self) -> str:
        return self._identity.require_user_id()

    # ---- initialization / subscriptions ----

    def initialize(self) -> OpResult:
        """Create any missing per-holder documents with their defaults."""

        def _do() -> Json:
            self._require_auth()
            created: Dict[str, Json] = {}
            for doc, cls in _DOC_TYPES.items():
                key = self._key(doc)
                if self._read_raw(key) is None:
                    created[key] = cls().to_dict()
            if created:
                self._commit(created)
            return {"created": sorted(created.keys())}

        return self._op("initialize", _do)

    def subscribe_holder(self, callback: Callable[[HolderAccount], None]) -> Callable[[], None]:
        key = self._key(DOC_STAKING)
        return self._store.subscribe(key, lambda doc: callback(HolderAccount.from_dict(doc)))

    # ---- reads ----

    def holder(self) -> HolderAccount:
        """Holder record with rewards accrued up to now (not persisted)."""
        return reward_policy.accrue(self._load(DOC_STAKING, HolderAccount), self._clock.now_ms())

    def raffle(self) -> RaffleAccount:
        return self._load(DOC_RAFFLE, RaffleAccount)

    def sale_account(self) -> SaleAccount:
        return self._load(DOC_SALE, SaleAccount)

    def referrals(self) -> ReferralAccount:
        return referral_policy.accrue(self._load(DOC_AFFILIATE, ReferralAccount), self._clock.now_ms())

    def global_burn(self) -> GlobalBurnStats:
        return self._load_global_burn()

    def staking_status(self) -> Json:
        h = self.holder()
        out = h.to_dict()
        out.update(reward_policy.staking_summary(h))
        out["next_slot_cost"] = str(slot_policy.cost_of(len(h.assets)))
        return out

    # ---- staking / rewards ----

    def stake(self, asset_id: int) -> OpResult:
        return self._set_staked("stake", asset_id, reward_policy.stake)

    def unstake(self, asset_id: int) -> OpResult:
        return self._set_staked("unstake", asset_id, reward_policy.unstake)

    def _set_staked(self, name: str, asset_id: int, fn) -> OpResult:
        def _do() -> Json:
            self._require_auth()
            aid = _as_count(asset_id, field="asset_id")
            now = self._clock.now_ms()
            h = fn(self._load(DOC_STAKING, HolderAccount), aid, now)
            self._commit({self._key(DOC_STAKING): h.to_dict()})
            asset = h.find_asset(aid)
            return {"asset": asset.to_dict() if asset else None, **reward_policy.staking_summary(h)}

        return self._op(name, _do)

    def claim_rewards(self) -> OpResult:
        """Claim the whole reward balance (TGE 1:1 conversion is external)."""

        def _do() -> OpResult:
            self._require_auth()
            now = self._clock.now_ms()
            h, claimed = reward_policy.claim(reward_policy.accrue(self._load(DOC_STAKING, HolderAccount), now))
            if claimed <= 0:
                return OpResult.success({"claimed": "0", "nothing_to_claim": True}, "nothing_to_claim")
            self._commit({self._key(DOC_STAKING): h.to_dict()})
            return OpResult.success({"claimed": str(claimed), "nothing_to_claim": False}, "claimed")

        return self._op("claim_rewards", _do)

    def tick_accrual(self) -> None:
        """Persist reward and referral accrual up to now (scheduler task)."""
        if self.user_id is None:
            return
        with self._lock:
            now = self._clock.now_ms()
            h = reward_policy.accrue(self._load(DOC_STAKING, HolderAccount), now)
            r = referral_policy.accrue(self._load(DOC_AFFILIATE, ReferralAccount), now)
            self._commit({self._key(DOC_STAKING): h.to_dict(), self._key(DOC_AFFILIATE): r.to_dict()})

    # ---- slots ----

    def purchase_slot(self) -> OpResult:
        def _do() -> Json:
            self._require_auth()
            h = reward_policy.accrue(self._load(DOC_STAKING, HolderAccount), self._clock.now_ms())
            h, receipt = slot_policy.purchase_slot(h)
            self._commit({self._key(DOC_STAKING): h.to_dict()})
            inc_counter("slots_purchased_total", 1)
            return receipt.to_json()

        return self._op("purchase_slot", _do)

    # ---- burn ----

    def burn_all(self, target: str) -> OpResult:
        """Burn everything ready in the named pool ("holder" or "global")."""

        def _do() -> Json:
            self._require_auth()
            t = burn_policy.parse_target(target)
            if t == burn_policy.TARGET_HOLDER:
                h = reward_policy.accrue(self._load(DOC_STAKING, HolderAccount), self._clock.now_ms())
                h, amount = burn_policy.burn_all(h)
                self._commit({self._key(DOC_STAKING): h.to_dict()})
                inc_counter("burns_total", 1, target=t)
                return {"target": t, "burnt": str(amount), "total_burnt": str(h.total_burnt)}

            g, amount = burn_policy.burn_all(self._load_global_burn())
            self._commit({GLOBAL_BURN_STATS_KEY: g.to_dict()})
            inc_counter("burns_total", 1, target=t)
            return {"target": t, "burnt": str(amount), "total_burnt": str(g.total_burnt)}

        return self._op("burn_all", _do)

    def credit_global_burn(self, amount: Any) -> OpResult:
        """Earmark base-token supply in the global pool (operator action)."""

        def _do() -> Json:
            self._require_auth()
            try:
                amt = Decimal(str(amount))
            except (InvalidOperation, ValueError):
                raise EconError(INVALID_AMOUNT, "amount_not_numeric", {"amount": str(amount)})
            if not amt.is_finite():
                raise EconError(INVALID_AMOUNT, "amount_not_numeric", {"amount": str(amount)})
            g = burn_policy.credit(self._load_global_burn(), amt)
            self._commit({GLOBAL_BURN_STATS_KEY: g.to_dict()})
            return g.to_dict()

        return self._op("credit_global_burn", _do)

    # ---- raffle ----

    @property
    def spinning(self) -> bool:
        return self._spin_lock.locked()

    def buy_tickets(self, quantity: int) -> OpResult:
        def _do() -> Json:
            self._require_auth()
            h = reward_policy.accrue(self._load(DOC_STAKING, HolderAccount), self._clock.now_ms())
            q = _as_count(quantity, field="quantity")
            h, r, receipt = raffle_policy.buy_tickets(h, self._load(DOC_RAFFLE, RaffleAccount), q)
            self._commit({self._key(DOC_STAKING): h.to_dict(), self._key(DOC_RAFFLE): r.to_dict()})
            inc_counter("raffle_tickets_sold_total", q)
            return receipt.to_json()

        return self._op("buy_tickets", _do)

    def spin(self) -> OpResult:
        """Spend one ticket on a draw; a second spin while one is in flight is rejected."""

        def _do() -> Json:
            self._require_auth()
            if not self._spin_lock.acquire(blocking=False):
                raise EconError(ALREADY_SPINNING, "reels_already_spinning", {})
            try:
                with self._lock:
                    r, outcome = raffle_policy.spin(self._load(DOC_RAFFLE, RaffleAccount), self._rng)
                    self._commit({self._key(DOC_RAFFLE): r.to_dict()})
            finally:
                self._spin_lock.release()
            inc_counter("raffle_spins_total", 1, kind=outcome.kind)
            return outcome.to_json()

        return self._op("raffle_spin", _do, locked=False)

    # ---- sale ----

    @property
    def sale_schedule(self) -> sale_policy.SaleSchedule:
        """T0 is fixed at first observation and never moves for this session."""
        with self._sale_lock:
            if self._sale_schedule is None:
                self._sale_schedule = sale_policy.SaleSchedule.starting_after(
                    self._clock.now_ms(), offset_days=self._sale_offset_days
                )
            return self._sale_schedule

    def sale_status(self) -> Json:
        return sale_policy.sale_status(self.sale_account(), self.sale_schedule, self._clock.now_ms())

    def buy_sale(self, token_amount: Any) -> OpResult:
        def _do() -> Json:
            self._require_auth()
            acct, receipt = sale_policy.buy(
                self._load(DOC_SALE, SaleAccount), self.sale_schedule, token_amount, self._clock.now_ms()
            )
            self._commit({self._key(DOC_SALE): acct.to_dict()})
            inc_counter("sale_purchases_total", 1)
            return receipt.to_json()

        return self._op("buy_sale", _do)

    def tick_sale(self) -> bool:
        """Persist the per-epoch reset once the observed epoch moves on (scheduler task)."""
        schedule = self.sale_schedule
        if self.user_id is None:
            return False
        with self._lock:
            epoch = schedule.epoch_index(self._clock.now_ms())
            if epoch is None:
                return False
            acct = self._load(DOC_SALE, SaleAccount)
            rolled = sale_policy.roll_epoch(acct, epoch)
            if rolled is acct:
                return False
            self._commit({self._key(DOC_SALE): rolled.to_dict()})
        inc_counter("sale_epoch_resets_total", 1)
        log_event(log, "sale_epoch_reset", user=self.user_id, epoch=epoch)
        return True

    # ---- referrals ----

    def referral_status(self) -> Json:
        r = self.referrals()
        out = r.to_dict()
        out["referral_code"] = referral_policy.referral_code(self.user_id or "")
        out["daily_rate"] = str(referral_policy.daily_rate(r))
        return out

    def add_referral(self) -> OpResult:
        def _do() -> Json:
            self._require_auth()
            r = referral_policy.add_referral(self._load(DOC_AFFILIATE, ReferralAccount), self._clock.now_ms())
            self._commit({self._key(DOC_AFFILIATE): r.to_dict()})
            return r.to_dict()

        return self._op("add_referral", _do)

    def claim_referrals(self) -> OpResult:
        def _do() -> OpResult:
            self._require_auth()
            now = self._clock.now_ms()
            h = reward_policy.accrue(self._load(DOC_STAKING, HolderAccount), now)
            r, h, amount = referral_policy.claim(self._load(DOC_AFFILIATE, ReferralAccount), h, now)
            if amount <= 0:
                return OpResult.success({"claimed": "0", "nothing_to_claim": True}, "nothing_to_claim")
            self._commit({self._key(DOC_STAKING): h.to_dict(), self._key(DOC_AFFILIATE): r.to_dict()})
            return OpResult.success(
                {"claimed": str(amount), "nothing_to_claim": False, "accrued_balance": str(h.accrued_balance)},
                "claimed",
            )

        return self._op("claim_referrals", _do)

    # ---- scheduler ----

    def build_scheduler(self, cfg: Optional[SchedulerConfig] = None) -> TickScheduler:
        sched = TickScheduler(name=f"dinostake-session-{self.user_id or 'anon'}", cfg=cfg)
        sched.add_task("accrual", self.tick_accrual)
        sched.add_task("sale_epoch", self.tick_sale)
        return sched

    @property
    def scheduler(self) -> Optional[TickScheduler]:
        return self._scheduler

    def start_ticking(self, cfg: Optional[SchedulerConfig] = None) -> TickScheduler:
        if self._scheduler is None:
            self._scheduler = self.build_scheduler(cfg)
        self._scheduler.start()
        return self._scheduler

    def stop_ticking(self) -> None:
        if self._scheduler is not None:
            self._scheduler.stop()


__all__ = ["HolderSession"]
