from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

Json = Dict[str, Any]

INSUFFICIENT_BALANCE = "insufficient_balance"
NOTHING_TO_BURN = "nothing_to_burn"
NO_TICKETS_AVAILABLE = "no_tickets_available"
ALREADY_SPINNING = "already_spinning"
SALE_NOT_LIVE = "sale_not_live"
INVALID_AMOUNT = "invalid_amount"
WALLET_CAP_EXCEEDED = "wallet_cap_exceeded"
EPOCH_CAP_EXCEEDED = "epoch_cap_exceeded"
NOT_AUTHENTICATED = "not_authenticated"
PERSISTENCE_FAILURE = "persistence_failure"
ASSET_NOT_FOUND = "asset_not_found"

ERROR_CODES = frozenset(
    {
        INSUFFICIENT_BALANCE,
        NOTHING_TO_BURN,
        NO_TICKETS_AVAILABLE,
        ALREADY_SPINNING,
        SALE_NOT_LIVE,
        INVALID_AMOUNT,
        WALLET_CAP_EXCEEDED,
        EPOCH_CAP_EXCEEDED,
        NOT_AUTHENTICATED,
        PERSISTENCE_FAILURE,
        ASSET_NOT_FOUND,
    }
)


@dataclass
class EconError(Exception):
    """Canonical error type for economic policy failures.

    Policies raise it; the session converts it into an OpResult.
    """

    code: str
    reason: str
    details: Any | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


@dataclass(frozen=True)
class OpResult:
    """Discriminated result of a mutating operation: a value or one error kind."""

    ok: bool
    code: str
    reason: str
    value: Any = None
    details: Optional[Json] = None

    def __iter__(self) -> Iterator[Any]:
        """Allow `ok, value = session.purchase_slot()` unpacking."""
        yield self.ok
        yield self.value if self.ok else self.code

    def to_json(self) -> Json:
        if self.ok:
            return {"ok": True, "result": self.value}
        return {"ok": False, "error": {"code": self.code, "message": self.reason, "details": self.details or {}}}

    @staticmethod
    def success(value: Any = None, reason: str = "applied") -> "OpResult":
        return OpResult(True, "ok", reason, value, None)

    @staticmethod
    def failure(code: str, reason: str, details: Optional[Json] = None) -> "OpResult":
        return OpResult(False, code, reason, None, details)

    @staticmethod
    def from_error(err: EconError) -> "OpResult":
        details = err.details if isinstance(err.details, dict) else ({} if err.details is None else {"detail": err.details})
        return OpResult(False, err.code, err.reason, None, details)
