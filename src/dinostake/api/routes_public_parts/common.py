from __future__ import annotations

from typing import Any, Callable, Dict, TypeVar

from fastapi import Request

from dinostake.api.errors import ApiError
from dinostake.runtime.errors import EconError, OpResult

Json = Dict[str, Any]
T = TypeVar("T")

USER_HEADER = "x-user-id"


def _runtime(request: Request):
    rt = getattr(request.app.state, "runtime", None)
    if rt is None:
        raise ApiError.internal("not_ready", "runtime not attached to app.state", {})
    return rt


def _user_id(request: Request) -> str:
    return str(request.headers.get(USER_HEADER) or "").strip()


def _session(request: Request):
    """Session for the caller; no X-User-Id header means an unauthenticated session."""
    rt = _runtime(request)
    try:
        return rt.session_for(_user_id(request) or None)
    except ValueError as e:
        raise ApiError.bad_request("bad_user_id", str(e), {})


def _read(fn: Callable[[], T]) -> T:
    """Run a session read, surfacing economic errors with their HTTP status."""
    try:
        return fn()
    except EconError as err:
        raise ApiError.from_error(err)


def _ok(value: Any) -> Json:
    return {"ok": True, "result": value}


def _unwrap(res: OpResult) -> Json:
    if not res.ok:
        raise ApiError.from_result(res)
    out = res.to_json()
    out["reason"] = res.reason
    return out
