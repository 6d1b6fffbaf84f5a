from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from dinostake.runtime.errors import (
    ALREADY_SPINNING,
    ASSET_NOT_FOUND,
    NOT_AUTHENTICATED,
    PERSISTENCE_FAILURE,
    EconError,
    OpResult,
)

_STATUS_BY_CODE = {
    NOT_AUTHENTICATED: 401,
    ASSET_NOT_FOUND: 404,
    ALREADY_SPINNING: 409,
    PERSISTENCE_FAILURE: 503,
}


@dataclass
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    def to_json(self) -> Dict[str, Any]:
        return {"ok": False, "error": {"code": self.code, "message": self.message, "details": dict(self.details)}}

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def unauthorized(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(401, code, message, details or {})

    @staticmethod
    def not_found(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(404, code, message, details or {})

    @staticmethod
    def internal(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(500, code, message, details or {})

    @staticmethod
    def from_econ(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        """Map an economic error kind onto its HTTP status (default 400)."""
        return ApiError(_STATUS_BY_CODE.get(code, 400), code, message, details or {})

    @staticmethod
    def from_error(err: EconError) -> "ApiError":
        details = err.details if isinstance(err.details, dict) else {}
        return ApiError.from_econ(err.code, err.reason, details)

    @staticmethod
    def from_result(res: OpResult) -> "ApiError":
        return ApiError.from_econ(res.code, res.reason, res.details)
