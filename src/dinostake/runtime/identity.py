from __future__ import annotations

import uuid
from typing import Optional

from dinostake.runtime.errors import NOT_AUTHENTICATED, EconError


def _clean(user_id: Optional[str]) -> Optional[str]:
    s = str(user_id or "").strip()
    if not s or "/" in s:
        return None
    return s


class IdentityProvider:
    """Supplies the stable opaque user id of a session (None means no account)."""

    def __init__(self, user_id: Optional[str] = None) -> None:
        self._user_id = _clean(user_id)

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def authenticated(self) -> bool:
        return self._user_id is not None

    def sign_in_anonymously(self) -> str:
        """Assign a fresh anonymous id unless the session already has one."""
        if self._user_id is None:
            self._user_id = uuid.uuid4().hex
        return self._user_id

    def sign_out(self) -> None:
        self._user_id = None

    def require_user_id(self) -> str:
        if self._user_id is None:
            raise EconError(NOT_AUTHENTICATED, "connect_wallet_first", {})
        return self._user_id
