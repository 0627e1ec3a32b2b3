from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class Session(BaseModel):
    """
    Authenticated session persisted between runs.

    Fields
    - token: raw bearer token issued by the backend at login.
    - user: the user record returned by the backend (opaque JSON object,
      e.g. {"id": 1, "email": "a@b.com", "isAdmin": false, "isAllowed": true}).

    Notes
    - Token and user are written and cleared together by `SessionStore`.
    """

    token: Optional[str] = Field(default=None, description="Bearer token")
    user: Optional[Dict[str, Any]] = Field(default=None, description="User record")

    @classmethod
    def empty(cls) -> "Session":
        """Convenience constructor for a signed-out session."""
        return cls()

    def is_authenticated(self) -> bool:
        return bool(self.token) and self.user is not None
