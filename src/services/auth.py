from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from common import messages
from common.http_client import ErrorKind, HttpClient, RequestOutcome
from common.validation import validate_register_form
from state.models import Session
from state.session_store import SessionStore


logger = logging.getLogger(__name__)

LOGIN_PATH = "/user/get"
REGISTER_PATH = "/user/create"
LOGOUT_PATH = "/user/logout"
REFRESH_PATH = "/user/refresh"
PROFILE_PATH = "/user/profile"
UPDATE_PROFILE_PATH = "/user/update"


def _envelope_data(payload: Any) -> Any:
    """Login and profile responses nest the record as `data.data`."""
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        return payload["data"]
    return payload


def _normalize_user(user_data: Dict[str, Any]) -> Dict[str, Any]:
    user = {
        "id": user_data.get("id") or user_data.get("_id"),
        "email": user_data.get("email"),
        "isAdmin": user_data.get("isAdmin") or False,
    }
    user.update(user_data)
    return user


def is_allowed(user: Optional[Dict[str, Any]]) -> bool:
    """Only users explicitly flagged `isAllowed: true` may use the console."""
    return bool(user) and user.get("isAllowed") is True


class AuthService:
    """
    Authentication flows on top of `HttpClient`.

    Every method returns a `RequestOutcome`; the session store is updated only
    here, never by the request layer.
    """

    def __init__(self, http: HttpClient, store: SessionStore) -> None:
        self._http = http
        self._store = store

    async def login(self, email: str, password: str) -> RequestOutcome:
        resp = await self._http.post(
            LOGIN_PATH, {"email": email, "password": password}, require_auth=False
        )
        if not resp.success:
            return resp.model_copy(update={"error": resp.error or messages.LOGIN_FAILED})

        user_data = _envelope_data(resp.data)
        if not isinstance(user_data, dict):
            logger.warning("Login response carried no user record")
            return RequestOutcome.failure(
                ErrorKind.MALFORMED_RESPONSE,
                messages.LOGIN_FAILED,
                status=resp.status,
                status_text=resp.status_text,
            )
        envelope = resp.data if isinstance(resp.data, dict) else {}
        token = user_data.get("token") or envelope.get("token")
        if not token:
            logger.warning("Login response carried no token; session not stored")
            return RequestOutcome.failure(
                ErrorKind.MALFORMED_RESPONSE,
                messages.LOGIN_FAILED,
                status=resp.status,
                status_text=resp.status_text,
            )

        user = _normalize_user(user_data)
        self._store.set(Session(token=str(token), user=user))
        logger.info("Logged in as %s", user.get("email"))
        return RequestOutcome(
            success=True, data=user, status=resp.status, status_text=resp.status_text
        )

    async def register(
        self,
        email: str,
        password: str,
        confirm_password: Optional[str] = None,
    ) -> RequestOutcome:
        # Callers that collected no confirmation field are treated as confirmed
        confirm = password if confirm_password is None else confirm_password
        errors = validate_register_form(email, password, confirm)
        if errors:
            return RequestOutcome(success=False, error=next(iter(errors.values())), data=errors)

        resp = await self._http.post(
            REGISTER_PATH, {"email": email, "password": password}, require_auth=False
        )
        if not resp.success:
            return resp.model_copy(update={"error": resp.error or messages.REGISTRATION_FAILED})
        return resp

    async def logout(self) -> RequestOutcome:
        try:
            resp = await self._http.post(LOGOUT_PATH)
            if not resp.success:
                logger.info("Logout endpoint failed (%s); clearing local session anyway", resp.error)
        finally:
            self._store.clear()
        return RequestOutcome(success=True, data={"message": messages.LOGOUT_SUCCESS})

    def is_authenticated(self) -> bool:
        return self._store.get().is_authenticated()

    def current_user(self) -> Optional[Dict[str, Any]]:
        return self._store.user()

    async def refresh_token(self) -> RequestOutcome:
        resp = await self._http.post(REFRESH_PATH)
        token = resp.data.get("token") if resp.success and isinstance(resp.data, dict) else None
        if token:
            self._store.set_token(str(token))
            return resp
        self._store.clear()
        if resp.success:
            return RequestOutcome.failure(
                ErrorKind.MALFORMED_RESPONSE,
                messages.UNEXPECTED_ERROR,
                status=resp.status,
                status_text=resp.status_text,
            )
        return resp

    async def get_profile(self) -> RequestOutcome:
        user = self._store.user() or {}
        resp = await self._http.post(PROFILE_PATH, {"email": user.get("email")})
        if not resp.success:
            return resp
        profile = _envelope_data(resp.data)
        if isinstance(profile, dict):
            self._store.set_user(profile)
        return resp.model_copy(update={"data": profile})

    async def update_profile(self, profile_data: Dict[str, Any]) -> RequestOutcome:
        resp = await self._http.put(UPDATE_PROFILE_PATH, profile_data)
        if resp.success and isinstance(resp.data, dict):
            self._store.set_user(resp.data)
        return resp

    async def restore_session(self) -> Optional[Dict[str, Any]]:
        """
        Re-validate a persisted session against the profile endpoint.

        Returns the fresh user record, or None when there was no session or the
        backend rejected it (in which case the stored session is cleared). When
        the backend cannot be reached the stored user record is returned as is.
        """
        session = self._store.get()
        if not session.is_authenticated():
            return None
        resp = await self.get_profile()
        if not resp.success and resp.error_kind is not None and resp.error_kind.retryable:
            # Backend unreachable: keep the stored record rather than signing out
            logger.warning("Could not validate stored session (%s)", resp.error)
            return session.user
        if not resp.success:
            logger.info("Stored session rejected (%s); clearing it", resp.error)
            self._store.clear()
            return None
        return resp.data if isinstance(resp.data, dict) else session.user


__all__ = ["AuthService", "is_allowed"]
