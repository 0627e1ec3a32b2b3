from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Protocol
from uuid import uuid4

from cryptography.fernet import Fernet, InvalidToken

from .models import Session


logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"

ENV_SESSION_FILE = "PAPERDESK_SESSION_FILE"
ENV_SESSION_KEY = "PAPERDESK_SESSION_KEY"

DEFAULT_SESSION_FILE = Path(".paperdesk") / "session.json"


def _to_fernet(key: str | bytes) -> Fernet:
    """Construct a Fernet instance from a user-provided key.

    The key must be a URL-safe base64-encoded 32-byte key (str or bytes),
    as returned by `cryptography.fernet.Fernet.generate_key()`.
    """
    if isinstance(key, str):
        key_bytes = key.encode("utf-8")
    else:
        key_bytes = key
    return Fernet(key_bytes)


class SessionBackend(Protocol):
    """Key-value persistence for the session keys."""

    def load(self) -> Dict[str, str]: ...

    def save(self, values: Dict[str, str]) -> None: ...

    def clear(self) -> None: ...


class MemoryBackend:
    """Process-local backend; nothing survives the process."""

    def __init__(self, values: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(values or {})

    def load(self) -> Dict[str, str]:
        return dict(self._values)

    def save(self, values: Dict[str, str]) -> None:
        self._values = dict(values)

    def clear(self) -> None:
        self._values = {}


class FileBackend:
    """
    Single JSON document holding every session key.

    - `save()` writes a temp file next to the target and renames it over the
      destination, so readers see either the old or the new document.
    - With `fernet_key` the document is encrypted at rest; reading a document
      that does not decrypt raises ValueError.
    - A missing file reads as an empty mapping.
    """

    def __init__(self, path: os.PathLike[str] | str, *, fernet_key: str | bytes | None = None) -> None:
        self._path = Path(path)
        self._fernet = _to_fernet(fernet_key) if fernet_key else None

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        data = self._path.read_bytes()
        if self._fernet is not None:
            try:
                data = self._fernet.decrypt(data)
            except InvalidToken as ex:
                raise ValueError("Failed to decrypt session: invalid Fernet token") from ex
        try:
            raw = json.loads(data.decode("utf-8"))
        except Exception as ex:
            raise ValueError(f"Failed to parse session file {self._path}") from ex
        if not isinstance(raw, dict):
            raise ValueError(f"Session file {self._path} does not hold an object")
        return {str(k): str(v) for k, v in raw.items() if isinstance(v, str)}

    def save(self, values: Dict[str, str]) -> None:
        payload = json.dumps(values, separators=(",", ":"), sort_keys=True).encode("utf-8")
        if self._fernet is not None:
            payload = self._fernet.encrypt(payload)

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(f"{self._path.name}.tmp-{uuid4().hex}")
        try:
            tmp.write_bytes(payload)
            os.replace(tmp, self._path)
        finally:
            if tmp.exists():
                tmp.unlink()

    def clear(self) -> None:
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass


class SessionStore:
    """
    The only writer of persisted session state.

    Token and user live under the `token` and `user` keys (the user record is
    JSON-encoded). `set()` and `clear()` touch both keys in one backend write.
    `token()` is shaped to be handed to `HttpClient(token_provider=...)`.
    """

    def __init__(self, backend: Optional[SessionBackend] = None) -> None:
        self._backend: SessionBackend = backend if backend is not None else MemoryBackend()

    @classmethod
    def from_env(cls) -> "SessionStore":
        path = os.environ.get(ENV_SESSION_FILE) or DEFAULT_SESSION_FILE
        key = os.environ.get(ENV_SESSION_KEY) or None
        return cls(FileBackend(path, fernet_key=key))

    def get(self) -> Session:
        values = self._backend.load()
        user: Optional[Dict[str, Any]] = None
        raw_user = values.get(USER_KEY)
        if raw_user:
            try:
                parsed = json.loads(raw_user)
            except ValueError:
                logger.warning("Stored user record is not valid JSON; ignoring it")
                parsed = None
            user = parsed if isinstance(parsed, dict) else None
        return Session(token=values.get(TOKEN_KEY) or None, user=user)

    def set(self, session: Session) -> None:
        values: Dict[str, str] = {}
        if session.token:
            values[TOKEN_KEY] = session.token
        if session.user is not None:
            values[USER_KEY] = json.dumps(session.user)
        if values:
            self._backend.save(values)
        else:
            self._backend.clear()

    def set_user(self, user: Dict[str, Any]) -> None:
        """Replace the stored user record, keeping the current token."""
        current = self.get()
        self.set(Session(token=current.token, user=user))

    def set_token(self, token: str) -> None:
        """Replace the stored token, keeping the current user record."""
        current = self.get()
        self.set(Session(token=token, user=current.user))

    def clear(self) -> None:
        self._backend.clear()

    def token(self) -> Optional[str]:
        return self.get().token

    def user(self) -> Optional[Dict[str, Any]]:
        return self.get().user


__all__ = [
    "FileBackend",
    "MemoryBackend",
    "SessionBackend",
    "SessionStore",
]
