from __future__ import annotations

import asyncio
import logging
import re
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from . import messages
from .settings import ApiSettings


logger = logging.getLogger(__name__)

DEFAULT_HEADERS: Dict[str, str] = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)

TokenProvider = Callable[[], Optional[str]]
Sleep = Callable[[float], Awaitable[Any]]


class ErrorKind(str, Enum):
    """Structured classification attached to every failed outcome."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed_response"
    HTTP_STATUS = "http_status"
    UNEXPECTED = "unexpected"

    @property
    def retryable(self) -> bool:
        return self in (ErrorKind.NETWORK, ErrorKind.TIMEOUT)


_EXHAUSTED_MESSAGES = {
    ErrorKind.NETWORK: messages.NETWORK_ERROR,
    ErrorKind.TIMEOUT: messages.TIMEOUT_ERROR,
}


class RequestOutcome(BaseModel):
    """
    Normalized result of a call through `HttpClient`.

    `success` is the only failure signal callers need to check. `status` and
    `status_text` are set whenever a response was received, including
    malformed ones; they stay None for network failures and timeouts.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    data: Any = None
    error: Optional[str] = None
    status: Optional[int] = None
    status_text: Optional[str] = Field(default=None, alias="statusText")
    error_kind: Optional[ErrorKind] = Field(default=None, alias="errorKind")

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        error: str,
        *,
        status: Optional[int] = None,
        status_text: Optional[str] = None,
    ) -> "RequestOutcome":
        return cls(
            success=False,
            data=None,
            error=error,
            status=status,
            status_text=status_text,
            error_kind=kind,
        )


class _TransportFailure(Exception):
    """Raised by the transport step when no usable response arrived."""

    def __init__(self, kind: ErrorKind) -> None:
        super().__init__(kind.value)
        self.kind = kind


class HttpClient:
    """
    Async JSON client for the paper-management API.

    Notes
    - Relative paths are joined to `settings.base_url`; absolute http(s) URLs
      are used as given.
    - A bearer token from `token_provider` is attached unless the call passes
      `require_auth=False`. A missing token is not an error here.
    - Each attempt is bounded by `settings.timeout`. On expiry the in-flight
      request is cancelled, not left running in the background.
    - Only network failures and timeouts are retried, up to
      `settings.retry_attempts` attempts, waiting `retry_base_delay * n`
      seconds before attempt n+1. Received responses are never retried.
    - Never raises for request failures; every call resolves to a
      `RequestOutcome`.
    """

    def __init__(
        self,
        settings: Optional[ApiSettings] = None,
        *,
        token_provider: Optional[TokenProvider] = None,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self._settings = settings or ApiSettings()
        self._base_url = self._settings.base_url.rstrip("/")
        self._token_provider = token_provider
        self._sleep = sleep or asyncio.sleep
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._settings.timeout)

    @classmethod
    def from_env(cls, *, token_provider: Optional[TokenProvider] = None) -> "HttpClient":
        return cls(ApiSettings.from_env(), token_provider=token_provider)

    @property
    def settings(self) -> ApiSettings:
        return self._settings

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # --------------- Public API ---------------
    async def get(
        self,
        path: str,
        *,
        require_auth: bool = True,
        headers: Optional[Mapping[str, str]] = None,
    ) -> RequestOutcome:
        return await self.request("GET", path, require_auth=require_auth, headers=headers)

    async def post(
        self,
        path: str,
        body: Any = None,
        *,
        require_auth: bool = True,
        headers: Optional[Mapping[str, str]] = None,
        files: Optional[Mapping[str, Any]] = None,
    ) -> RequestOutcome:
        return await self.request(
            "POST", path, body, require_auth=require_auth, headers=headers, files=files
        )

    async def put(
        self,
        path: str,
        body: Any = None,
        *,
        require_auth: bool = True,
        headers: Optional[Mapping[str, str]] = None,
    ) -> RequestOutcome:
        return await self.request("PUT", path, body, require_auth=require_auth, headers=headers)

    async def delete(
        self,
        path: str,
        *,
        require_auth: bool = True,
        headers: Optional[Mapping[str, str]] = None,
    ) -> RequestOutcome:
        return await self.request("DELETE", path, require_auth=require_auth, headers=headers)

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        require_auth: bool = True,
        headers: Optional[Mapping[str, str]] = None,
        files: Optional[Mapping[str, Any]] = None,
    ) -> RequestOutcome:
        """
        Perform `method` against `path` and normalize the result.

        - `body` is sent as JSON unless `files` is given, in which case it must
          be a mapping of form fields sent alongside the multipart files.
        """
        method = method.upper()
        url = self.resolve_url(path)
        try:
            req_headers = self.build_headers(
                headers, require_auth=require_auth, multipart=files is not None
            )
        except Exception:
            logger.exception("Could not build headers for %s %s", method, url)
            return RequestOutcome.failure(ErrorKind.UNEXPECTED, messages.UNEXPECTED_ERROR)
        max_attempts = self._settings.retry_attempts

        attempt = 0
        while True:
            attempt += 1
            try:
                resp = await self._send(method, url, req_headers, body, files)
            except _TransportFailure as tf:
                if attempt >= max_attempts:
                    logger.error(
                        "%s %s failed after %d attempt(s): %s",
                        method, url, attempt, tf.kind.value,
                    )
                    return RequestOutcome.failure(tf.kind, _EXHAUSTED_MESSAGES[tf.kind])
                delay = self._settings.retry_base_delay * attempt
                logger.warning(
                    "%s %s failed (%s), retrying in %.1fs (%d/%d)",
                    method, url, tf.kind.value, delay, attempt, max_attempts,
                )
                await self._sleep(delay)
                continue
            except Exception:
                logger.exception("Unexpected error during %s %s", method, url)
                return RequestOutcome.failure(ErrorKind.UNEXPECTED, messages.UNEXPECTED_ERROR)

            return self._normalize(resp)

    # --------------- Helpers ---------------
    def resolve_url(self, path: str) -> str:
        if _ABSOLUTE_URL.match(path):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    def build_headers(
        self,
        headers: Optional[Mapping[str, str]] = None,
        *,
        require_auth: bool = True,
        multipart: bool = False,
    ) -> httpx.Headers:
        # Header names are case-insensitive; httpx.Headers merges them that way
        out = httpx.Headers(DEFAULT_HEADERS)
        if multipart:
            # httpx sets the multipart boundary itself
            out.pop("Content-Type", None)
        if headers:
            out.update(headers)
        if require_auth and self._token_provider is not None:
            token = self._token_provider()
            if token:
                out["Authorization"] = f"Bearer {token}"
        return out

    async def _send(
        self,
        method: str,
        url: str,
        headers: httpx.Headers,
        body: Any,
        files: Optional[Mapping[str, Any]],
    ) -> httpx.Response:
        kwargs: Dict[str, Any] = {"headers": headers}
        if files is not None:
            kwargs["files"] = files
            if body is not None:
                kwargs["data"] = body
        elif body is not None:
            kwargs["json"] = body

        logger.debug("%s %s", method, url)
        try:
            return await asyncio.wait_for(
                self._client.request(method, url, **kwargs),
                timeout=self._settings.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise _TransportFailure(ErrorKind.TIMEOUT) from exc
        except httpx.TimeoutException as exc:
            raise _TransportFailure(ErrorKind.TIMEOUT) from exc
        except httpx.TransportError as exc:
            raise _TransportFailure(ErrorKind.NETWORK) from exc

    @staticmethod
    def _normalize(resp: httpx.Response) -> RequestOutcome:
        status = resp.status_code
        reason = resp.reason_phrase
        try:
            payload = resp.json()
        except ValueError:
            return RequestOutcome.failure(
                ErrorKind.MALFORMED_RESPONSE,
                messages.MALFORMED_RESPONSE,
                status=status,
                status_text=reason,
            )

        if resp.is_success:
            return RequestOutcome(success=True, data=payload, status=status, status_text=reason)

        server_message = payload.get("message") if isinstance(payload, dict) else None
        error = str(server_message) if server_message else f"HTTP {status}: {reason}"
        return RequestOutcome.failure(
            ErrorKind.HTTP_STATUS, error, status=status, status_text=reason
        )


__all__ = [
    "DEFAULT_HEADERS",
    "ErrorKind",
    "HttpClient",
    "RequestOutcome",
]
