from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field, ValidationError


DEFAULT_BASE_URL = "https://vivian-claude.onrender.com"

ENV_BASE_URL = "PAPERDESK_API_BASE_URL"
ENV_TIMEOUT = "PAPERDESK_TIMEOUT"
ENV_RETRY_ATTEMPTS = "PAPERDESK_RETRY_ATTEMPTS"
ENV_RETRY_BASE_DELAY = "PAPERDESK_RETRY_BASE_DELAY"
ENV_LOG_LEVEL = "PAPERDESK_LOG_LEVEL"


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


class ApiSettings(BaseModel):
    """
    Connection settings for the paper-management API.

    Fields
    - base_url: origin prepended to relative request paths.
    - timeout: seconds each attempt may take before it is abandoned.
    - retry_attempts: total attempts for transient failures (1 = no retry).
    - retry_base_delay: seconds; the wait before attempt n+1 is `retry_base_delay * n`.
    """

    base_url: str = Field(default=DEFAULT_BASE_URL, min_length=1)
    timeout: float = Field(default=10.0, gt=0)
    retry_attempts: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=1.0, ge=0)

    @classmethod
    def from_env(cls) -> "ApiSettings":
        raw = {
            "base_url": _getenv(ENV_BASE_URL, DEFAULT_BASE_URL),
            "timeout": _getenv(ENV_TIMEOUT, "10.0"),
            "retry_attempts": _getenv(ENV_RETRY_ATTEMPTS, "3"),
            "retry_base_delay": _getenv(ENV_RETRY_BASE_DELAY, "1.0"),
        }
        try:
            return cls.model_validate(raw)
        except ValidationError as ve:
            raise RuntimeError(f"Invalid API configuration: {ve}") from ve


def log_level_from_env(default: str = "INFO") -> str:
    return (_getenv(ENV_LOG_LEVEL, default) or default).upper()


__all__ = [
    "ApiSettings",
    "DEFAULT_BASE_URL",
    "log_level_from_env",
]
