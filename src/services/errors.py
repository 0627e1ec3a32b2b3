from __future__ import annotations

from typing import Optional

from common.http_client import RequestOutcome


class PaperDeskError(RuntimeError):
    """Base error for the API services."""


class ApiError(PaperDeskError):
    """The backend call did not succeed; `outcome` holds the normalized result."""

    def __init__(self, outcome: RequestOutcome, *, action: Optional[str] = None) -> None:
        detail = outcome.error or "request failed"
        super().__init__(f"{action}: {detail}" if action else detail)
        self.outcome = outcome

    @property
    def status(self) -> Optional[int]:
        return self.outcome.status


def unwrap(outcome: RequestOutcome, *, action: str, nested: bool = False):
    """Return the payload of a successful outcome, raising ApiError otherwise.

    With `nested=True` the backend's `{"data": ...}` envelope is removed.
    """
    if not outcome.success:
        raise ApiError(outcome, action=action)
    data = outcome.data
    if nested and isinstance(data, dict) and "data" in data:
        return data["data"]
    return data
