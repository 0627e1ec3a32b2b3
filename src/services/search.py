from __future__ import annotations

from typing import Any

from common.http_client import HttpClient

from .errors import unwrap


class SearchService:
    """Question answering over the embedded paper database."""

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    async def search(self, question: str, threshold: float = 0.5) -> Any:
        question = (question or "").strip()
        if not question:
            raise ValueError("question is required")
        resp = await self._http.post(
            "/search",
            {"question": question, "threshold": threshold, "isDetail": True},
        )
        return unwrap(resp, action="search")
