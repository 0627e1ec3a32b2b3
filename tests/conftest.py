import os
import sys
from typing import Callable, List, Optional

import httpx
import pytest


# Ensure `src/` is importable as top-level for `common.*` imports
_ROOT = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
_SRC = os.path.join(_ROOT, "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)


BASE_URL = "https://api.test"


class RecordingSleep:
    """Stands in for asyncio.sleep; records requested delays without waiting."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_http(sleeper):
    """Build an HttpClient whose transport is `handler` (sync or async)."""
    from common.http_client import HttpClient
    from common.settings import ApiSettings

    def _make(
        handler: Callable,
        *,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        **settings,
    ) -> HttpClient:
        cfg = ApiSettings(base_url=BASE_URL, **settings)
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return HttpClient(cfg, token_provider=token_provider, client=client, sleep=sleeper)

    return _make
