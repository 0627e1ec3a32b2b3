from __future__ import annotations

import pytest

from common.settings import DEFAULT_BASE_URL, ApiSettings, log_level_from_env


_VARS = (
    "PAPERDESK_API_BASE_URL",
    "PAPERDESK_TIMEOUT",
    "PAPERDESK_RETRY_ATTEMPTS",
    "PAPERDESK_RETRY_BASE_DELAY",
    "PAPERDESK_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    cfg = ApiSettings.from_env()

    assert cfg.base_url == DEFAULT_BASE_URL
    assert cfg.timeout == 10.0
    assert cfg.retry_attempts == 3
    assert cfg.retry_base_delay == 1.0
    assert log_level_from_env() == "INFO"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PAPERDESK_API_BASE_URL", "https://staging.test")
    monkeypatch.setenv("PAPERDESK_TIMEOUT", "2.5")
    monkeypatch.setenv("PAPERDESK_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("PAPERDESK_RETRY_BASE_DELAY", "0")
    monkeypatch.setenv("PAPERDESK_LOG_LEVEL", "debug")

    cfg = ApiSettings.from_env()

    assert cfg.base_url == "https://staging.test"
    assert cfg.timeout == 2.5
    assert cfg.retry_attempts == 5
    assert cfg.retry_base_delay == 0.0
    assert log_level_from_env() == "DEBUG"


@pytest.mark.parametrize(
    "name, value",
    [
        ("PAPERDESK_TIMEOUT", "0"),
        ("PAPERDESK_RETRY_ATTEMPTS", "0"),
        ("PAPERDESK_RETRY_ATTEMPTS", "three"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(RuntimeError, match="Invalid API configuration"):
        ApiSettings.from_env()
