"""
Common utilities for paperdesk.

Modules:
- http_client: resilient async HTTP client (timeouts, retries, bearer auth)
- settings: environment-driven API configuration
- validation: form and field validation rules
- messages: user-facing message catalogue
- logging_setup: root logger configuration
"""

__all__ = [
    "http_client",
    "logging_setup",
    "messages",
    "settings",
    "validation",
]
