"""
Session models and persistence.

`SessionStore` owns the persisted bearer token and user record; everything
else reads them through it.
"""

from .models import Session
from .session_store import FileBackend, MemoryBackend, SessionStore

__all__ = ["FileBackend", "MemoryBackend", "Session", "SessionStore"]
