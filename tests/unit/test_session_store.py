from __future__ import annotations

import json

import pytest
from cryptography.fernet import Fernet

from state.models import Session
from state.session_store import FileBackend, MemoryBackend, SessionStore


USER = {"id": 1, "email": "a@b.com", "isAdmin": False, "isAllowed": True, "tags": ["x", {"y": 2}]}


def test_read_missing_returns_empty_session(tmp_path):
    store = SessionStore(FileBackend(tmp_path / "session.json"))

    session = store.get()
    assert session.token is None
    assert session.user is None
    assert session.is_authenticated() is False


def test_user_record_roundtrip_is_deep_equal(tmp_path):
    store = SessionStore(FileBackend(tmp_path / "session.json"))

    store.set(Session(token="t1", user=USER))

    # fresh store reading the same file
    again = SessionStore(FileBackend(tmp_path / "session.json")).get()
    assert again.token == "t1"
    assert again.user == USER
    assert again.is_authenticated() is True


def test_file_layout_uses_token_and_user_keys(tmp_path):
    path = tmp_path / "session.json"
    SessionStore(FileBackend(path)).set(Session(token="t1", user=USER))

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["token"] == "t1"
    assert json.loads(raw["user"]) == USER


def test_clear_removes_token_and_user_together(tmp_path):
    path = tmp_path / "session.json"
    store = SessionStore(FileBackend(path))
    store.set(Session(token="t1", user=USER))

    store.clear()

    assert not path.exists()
    assert store.get() == Session.empty()
    store.clear()  # idempotent


def test_set_user_keeps_token_and_set_token_keeps_user():
    store = SessionStore(MemoryBackend())
    store.set(Session(token="t1", user=USER))

    store.set_user({"id": 1, "email": "new@b.com"})
    assert store.token() == "t1"
    assert store.user() == {"id": 1, "email": "new@b.com"}

    store.set_token("t2")
    assert store.token() == "t2"
    assert store.user() == {"id": 1, "email": "new@b.com"}


def test_encrypted_file_roundtrip_and_not_plaintext(tmp_path):
    key = Fernet.generate_key()
    path = tmp_path / "session.bin"
    SessionStore(FileBackend(path, fernet_key=key)).set(Session(token="secret-token", user=USER))

    assert b"secret-token" not in path.read_bytes()

    session = SessionStore(FileBackend(path, fernet_key=key.decode("ascii"))).get()
    assert session.token == "secret-token"
    assert session.user == USER


def test_wrong_key_raises_value_error(tmp_path):
    path = tmp_path / "session.bin"
    SessionStore(FileBackend(path, fernet_key=Fernet.generate_key())).set(Session(token="t", user=USER))

    with pytest.raises(ValueError):
        SessionStore(FileBackend(path, fernet_key=Fernet.generate_key())).get()


def test_corrupt_plain_file_raises_value_error(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ValueError):
        SessionStore(FileBackend(path)).get()


def test_save_leaves_no_temp_files(tmp_path):
    store = SessionStore(FileBackend(tmp_path / "session.json"))
    store.set(Session(token="t1", user=USER))
    store.set(Session(token="t2", user=USER))

    assert sorted(p.name for p in tmp_path.iterdir()) == ["session.json"]


def test_from_env_uses_configured_path(tmp_path, monkeypatch):
    path = tmp_path / "nested" / "s.json"
    monkeypatch.setenv("PAPERDESK_SESSION_FILE", str(path))
    monkeypatch.delenv("PAPERDESK_SESSION_KEY", raising=False)

    store = SessionStore.from_env()
    store.set(Session(token="t1", user=USER))

    assert path.exists()
    assert store.token() == "t1"
