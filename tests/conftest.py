import os

import pytest

# app module builds the FastAPI app at import; keep its threads off under test
os.environ.setdefault("STREAMRECORD_BACKGROUND", "0")

from streamrecord.session import SessionManager
from streamrecord.store import Store

from helpers import T0


@pytest.fixture(autouse=True)
def _isolated_paths(tmp_path, monkeypatch):
    monkeypatch.setenv("STREAMRECORD_CONFIG", str(tmp_path / "config.yaml"))
    monkeypatch.setenv("STREAMRECORD_DB", str(tmp_path / "kv.db"))
    monkeypatch.delenv("RIOT_API_KEY", raising=False)
    monkeypatch.delenv("TWITCH_CLIENT_ID", raising=False)
    monkeypatch.delenv("TWITCH_CLIENT_SECRET", raising=False)


@pytest.fixture
def store(tmp_path):
    return Store(db_path=str(tmp_path / "test.db"))


@pytest.fixture
def sessions(store):
    return SessionManager(store=store, clock=lambda: T0)
