from __future__ import annotations

from typing import Any, Dict, Optional

from streamrecord.config import get_config, get_api_key
from streamrecord.riot import RiotClient
from streamrecord.session import SessionManager
from streamrecord.store import Store
from streamrecord.twitch import TwitchClient


def config() -> Dict[str, Any]:
    return get_config()


def store() -> Store:
    return Store()


def sessions(cfg: Dict[str, Any], st: Store) -> SessionManager:
    return SessionManager.from_config(cfg, st)


def riot(cfg: Dict[str, Any], st: Optional[Store] = None) -> RiotClient:
    return RiotClient.from_config(cfg, store=st)


def twitch(cfg: Dict[str, Any], st: Optional[Store] = None) -> TwitchClient:
    return TwitchClient.from_config(cfg, store=st)


__all__ = [
    "config",
    "store",
    "sessions",
    "riot",
    "twitch",
    "get_config",
    "get_api_key",
]
