from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from .config import get_twitch_credentials
from .store import Store


logger = logging.getLogger(__name__)

TOKEN_URL = "https://id.twitch.tv/oauth2/token"
STREAMS_URL = "https://api.twitch.tv/helix/streams"
TOKEN_CACHE_KEY = "twitch:token"
TOKEN_CACHE_TTL = 3600


class TwitchApiError(Exception):
    pass


@dataclass
class StreamInfo:
    is_live: bool
    started_at: Optional[str]
    game_name: str = ""

    @classmethod
    def from_helix(cls, data: Dict[str, Any]) -> "StreamInfo":
        return cls(
            is_live=data.get("type") == "live",
            started_at=data.get("started_at"),
            game_name=data.get("game_name") or "",
        )


class TwitchClient:
    """Helix client limited to "is this channel live, and since when"."""

    def __init__(self, client_id: str, client_secret: str, store: Optional[Store] = None) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.store = store
        self.session = requests.Session()

    @classmethod
    def from_config(cls, cfg: Dict[str, Any], store: Optional[Store] = None) -> "TwitchClient":
        client_id, client_secret = get_twitch_credentials(cfg)
        return cls(client_id, client_secret, store=store)

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _access_token(self) -> str:
        if self.store is not None:
            cached = self.store.get(TOKEN_CACHE_KEY)
            if cached:
                return cached
        resp = self.session.post(
            TOKEN_URL,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
            },
            timeout=10,
        )
        if not resp.ok:
            raise TwitchApiError(f"token request failed: {resp.status_code} {resp.reason}")
        body = resp.json()
        token = body["access_token"]
        if self.store is not None:
            ttl = min(int(body.get("expires_in") or TOKEN_CACHE_TTL), TOKEN_CACHE_TTL)
            self.store.put(TOKEN_CACHE_KEY, token, ttl_s=ttl)
        return token

    def get_stream_info(self, channel: str) -> Optional[StreamInfo]:
        """Current stream for ``channel``, or None when it is offline.

        Transport and HTTP errors raise; they must not be mistaken for "offline".
        """
        token = self._access_token()
        resp = self.session.get(
            STREAMS_URL,
            params={"user_login": channel},
            headers={"Client-ID": self.client_id, "Authorization": f"Bearer {token}"},
            timeout=10,
        )
        if resp.status_code == 401 and self.store is not None:
            # revoked or expired early; next call fetches a fresh token
            self.store.delete(TOKEN_CACHE_KEY)
        if not resp.ok:
            raise TwitchApiError(f"streams request failed: {resp.status_code} {resp.reason}")
        data = resp.json().get("data") or []
        if not data:
            return None
        return StreamInfo.from_helix(data[0])

    def is_live(self, channel: str) -> bool:
        info = self.get_stream_info(channel)
        return info is not None and info.is_live
