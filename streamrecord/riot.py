from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from .config import get_api_key
from .store import Store


logger = logging.getLogger(__name__)


# Platform -> regional cluster for match-v5 / tft-match-v1
PLATFORM_ROUTES: Dict[str, str] = {
    "na1": "americas",
    "br1": "americas",
    "la1": "americas",
    "la2": "americas",
    "euw1": "europe",
    "eun1": "europe",
    "tr1": "europe",
    "ru": "europe",
    "kr": "asia",
    "jp1": "asia",
    "oc1": "sea",
    "ph2": "sea",
    "sg2": "sea",
    "th2": "sea",
    "tw2": "sea",
    "vn2": "sea",
}

# account-v1 has no sea cluster
_ACCOUNT_ROUTE_OVERRIDES = {"sea": "asia"}

MATCH_PATHS = {
    "lol": "/lol/match/v5/matches",
    "tft": "/tft/match/v1/matches",
}

RANKED_PATHS = {
    "lol": "/lol/league/v4/entries/by-puuid/{puuid}",
    "tft": "/tft/league/v1/by-puuid/{puuid}",
}

# seconds
CACHE_TTL = {
    "account": 86400,
    "match_ids": 120,
    "match": 3600,
    "ranked": 120,
}


def _base(host: str) -> str:
    return f"https://{host}.api.riotgames.com"


def regional_route(platform: str) -> str:
    return PLATFORM_ROUTES.get((platform or "").lower(), "americas")


def account_route(platform: str) -> str:
    route = regional_route(platform)
    return _ACCOUNT_ROUTE_OVERRIDES.get(route, route)


class RiotApiError(Exception):
    def __init__(self, message: str, status: int, rate_limited: bool = False) -> None:
        super().__init__(message)
        self.status = status
        self.rate_limited = rate_limited


@dataclass
class RiotClient:
    """Riot API client for account, match and league endpoints.

    Never retries: a 429 surfaces as ``RiotApiError(rate_limited=True)`` so
    callers can decide to truncate or give up. Successful responses are
    cached in the key-value store when one is supplied.
    """

    api_key: str
    store: Optional[Store] = None
    timeout: float = 15

    @classmethod
    def from_config(cls, cfg: Dict[str, Any], store: Optional[Store] = None) -> "RiotClient":
        key = get_api_key(cfg)
        if not key:
            raise RuntimeError("No Riot API key found; set RIOT_API_KEY or run auth")
        return cls(api_key=key, store=store)

    def _headers(self) -> Dict[str, str]:
        return {"X-Riot-Token": self.api_key}

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None, cache_key: Optional[str] = None, ttl: Optional[int] = None) -> Any:
        if self.store is not None and cache_key:
            cached = self.store.get(cache_key)
            if cached is not None:
                return json.loads(cached)
        resp = requests.get(url, headers=self._headers(), params=params, timeout=self.timeout)
        if resp.status_code == 429:
            logger.warning("riot rate limited: %s (Retry-After=%s)", url, resp.headers.get("Retry-After"))
            raise RiotApiError("Rate limited", 429, rate_limited=True)
        if not resp.ok:
            raise RiotApiError(f"API request failed: {resp.status_code} {resp.reason}", resp.status_code)
        data = resp.json()
        if self.store is not None and cache_key:
            self.store.put(cache_key, json.dumps(data), ttl_s=ttl)
        return data

    # Account V1
    def get_account(self, game_name: str, tag_line: str, platform: str) -> Dict[str, Any]:
        route = account_route(platform)
        url = f"{_base(route)}/riot/account/v1/accounts/by-riot-id/{quote(game_name, safe='')}/{quote(tag_line, safe='')}"
        cache_key = f"riot:account:{route}:{game_name.lower()}:{tag_line.lower()}"
        return self._get(url, cache_key=cache_key, ttl=CACHE_TTL["account"])

    # Match V5 / TFT Match V1
    def match_ids(self, game: str, puuid: str, platform: str, count: int = 20, start_time: Optional[int] = None) -> List[str]:
        """Most recent match ids, newest first. ``start_time`` is epoch seconds."""
        url = f"{_base(regional_route(platform))}{MATCH_PATHS[game]}/by-puuid/{puuid}/ids"
        params: Dict[str, Any] = {"count": count}
        if start_time is not None:
            params["startTime"] = start_time
        cache_key = f"riot:{game}:match_ids:{puuid}:{count}:{start_time or 'all'}"
        return self._get(url, params=params, cache_key=cache_key, ttl=CACHE_TTL["match_ids"])

    def get_match(self, game: str, match_id: str, platform: str) -> Dict[str, Any]:
        url = f"{_base(regional_route(platform))}{MATCH_PATHS[game]}/{match_id}"
        return self._get(url, cache_key=f"riot:{game}:match:{match_id}", ttl=CACHE_TTL["match"])

    # League V4 / TFT League V1
    def ranked_entries(self, game: str, puuid: str, platform: str) -> List[Dict[str, Any]]:
        url = _base(platform.lower()) + RANKED_PATHS[game].format(puuid=puuid)
        entries = self._get(url, cache_key=f"riot:{game}:ranked:{puuid}", ttl=CACHE_TTL["ranked"])
        logger.debug("ranked entries (%s): %s", game, entries)
        return entries
