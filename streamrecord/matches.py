from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from .riot import RiotApiError

if TYPE_CHECKING:
    from .games import GameVariant
    from .riot import RiotClient


logger = logging.getLogger(__name__)

MAX_MATCHES = 20
FETCH_DELAY_S = 0.05
RECENT_PLACEMENTS = 5


@dataclass
class MatchResult:
    match_id: str
    started_ms: int
    queue_id: int
    win: bool = False
    placement: Optional[int] = None
    lobby_size: int = 8


@dataclass
class Record:
    wins: int = 0
    losses: int = 0
    firsts: int = 0
    placements: List[int] = field(default_factory=list)

    @property
    def games(self) -> int:
        return self.wins + self.losses


def participant_by_puuid(participants: List[Dict[str, Any]], puuid: str) -> Optional[Dict[str, Any]]:
    for p in participants or []:
        if p.get("puuid") == puuid:
            return p
    return None


def parse_lol_match(match: Dict[str, Any], puuid: str) -> Optional[MatchResult]:
    info = match.get("info", {})
    me = participant_by_puuid(info.get("participants", []), puuid)
    if me is None:
        return None
    return MatchResult(
        match_id=match.get("metadata", {}).get("matchId", ""),
        started_ms=int(info.get("gameStartTimestamp") or 0),
        queue_id=int(info.get("queueId") or 0),
        win=bool(me.get("win")),
    )


def parse_tft_match(match: Dict[str, Any], puuid: str) -> Optional[MatchResult]:
    info = match.get("info", {})
    participants = info.get("participants", [])
    me = participant_by_puuid(participants, puuid)
    if me is None:
        return None
    placement = int(me.get("placement") or 0)
    return MatchResult(
        match_id=match.get("metadata", {}).get("match_id", ""),
        started_ms=int(info.get("game_datetime") or 0),
        queue_id=int(info.get("queue_id") or 0),
        win=placement == 1,
        placement=placement,
        lobby_size=len(participants) or 8,
    )


def collect_matches(
    riot: "RiotClient",
    variant: "GameVariant",
    puuid: str,
    platform: str,
    since_ms: int,
    count: int = MAX_MATCHES,
    delay_s: float = FETCH_DELAY_S,
    sleep: Optional[Callable[[float], None]] = None,
) -> List[MatchResult]:
    """Ranked matches for ``puuid`` that started at or after ``since_ms``, oldest first.

    Details are fetched one at a time. A rate-limit response ends the scan and
    whatever was fetched so far is returned; any other per-match failure skips
    that match only.
    """
    sleep = sleep or time.sleep
    game = variant.game.value
    ids = riot.match_ids(game, puuid, platform, count=count, start_time=since_ms // 1000)
    out: List[MatchResult] = []
    for i, mid in enumerate(ids[:count]):
        if i:
            sleep(delay_s)
        try:
            match = riot.get_match(game, mid, platform)
        except RiotApiError as e:
            if e.rate_limited:
                logger.info("rate limited after %d/%d matches; using partial list", i, len(ids))
                break
            logger.warning("failed to fetch match %s: %s", mid, e)
            continue
        except Exception as e:
            logger.warning("failed to fetch match %s: %s", mid, e)
            continue
        try:
            res = variant.parse(match, puuid)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("malformed match %s: %s", mid, e)
            continue
        if res is None:
            continue
        if res.queue_id not in variant.queues:
            continue
        # provider-side startTime filtering is loose
        if res.started_ms < since_ms:
            continue
        out.append(res)
    out.sort(key=lambda m: m.started_ms)
    return out


def fold_binary(matches: List[MatchResult]) -> Record:
    rec = Record()
    for m in matches:
        if m.win:
            rec.wins += 1
        else:
            rec.losses += 1
    return rec


def fold_placements(matches: List[MatchResult]) -> Record:
    """Top half of the lobby counts as a win; tracks firsts and the last five placements."""
    rec = Record()
    for m in matches:
        placement = m.placement or m.lobby_size
        if placement <= m.lobby_size // 2:
            rec.wins += 1
            if placement == 1:
                rec.firsts += 1
        else:
            rec.losses += 1
    recent = sorted(matches, key=lambda m: m.started_ms, reverse=True)[:RECENT_PLACEMENTS]
    rec.placements = [m.placement or m.lobby_size for m in recent]
    return rec


def aggregate(riot: "RiotClient", variant: "GameVariant", puuid: str, platform: str, since_ms: int, **kwargs: Any) -> Record:
    return variant.fold(collect_matches(riot, variant, puuid, platform, since_ms, **kwargs))
