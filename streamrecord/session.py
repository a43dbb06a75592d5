from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, NamedTuple, Optional

from dateutil import parser as dateparser

from .store import Store


logger = logging.getLogger(__name__)

# A stream that restarts within this window continues the same session
RESTART_WINDOW = timedelta(minutes=10)
# Auto-captured LP applies when Twitch's started_at is this close to the query's
CAPTURE_MATCH_WINDOW = timedelta(minutes=5)

DEFAULT_SESSION_TTL_S = 7 * 24 * 3600
DEFAULT_CAPTURE_TTL_S = 24 * 3600


def parse_ts(value: str) -> datetime:
    """ISO-8601 -> aware datetime (naive input is taken as UTC). Raises ValueError."""
    try:
        dt = dateparser.isoparse(value)
    except (TypeError, OverflowError) as e:
        raise ValueError(f"invalid timestamp: {value!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionRecord:
    game: str
    stream_start: str
    last_seen: str
    wins: int = 0
    losses: int = 0
    lp_change: int = 0
    starting_lp: Optional[int] = None
    placements: Optional[List[int]] = None
    firsts: Optional[int] = None

    @property
    def games(self) -> int:
        return self.wins + self.losses

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "gameType": self.game,
            "streamStart": self.stream_start,
            "lastSeen": self.last_seen,
            "wins": self.wins,
            "losses": self.losses,
            "lpChange": self.lp_change,
            "startingLp": self.starting_lp,
        }
        if self.placements is not None:
            out["placements"] = list(self.placements)
        if self.firsts is not None:
            out["firsts"] = self.firsts
        return out

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SessionRecord":
        return cls(
            game=d.get("gameType", "lol"),
            stream_start=d["streamStart"],
            last_seen=d.get("lastSeen") or d["streamStart"],
            wins=max(int(d.get("wins") or 0), 0),
            losses=max(int(d.get("losses") or 0), 0),
            lp_change=int(d.get("lpChange") or 0),
            starting_lp=d.get("startingLp"),
            placements=d.get("placements"),
            firsts=d.get("firsts"),
        )


@dataclass
class CaptureState:
    was_live: bool = False
    captured_lp: Optional[int] = None
    captured_at: Optional[str] = None
    stream_started_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wasLive": self.was_live,
            "capturedLp": self.captured_lp,
            "capturedAt": self.captured_at,
            "streamStartedAt": self.stream_started_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CaptureState":
        return cls(
            was_live=bool(d.get("wasLive")),
            captured_lp=d.get("capturedLp"),
            captured_at=d.get("capturedAt"),
            stream_started_at=d.get("streamStartedAt"),
        )


class Resolution(NamedTuple):
    is_new: bool
    effective_start: str
    prior: Optional[SessionRecord]


def session_key(game: str, summoner: str, tag: str) -> str:
    return f"session:{game}:{summoner.lower()}:{tag.lower()}"


def capture_key(game: str, summoner: str, tag: str) -> str:
    return f"lp-capture:{game}:{summoner.lower()}:{tag.lower()}"


def is_offline(stream_start: Optional[str]) -> bool:
    return not stream_start or not stream_start.strip()


@dataclass
class SessionManager:
    """Session and LP-capture records in the key-value store, plus the
    new-vs-continuing session decision."""

    store: Store
    session_ttl_s: int = DEFAULT_SESSION_TTL_S
    capture_ttl_s: int = DEFAULT_CAPTURE_TTL_S
    clock: Any = field(default=utcnow)

    @classmethod
    def from_config(cls, cfg: Dict[str, Any], store: Store) -> "SessionManager":
        st = cfg.get("store", {}) or {}
        return cls(
            store=store,
            session_ttl_s=int(st.get("session_ttl_s") or DEFAULT_SESSION_TTL_S),
            capture_ttl_s=int(st.get("capture_ttl_s") or DEFAULT_CAPTURE_TTL_S),
        )

    # Sessions
    def get_session(self, game: str, summoner: str, tag: str) -> Optional[SessionRecord]:
        data = self.store.get_json(session_key(game, summoner, tag))
        if not data:
            return None
        return SessionRecord.from_dict(data)

    def save_session(self, summoner: str, tag: str, record: SessionRecord) -> None:
        self.store.put_json(session_key(record.game, summoner, tag), record.to_dict(), ttl_s=self.session_ttl_s)

    def resolve(self, game: str, summoner: str, tag: str, requested_start: str, now: Optional[datetime] = None) -> Resolution:
        prior = self.get_session(game, summoner, tag)
        if prior is None:
            return Resolution(True, requested_start, None)

        now = now or self.clock()
        requested = parse_ts(requested_start)
        prior_start = parse_ts(prior.stream_start)

        # bot restart / clock drift: same stream, keep the original start
        if abs(requested - prior_start) <= RESTART_WINDOW:
            logger.debug("continuing session %s (start drift %s)", prior.stream_start, requested - prior_start)
            return Resolution(False, prior.stream_start, prior)

        # stream dropped and came back while queries were still arriving
        last_seen = parse_ts(prior.last_seen)
        if now - last_seen <= RESTART_WINDOW and requested > last_seen - RESTART_WINDOW:
            logger.debug("continuing session %s after reconnect at %s", prior.stream_start, requested_start)
            return Resolution(False, prior.stream_start, prior)

        logger.debug("new session at %s (previous %s)", requested_start, prior.stream_start)
        return Resolution(True, requested_start, prior)

    def new_session(self, game: str, stream_start: str, starting_lp: Optional[int], now: Optional[datetime] = None) -> SessionRecord:
        tft = game == "tft"
        return SessionRecord(
            game=game,
            stream_start=stream_start,
            last_seen=iso(now or self.clock()),
            starting_lp=starting_lp,
            placements=[] if tft else None,
            firsts=0 if tft else None,
        )

    def update_session(
        self,
        record: SessionRecord,
        wins: int,
        losses: int,
        lp_change: Optional[int],
        placements: Optional[List[int]] = None,
        firsts: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> SessionRecord:
        """Copy of ``record`` with fresh counters; starting LP is never touched."""
        seen = now or self.clock()
        prev_seen = parse_ts(record.last_seen)
        return SessionRecord(
            game=record.game,
            stream_start=record.stream_start,
            last_seen=iso(max(seen, prev_seen)),
            wins=max(wins, 0),
            losses=max(losses, 0),
            lp_change=record.lp_change if lp_change is None else lp_change,
            starting_lp=record.starting_lp,
            placements=list(placements) if placements is not None else record.placements,
            firsts=firsts if firsts is not None else record.firsts,
        )

    # LP capture
    def get_capture_state(self, game: str, summoner: str, tag: str) -> Optional[CaptureState]:
        data = self.store.get_json(capture_key(game, summoner, tag))
        if not data:
            return None
        return CaptureState.from_dict(data)

    def save_capture_state(self, game: str, summoner: str, tag: str, state: CaptureState) -> None:
        self.store.put_json(capture_key(game, summoner, tag), state.to_dict(), ttl_s=self.capture_ttl_s)

    def captured_starting_rating(self, game: str, summoner: str, tag: str, stream_start: str) -> Optional[int]:
        """LP snapshotted at this stream's live edge, if the capture belongs to it."""
        state = self.get_capture_state(game, summoner, tag)
        if state is None or state.captured_lp is None or not state.stream_started_at:
            return None
        drift = abs(parse_ts(state.stream_started_at) - parse_ts(stream_start))
        if drift > CAPTURE_MATCH_WINDOW:
            return None
        logger.info("using auto-captured starting LP %s", state.captured_lp)
        return int(state.captured_lp)
