from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from . import matches
from .games import GameType, GameVariant, detect_game_type, variant_for
from .rating import delta, rating_from_entries
from .riot import PLATFORM_ROUTES, RiotApiError, RiotClient
from .session import Resolution, SessionManager, SessionRecord, is_offline, parse_ts, to_ms


logger = logging.getLogger(__name__)


RESPONSES = {
    "api_unavailable": "Stats temporarily unavailable",
    "unknown_error": "Unknown Error",
    "missing_params": "Missing required parameters: summoner, tag, region",
}


@dataclass
class QueryParams:
    summoner: str
    tag: str
    region: str
    stream_start: Optional[str]
    test_start_lp: Optional[int]
    game: GameType


@dataclass
class QueryResult:
    response: str
    record: Optional[SessionRecord] = None
    lp_change: Optional[int] = None


def _arg(args: Mapping[str, Any], name: str) -> str:
    value = args.get(name)
    return str(value).strip() if value is not None else ""


def parse_params(args: Mapping[str, Any]) -> Optional[QueryParams]:
    """Validate raw query parameters; None means reject with "missing parameters"."""
    summoner = _arg(args, "summoner")
    tag = _arg(args, "tag")
    region = _arg(args, "region").lower()
    if not summoner or not tag or not region:
        return None
    if region not in PLATFORM_ROUTES:
        logger.debug("unknown region %r", region)
        return None

    stream_start: Optional[str] = _arg(args, "streamStart") or None
    if stream_start is not None:
        try:
            parse_ts(stream_start)
        except ValueError:
            logger.debug("bad streamStart %r", stream_start)
            return None

    test_start_lp: Optional[int] = None
    raw_lp = _arg(args, "testStartLp")
    if raw_lp:
        try:
            test_start_lp = int(raw_lp)
        except ValueError:
            return None

    game_param = _arg(args, "game") or None
    game = detect_game_type(game_param)
    logger.debug("detected game: %s (from param: %s)", game.value, game_param or "none")
    return QueryParams(summoner, tag, region, stream_start, test_start_lp, game)


def starting_rating(
    sessions: SessionManager,
    params: QueryParams,
    resolution: Resolution,
    current_lp: Optional[int],
    games_played: int,
) -> Tuple[Optional[int], bool]:
    """Starting LP for this query, and whether it was just taken from the current LP.

    Preference: explicit test override, the stored value of a continuing
    session, the LP auto-captured at this stream's live edge, then the
    current LP.
    """
    if params.test_start_lp is not None:
        logger.info("using test starting LP %s", params.test_start_lp)
        return params.test_start_lp, False
    if not resolution.is_new:
        return (resolution.prior.starting_lp if resolution.prior else None), False
    captured = sessions.captured_starting_rating(params.game.value, params.summoner, params.tag, params.stream_start or "")
    if captured is not None:
        return captured, False
    if games_played == 0:
        logger.info("no games played yet; current LP %s is the starting LP", current_lp)
        return current_lp, True
    logger.warning(
        "%d game(s) played before the first query of this stream; LP change for %s#%s will be inaccurate",
        games_played,
        params.summoner,
        params.tag,
    )
    return current_lp, False


def handle_offline(variant: GameVariant, sessions: SessionManager, params: QueryParams) -> QueryResult:
    last = sessions.get_session(variant.game.value, params.summoner, params.tag)
    if last is None or last.games == 0:
        return QueryResult(variant.offline_no_data, last)
    text = variant.offline(last.wins, last.losses, last.placements or [], last.lp_change)
    return QueryResult(text, last, last.lp_change)


def handle_online(
    variant: GameVariant,
    sessions: SessionManager,
    riot: RiotClient,
    params: QueryParams,
    now: Optional[datetime] = None,
    **aggregate_kwargs: Any,
) -> QueryResult:
    game = variant.game.value
    stream_start = params.stream_start or ""
    resolution = sessions.resolve(game, params.summoner, params.tag, stream_start, now=now)

    account = riot.get_account(params.summoner, params.tag, params.region)
    puuid = account["puuid"]
    current_lp = rating_from_entries(riot.ranked_entries(game, puuid, params.region), variant.ranked_queue_type)
    logger.debug("%s#%s current LP: %s", params.summoner, params.tag, current_lp)

    since_ms = to_ms(parse_ts(resolution.effective_start))
    rec = matches.aggregate(riot, variant, puuid, params.region, since_ms, **aggregate_kwargs)

    start_lp, baseline_only = starting_rating(sessions, params, resolution, current_lp, rec.games)
    lp_change: Optional[int] = None
    if start_lp is not None and current_lp is not None and not baseline_only:
        lp_change = delta(current_lp, start_lp)

    if resolution.is_new:
        base = sessions.new_session(game, resolution.effective_start, start_lp, now=now)
    else:
        base = resolution.prior
    record = sessions.update_session(
        base,
        rec.wins,
        rec.losses,
        lp_change,
        placements=rec.placements if variant.tracks_placements else None,
        firsts=rec.firsts if variant.tracks_placements else None,
        now=now,
    )
    sessions.save_session(params.summoner, params.tag, record)

    if rec.games == 0:
        return QueryResult(variant.no_games, record, lp_change)
    return QueryResult(variant.online(rec, lp_change), record, lp_change)


def handle_query(
    params: QueryParams,
    sessions: SessionManager,
    riot_factory: Callable[[], RiotClient],
    cfg: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> QueryResult:
    variant = variant_for(params.game, cfg)
    params = replace(params, game=variant.game)
    logger.info("processing %s request for %s#%s", params.game.value, params.summoner, params.tag)
    if is_offline(params.stream_start):
        return handle_offline(variant, sessions, params)
    return handle_online(variant, sessions, riot_factory(), params, now=now)


def respond(
    args: Mapping[str, Any],
    sessions: SessionManager,
    riot_factory: Callable[[], RiotClient],
    cfg: Optional[Dict[str, Any]] = None,
) -> str:
    """Answer one chat query with a single line of text; never raises."""
    params = parse_params(args)
    if params is None:
        return RESPONSES["missing_params"]
    try:
        return handle_query(params, sessions, riot_factory, cfg=cfg).response
    except RiotApiError as e:
        if e.rate_limited:
            logger.warning("record query rate limited for %s#%s", params.summoner, params.tag)
            return RESPONSES["api_unavailable"]
        logger.exception("riot error for %s#%s", params.summoner, params.tag)
        return RESPONSES["unknown_error"]
    except Exception:
        logger.exception("record query failed for %s#%s", params.summoner, params.tag)
        return RESPONSES["unknown_error"]
