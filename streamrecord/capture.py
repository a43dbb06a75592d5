from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from .config import capture_target
from .games import GameType, variant_for
from .rating import rating_from_entries
from .riot import RiotClient
from .session import CaptureState, SessionManager, iso
from .twitch import TwitchClient


logger = logging.getLogger(__name__)


def current_rating(riot: RiotClient, game: GameType, summoner: str, tag: str, platform: str) -> Optional[int]:
    variant = variant_for(game)
    account = riot.get_account(summoner, tag, platform)
    entries = riot.ranked_entries(variant.game.value, account["puuid"], platform)
    return rating_from_entries(entries, variant.ranked_queue_type)


def capture_tick(
    cfg: Dict[str, Any],
    sessions: SessionManager,
    riot: Optional[RiotClient],
    twitch: Optional[TwitchClient],
    now: Optional[datetime] = None,
) -> Optional[CaptureState]:
    """One scheduler step of the live-edge LP capture.

    offline/unknown -> live snapshots the current LP; live -> offline clears
    it; steady states keep it. Returns the saved state, or None when capture
    is not configured. Provider errors propagate and leave the stored state alone.
    """
    target = capture_target(cfg)
    if target is None:
        logger.debug("auto LP capture not configured; skipping")
        return None
    if twitch is None or not twitch.is_configured():
        logger.info("Twitch API not configured; skipping LP capture")
        return None
    if riot is None:
        logger.info("Riot API key missing; skipping LP capture")
        return None

    try:
        game = GameType(target.game)
    except ValueError:
        logger.warning("unknown capture game %r; using lol", target.game)
        game = GameType.LOL
    # captures are stored under the game that actually answers queries
    game = variant_for(game, cfg).game
    prev = sessions.get_capture_state(game.value, target.summoner, target.tag)
    was_live = prev.was_live if prev else False

    info = twitch.get_stream_info(target.channel)
    is_live = info is not None and info.is_live

    if is_live and not was_live:
        logger.info("stream %s went live%s, capturing LP", target.channel, "" if prev else " (first check)")
        lp = current_rating(riot, game, target.summoner, target.tag, target.region)
        state = CaptureState(
            was_live=True,
            captured_lp=lp,
            captured_at=iso(now or sessions.clock()),
            stream_started_at=info.started_at,
        )
        logger.info("captured starting LP %s for stream started at %s", lp, info.started_at)
    elif was_live and not is_live:
        logger.info("stream %s went offline", target.channel)
        state = CaptureState(
            was_live=False,
            captured_lp=None,
            captured_at=prev.captured_at,
            stream_started_at=prev.stream_started_at,
        )
    else:
        # still live or still offline: keep whatever was captured
        state = prev or CaptureState()

    sessions.save_capture_state(game.value, target.summoner, target.tag, state)
    return state
