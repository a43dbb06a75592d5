from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence

from . import formatting
from .matches import MatchResult, Record, fold_binary, fold_placements, parse_lol_match, parse_tft_match
from .rating import SOLO_QUEUE_TYPE, TFT_QUEUE_TYPE


logger = logging.getLogger(__name__)


class GameType(str, Enum):
    LOL = "lol"
    TFT = "tft"
    VALORANT = "valorant"


def detect_game_type(text: Optional[str]) -> GameType:
    """Map a free-text stream category to a game; anything unrecognised is LoL."""
    if not text:
        return GameType.LOL
    s = text.strip().lower()
    if "teamfight tactics" in s or s == "tft":
        return GameType.TFT
    if "valorant" in s:
        return GameType.VALORANT
    return GameType.LOL


@dataclass(frozen=True)
class GameVariant:
    game: GameType
    ranked_queue_type: str
    queues: FrozenSet[int]
    parse: Callable[[dict, str], Optional[MatchResult]]
    fold: Callable[[List[MatchResult]], Record]
    online: Callable[[Record, Optional[int]], str]
    offline: Callable[[int, int, Sequence[int], Optional[int]], str]
    no_games: str
    offline_no_data: str
    tracks_placements: bool = False

    def with_queues(self, queues: Sequence[int]) -> "GameVariant":
        return replace(self, queues=frozenset(int(q) for q in queues))


LOL = GameVariant(
    game=GameType.LOL,
    ranked_queue_type=SOLO_QUEUE_TYPE,
    queues=frozenset({420}),
    parse=parse_lol_match,
    fold=fold_binary,
    online=lambda rec, lp: formatting.format_stream_record(rec.wins, rec.losses, lp),
    offline=lambda w, l, _placements, lp: formatting.format_offline_record(w, l, lp),
    no_games="No ranked games this stream yet!",
    offline_no_data="Stream is offline. No previous record found.",
)

TFT = GameVariant(
    game=GameType.TFT,
    ranked_queue_type=TFT_QUEUE_TYPE,
    queues=frozenset({1100}),
    parse=parse_tft_match,
    fold=fold_placements,
    online=lambda rec, lp: formatting.format_tft_stream_record(rec.wins, rec.losses, rec.placements, lp),
    offline=formatting.format_tft_offline_record,
    no_games="No ranked TFT games this stream yet!",
    offline_no_data="Stream is offline. No previous TFT record found.",
    tracks_placements=True,
)

VARIANTS: Dict[GameType, GameVariant] = {
    GameType.LOL: LOL,
    GameType.TFT: TFT,
}


def variant_for(game: GameType, cfg: Optional[dict] = None) -> GameVariant:
    """The variant for ``game``, with queue ids from config when set.

    Games without a handler (VALORANT) are answered as League of Legends.
    """
    variant = VARIANTS.get(game)
    if variant is None:
        logger.info("no handler for game type %s, falling back to lol", game.value)
        variant = VARIANTS[GameType.LOL]
    queues = ((cfg or {}).get("queues") or {}).get(variant.game.value)
    if queues:
        variant = variant.with_queues(queues)
    return variant
