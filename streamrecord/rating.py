from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple


# Ladder order, lowest first. Apex tiers share one base since they have no divisions.
TIER_BASE: Dict[str, int] = {
    "IRON": 0,
    "BRONZE": 400,
    "SILVER": 800,
    "GOLD": 1200,
    "PLATINUM": 1600,
    "EMERALD": 2000,
    "DIAMOND": 2400,
    "MASTER": 2800,
    "GRANDMASTER": 2800,
    "CHALLENGER": 2800,
}

APEX_TIERS = frozenset({"MASTER", "GRANDMASTER", "CHALLENGER"})

DIVISION_OFFSET: Dict[str, int] = {
    "IV": 0,
    "III": 100,
    "II": 200,
    "I": 300,
}

SOLO_QUEUE_TYPE = "RANKED_SOLO_5x5"
TFT_QUEUE_TYPE = "RANKED_TFT"


def to_scale(tier: str, division: str, points: int) -> int:
    """Collapse (tier, division, LP) onto one monotonic integer axis.

    Unknown tiers/divisions count as 0; upstream values are not validated.
    """
    t = (tier or "").upper()
    d = (division or "").upper()
    div = 0 if t in APEX_TIERS else DIVISION_OFFSET.get(d, 0)
    return TIER_BASE.get(t, 0) + div + int(points or 0)


def delta(current: int, starting: int) -> int:
    return current - starting


def ladder() -> List[Tuple[str, str]]:
    """Every (tier, division) position, lowest first."""
    out: List[Tuple[str, str]] = []
    for tier in TIER_BASE:
        if tier in APEX_TIERS:
            continue
        for div in DIVISION_OFFSET:
            out.append((tier, div))
    out.append(("MASTER", "I"))
    return out


def rating_from_entries(entries: Iterable[Dict[str, Any]], queue_type: str) -> Optional[int]:
    """Normalized rating for ``queue_type``, or None when the player has no entry there."""
    for e in entries or []:
        if e.get("queueType") == queue_type:
            return to_scale(e.get("tier", ""), e.get("rank", ""), int(e.get("leaguePoints") or 0))
    return None
