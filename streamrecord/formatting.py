from __future__ import annotations

from typing import Optional, Sequence


OFFLINE_PREFIX = "Stream is offline."


def format_lp_change(lp_change: Optional[int]) -> str:
    if lp_change is None:
        return "LP: N/A"
    if lp_change >= 0:
        return f"LP: +{lp_change}"
    return f"LP: {lp_change}"


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def _record(wins: int, losses: int) -> str:
    return f"{wins}W-{losses}L"


def _last_five(placements: Sequence[int]) -> str:
    if not placements:
        return ""
    return " | L5: " + ", ".join(ordinal(p) for p in placements)


# League of Legends

def format_stream_record(wins: int, losses: int, lp_change: Optional[int]) -> str:
    return f"Stream Record: {_record(wins, losses)} | {format_lp_change(lp_change)}"


def format_offline_record(wins: int, losses: int, lp_change: Optional[int]) -> str:
    return f"{OFFLINE_PREFIX} Last stream's record: {_record(wins, losses)} | {format_lp_change(lp_change)}"


# Teamfight Tactics
# W-L: 3W-2L | L5: 1st, 3rd, 8th, 7th, 4th | LP: +38

def format_tft_stream_record(wins: int, losses: int, placements: Sequence[int], lp_change: Optional[int]) -> str:
    return f"W-L: {_record(wins, losses)}{_last_five(placements)} | {format_lp_change(lp_change)}"


def format_tft_offline_record(wins: int, losses: int, placements: Sequence[int], lp_change: Optional[int]) -> str:
    return f"{OFFLINE_PREFIX} Last stream's TFT record: {format_tft_stream_record(wins, losses, placements, lp_change)}"
