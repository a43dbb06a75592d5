from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse

from streamrecord.service import respond
from .. import deps


router = APIRouter()


@router.get("/record", response_class=PlainTextResponse)
def record(
    summoner: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    region: Optional[str] = Query(None),
    streamStart: Optional[str] = Query(None),
    testStartLp: Optional[str] = Query(None),
    game: Optional[str] = Query(None),
):
    """Chat-bot endpoint: always 200 with a single plain-text line."""
    cfg = deps.config()
    st = deps.store()
    args = {
        "summoner": summoner,
        "tag": tag,
        "region": region,
        "streamStart": streamStart,
        "testStartLp": testStartLp,
        "game": game,
    }
    line = respond(args, deps.sessions(cfg, st), lambda: deps.riot(cfg, st), cfg=cfg)
    return PlainTextResponse(line, headers={"Access-Control-Allow-Origin": "*", "Cache-Control": "no-store"})
