from __future__ import annotations

import sqlite3
import time

from fastapi import APIRouter

from streamrecord.config import capture_target, get_twitch_credentials
from .. import deps
from ..cron import capture as capture_cron


router = APIRouter()


@router.get("/health")
def health():
    t0 = time.time()
    cfg = deps.config()
    try:
        st = deps.store()
        db_resp = {"ok": True, "schema_version": st.get_meta("schema_version"), "records": st.count()}
    except sqlite3.Error:
        db_resp = {"ok": False, "schema_version": None, "records": 0}

    riot_resp = {"status": "ok" if deps.get_api_key(cfg) else "no_key"}

    client_id, client_secret = get_twitch_credentials(cfg)
    target = capture_target(cfg)
    capture = {
        "configured": bool(target and client_id and client_secret),
        "channel": target.channel if target else None,
        "last_tick_epoch": capture_cron.last_tick(),
        "last_error": capture_cron.last_error(),
    }

    data = {
        "version": "1.0.0",
        "db": db_resp,
        "riot_api": riot_resp,
        "capture": capture,
        "elapsed_ms": round((time.time() - t0) * 1000, 1),
    }
    return {"ok": True, "data": data}
