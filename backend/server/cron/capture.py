from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from streamrecord.capture import capture_tick
from .. import deps


logger = logging.getLogger(__name__)

_STARTED = False
_STATUS = {"ts": None, "error": None}


def start_capture() -> None:
    global _STARTED
    if _STARTED:
        return
    _STARTED = True
    th = threading.Thread(target=_loop, daemon=True)
    th.start()


def last_tick() -> Optional[float]:
    return _STATUS["ts"]


def last_error() -> Optional[str]:
    return _STATUS["error"]


def _loop():
    # initial backoff
    time.sleep(5)
    while True:
        interval = 60
        try:
            cfg = deps.config()
            interval = int((cfg.get("capture", {}) or {}).get("interval_s") or 60)
            _tick(cfg)
            _STATUS["error"] = None
        except Exception as e:
            logger.exception("capture tick failed")
            _STATUS["error"] = str(e)
        _STATUS["ts"] = time.time()
        time.sleep(interval)


def _tick(cfg):
    st = deps.store()
    riot = deps.riot(cfg, st) if deps.get_api_key(cfg) else None
    return capture_tick(cfg, deps.sessions(cfg, st), riot, deps.twitch(cfg, st))
