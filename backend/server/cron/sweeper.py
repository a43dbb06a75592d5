from __future__ import annotations

import logging
import threading
import time

from .. import deps


logger = logging.getLogger(__name__)

_STARTED = False


def start_sweeper() -> None:
    global _STARTED
    if _STARTED:
        return
    _STARTED = True
    th = threading.Thread(target=_loop, daemon=True)
    th.start()


def _loop():
    # initial small delay to avoid competing with startup tasks
    time.sleep(15)
    while True:
        interval = 3600
        try:
            cfg = deps.config()
            interval = int((cfg.get("server", {}) or {}).get("sweep_interval_s") or 3600)
            _run_once()
        except Exception:
            logger.exception("kv sweep failed")
        time.sleep(interval)


def _run_once() -> int:
    n = deps.store().sweep()
    if n:
        logger.info("swept %d expired records", n)
    return n
