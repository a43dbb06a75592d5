from __future__ import annotations

import os
import platform
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import keyring
import yaml
from keyring.errors import KeyringError


APP_DIR_NAME = "streamrecord"
CONFIG_FILE_NAME = "config.yaml"
DB_FILE_NAME = "streamrecord.db"
KEYRING_SERVICE = "streamrecord"


DEFAULT_CONFIG: Dict[str, Any] = {
    "riot": {
        "api_key_env": "RIOT_API_KEY",
    },
    "twitch": {
        "client_id_env": "TWITCH_CLIENT_ID",
        "client_secret_env": "TWITCH_CLIENT_SECRET",
    },
    # Auto LP capture: the channel whose live edge snapshots the player's rating
    "capture": {
        "channel": "",
        "summoner": "",
        "tag": "",
        "region": "",
        "game": "lol",
        "interval_s": 60,
    },
    "store": {
        "session_ttl_s": 7 * 24 * 3600,
        "capture_ttl_s": 24 * 3600,
    },
    # Ranked match queues counted toward the stream record
    "queues": {
        "lol": [420],
        "tft": [1100],
    },
    "server": {
        "sweep_interval_s": 3600,
    },
}


# (windows env vars, xdg env var, fallback under $HOME) per kind of directory
_DIR_SOURCES = {
    "config": (("APPDATA",), "XDG_CONFIG_HOME", (".config",)),
    "data": (("LOCALAPPDATA", "APPDATA"), "XDG_DATA_HOME", (".local", "share")),
}


def _app_dir(kind: str) -> Path:
    win_vars, xdg_var, home_parts = _DIR_SOURCES[kind]
    system = platform.system()
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    if system == "Windows":
        base = next((os.environ[v] for v in win_vars if os.getenv(v)), None)
        if base:
            return Path(base) / APP_DIR_NAME
    xdg = os.getenv(xdg_var)
    base_dir = Path(xdg) if xdg else Path.home().joinpath(*home_parts)
    return base_dir / APP_DIR_NAME


def config_path() -> str:
    override = os.getenv("STREAMRECORD_CONFIG")
    if override:
        return override
    return str(_app_dir("config") / CONFIG_FILE_NAME)


def db_path() -> str:
    override = os.getenv("STREAMRECORD_DB")
    if override:
        return override
    return str(_app_dir("data") / DB_FILE_NAME)


def ensure_paths() -> None:
    cfg_file = Path(config_path())
    cfg_file.parent.mkdir(parents=True, exist_ok=True)
    Path(db_path()).parent.mkdir(parents=True, exist_ok=True)
    if not cfg_file.exists():
        cfg_file.write_text(yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False))


def merge_defaults(cfg: Dict[str, Any], defaults: Dict[str, Any] = DEFAULT_CONFIG) -> Dict[str, Any]:
    out = dict(cfg)
    for k, v in defaults.items():
        if isinstance(v, dict):
            out[k] = merge_defaults(out.get(k) or {}, v)
        else:
            out.setdefault(k, v)
    return out


def get_config() -> Dict[str, Any]:
    ensure_paths()
    with open(config_path(), "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    return merge_defaults(cfg)


def save_config(cfg: Dict[str, Any]) -> None:
    ensure_paths()
    with open(config_path(), "w", encoding="utf-8") as f:
        yaml.safe_dump(cfg, f, sort_keys=False)


def open_config_in_editor() -> bool:
    """Open the config file with $EDITOR, else the desktop's default handler."""
    path = config_path()
    editor = os.getenv("VISUAL") or os.getenv("EDITOR")
    system = platform.system()
    try:
        if editor:
            subprocess.run([*shlex.split(editor), path], check=False)
        elif system == "Windows":
            os.startfile(path)  # type: ignore[attr-defined]
        else:
            subprocess.run(["open" if system == "Darwin" else "xdg-open", path], check=False)
    except OSError:
        return False
    return True


def _secret(name: str, env_name: str) -> Optional[str]:
    # prefer keyring; headless hosts may have no backend at all
    try:
        value = keyring.get_password(KEYRING_SERVICE, name)
    except KeyringError:
        value = None
    if value:
        return value
    return os.getenv(env_name)


def get_api_key(cfg: Optional[Dict[str, Any]] = None) -> Optional[str]:
    cfg = cfg or get_config()
    env_name = cfg.get("riot", {}).get("api_key_env", "RIOT_API_KEY")
    return _secret("riot_api_key", env_name)


def set_api_key(value: str) -> None:
    keyring.set_password(KEYRING_SERVICE, "riot_api_key", value)


def get_twitch_credentials(cfg: Optional[Dict[str, Any]] = None) -> tuple[str, str]:
    cfg = cfg or get_config()
    tw = cfg.get("twitch", {}) or {}
    client_id = _secret("twitch_client_id", tw.get("client_id_env", "TWITCH_CLIENT_ID")) or ""
    client_secret = _secret("twitch_client_secret", tw.get("client_secret_env", "TWITCH_CLIENT_SECRET")) or ""
    return client_id, client_secret


def set_twitch_credentials(client_id: str, client_secret: str) -> None:
    keyring.set_password(KEYRING_SERVICE, "twitch_client_id", client_id)
    keyring.set_password(KEYRING_SERVICE, "twitch_client_secret", client_secret)


@dataclass(frozen=True)
class CaptureTarget:
    channel: str
    summoner: str
    tag: str
    region: str
    game: str = "lol"


def capture_target(cfg: Dict[str, Any]) -> Optional[CaptureTarget]:
    """Auto-capture settings, or None when any required field is blank."""
    cap = cfg.get("capture", {}) or {}
    channel = str(cap.get("channel") or "").strip()
    summoner = str(cap.get("summoner") or "").strip()
    tag = str(cap.get("tag") or "").strip()
    region = str(cap.get("region") or "").strip().lower()
    if not (channel and summoner and tag and region):
        return None
    return CaptureTarget(channel=channel, summoner=summoner, tag=tag, region=region, game=str(cap.get("game") or "lol").lower())
