from __future__ import annotations

import logging
import sys
import time
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler

from .capture import capture_tick
from .config import (
    capture_target,
    config_path,
    ensure_paths,
    get_api_key,
    get_config,
    get_twitch_credentials,
    open_config_in_editor,
    set_api_key,
    set_twitch_credentials,
)
from .riot import RiotClient
from .service import respond
from .session import SessionManager
from .store import Store
from .twitch import TwitchClient


app = typer.Typer(add_completion=False, no_args_is_help=True, help="Live stream win/loss and LP tracker")


@app.callback()
def main_callback(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    ensure_paths()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


@app.command()
def auth(
    api_key: Optional[str] = typer.Option(None, help="Riot API key (stored in keyring)"),
    twitch_client_id: Optional[str] = typer.Option(None, help="Twitch application client id"),
    twitch_client_secret: Optional[str] = typer.Option(None, help="Twitch application client secret"),
):
    """Store Riot and Twitch credentials in the system keyring."""
    if api_key:
        set_api_key(api_key)
        rprint("[green]Saved Riot API key to keyring.[/green]")
    elif not get_api_key():
        rprint("[yellow]No Riot API key found. Pass --api-key or set RIOT_API_KEY.[/yellow]")
        raise typer.Exit(code=1)
    if twitch_client_id or twitch_client_secret:
        if not (twitch_client_id and twitch_client_secret):
            rprint("[red]Pass both --twitch-client-id and --twitch-client-secret.[/red]")
            raise typer.Exit(code=1)
        set_twitch_credentials(twitch_client_id, twitch_client_secret)
        rprint("[green]Saved Twitch credentials to keyring.[/green]")


@app.command()
def record(
    summoner: str = typer.Option(..., help="Riot ID game name"),
    tag: str = typer.Option(..., help="Riot ID tag line"),
    region: str = typer.Option(..., help="Platform code, e.g. na1, euw1"),
    stream_start: Optional[str] = typer.Option(None, help="Stream start (ISO-8601); omit when offline"),
    game: Optional[str] = typer.Option(None, help="Stream category, e.g. 'Teamfight Tactics'"),
    test_start_lp: Optional[int] = typer.Option(None, help="Override the starting LP"),
):
    """Print the same line the chat command would get."""
    cfg = get_config()
    store = Store()
    args = {
        "summoner": summoner,
        "tag": tag,
        "region": region,
        "streamStart": stream_start,
        "game": game,
        "testStartLp": test_start_lp,
    }
    line = respond(args, SessionManager.from_config(cfg, store), lambda: RiotClient.from_config(cfg, store=store), cfg=cfg)
    rprint(line)


def _capture_once(cfg, store: Store):
    riot = None
    if get_api_key(cfg):
        riot = RiotClient.from_config(cfg, store=store)
    twitch = TwitchClient.from_config(cfg, store=store)
    return capture_tick(cfg, SessionManager.from_config(cfg, store), riot, twitch)


@app.command()
def capture():
    """Run one auto-capture tick."""
    cfg = get_config()
    state = _capture_once(cfg, Store())
    if state is None:
        rprint("[yellow]Auto capture not configured (capture.* in config, Twitch credentials, Riot key).[/yellow]")
        raise typer.Exit(code=1)
    rprint(state.to_dict())


@app.command()
def watch(interval: Optional[int] = typer.Option(None, help="Seconds between ticks (default: capture.interval_s)")):
    """Run the auto-capture tick forever."""
    cfg = get_config()
    store = Store()
    every = interval or int(cfg["capture"].get("interval_s") or 60)
    log = logging.getLogger(__name__)
    while True:
        try:
            _capture_once(cfg, store)
        except Exception:
            log.exception("capture tick failed")
        time.sleep(every)


@app.command()
def sweep():
    """Purge expired sessions and cached responses."""
    n = Store().sweep()
    rprint(f"[green]Removed[/green] {n} expired records.")


@app.command()
def config(
    action: str = typer.Argument("show", help="show|edit|path"),
):
    if action == "show":
        rprint(Path(config_path()).read_text())
    elif action == "path":
        rprint(config_path())
    elif action == "edit":
        opened = open_config_in_editor()
        if not opened:
            rprint("[yellow]Could not open editor. Edit the file manually:[/yellow]")
            rprint(config_path())
    else:
        rprint("[red]Unknown action. Use show|edit|path[/red]")


@app.command()
def doctor():
    cfg = get_config()
    store = Store()
    ok = True
    rprint("[bold]Config[/bold]", config_path())
    if not Path(config_path()).exists():
        rprint("[red]Missing config file[/red]")
        ok = False
    if get_api_key(cfg):
        rprint("[green]Riot API key present[/green]")
    else:
        rprint("[red]No Riot API key found (set RIOT_API_KEY or run auth).[/red]")
        ok = False
    rprint("[bold]DB[/bold]", store.db_path, f"({store.count()} records)")
    target = capture_target(cfg)
    if target is None:
        rprint("[yellow]Auto LP capture disabled (capture.channel/summoner/tag/region unset)[/yellow]")
    else:
        client_id, client_secret = get_twitch_credentials(cfg)
        if not (client_id and client_secret):
            rprint("[yellow]Auto LP capture configured but Twitch credentials missing[/yellow]")
        else:
            try:
                live = TwitchClient(client_id, client_secret, store=store).is_live(target.channel)
                rprint(f"[green]Twitch reachable[/green]: {target.channel} {'live' if live else 'offline'}")
            except Exception as e:
                rprint(f"[yellow]Twitch not reachable[/yellow]: {e}")
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    app()
