from __future__ import annotations

import typer

from .config import ConfigError, load_settings
from .core import get_adapter, run_watcher
from .harvest import HarvestError, harvest
from .stock import ClassificationError, classify, describe_level
from .utils import make_session

app = typer.Typer(help="Watch a wishlist and push alerts when stock levels change.")


def _fail_config(e: ConfigError) -> None:
    typer.echo(f"[error] Could not load configuration: {e}", err=True)
    raise typer.Exit(code=2)


@app.command("watch")
def watch(
    site: str = typer.Option("coolstuffinc", help="Adapter/site to use (coolstuffinc/csi)"),
    wishlist: str = typer.Option(None, help="Wishlist URL (overrides CSI_WISHLIST)"),
    token: str = typer.Option(None, help="Boxcar credential (overrides BOXCAR_TOKEN)"),
    every: int = typer.Option(None, "--every", "-e", help="Check interval in seconds"),
    timeout: float = typer.Option(None, "--timeout", help="Harvest timeout in seconds"),
    realert_hours: int = typer.Option(
        None, "--realert-hours", help="Re-alert low stock after N hours (0 = off)"
    ),
    alert_mode: str = typer.Option(None, "--alert-mode", help="digest | each"),
    once: bool = typer.Option(False, help="Run a single tick then exit"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print alerts instead of sending"),
    env: str | None = typer.Option(None, "--env", help="Path to a .env file to load"),
):
    try:
        settings = load_settings(
            wishlist_url=wishlist,
            token=token,
            interval=every,
            harvest_timeout=timeout,
            realert_hours=realert_hours,
            alert_mode=alert_mode,
            dotenv_path=env,
            require_token=not dry_run,
        )
        get_adapter(site)
    except ConfigError as e:
        _fail_config(e)
        return
    run_watcher(settings, site=site, once=once, dry_run=dry_run)


@app.command("check")
def check(
    site: str = typer.Option("coolstuffinc", help="Adapter/site to use (coolstuffinc/csi)"),
    wishlist: str = typer.Option(None, help="Wishlist URL (overrides CSI_WISHLIST)"),
    env: str | None = typer.Option(None, "--env", help="Path to a .env file to load"),
):
    """
    Run a single harvest and list the stock level of every item. Sends nothing.
    """
    try:
        settings = load_settings(wishlist_url=wishlist, dotenv_path=env, require_token=False)
        adapter = get_adapter(site)
    except ConfigError as e:
        _fail_config(e)
        return
    try:
        items = harvest(
            make_session(),
            adapter,
            settings.wishlist_url,
            timeout=settings.harvest_timeout,
            max_workers=settings.max_workers,
        )
    except HarvestError as e:
        typer.echo(f"[error] {type(e).__name__}: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Items: {len(items)}")
    for code, rec in sorted(items.items()):
        typer.echo(f"- {code}: {describe_level(rec.stock)} ({rec.stock}) {rec.name}")


@app.command("classify")
def classify_cmd(text: str = typer.Argument(..., help="Raw stock status text")):
    """
    Show the stock level a status string maps to.
    """
    try:
        level = classify(text)
    except ClassificationError as e:
        typer.echo(f"[error] {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"{level} ({describe_level(level)})")


if __name__ == "__main__":
    app()
