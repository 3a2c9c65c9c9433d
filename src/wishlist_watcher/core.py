from __future__ import annotations

import time
import traceback
from typing import Optional

import requests

from .adapters.base import Adapter
from .adapters.coolstuff import CoolStuffWishlistAdapter
from .catalog import AlertEvent, Catalog, reconcile
from .config import ConfigError, Settings
from .harvest import HarvestError, harvest
from .notify import BoxcarNotifier, ConsoleNotifier, Notifier, dispatch
from .utils import domain_of, make_session

ADAPTERS: dict[str, Adapter] = {
    "coolstuffinc": CoolStuffWishlistAdapter(),
    "csi": CoolStuffWishlistAdapter(),  # alias
}


def get_adapter(site: str) -> Adapter:
    adapter = ADAPTERS.get((site or "").strip().lower())
    if adapter is None:
        raise ConfigError(f"Unknown site {site!r}; choose one of {', '.join(sorted(ADAPTERS))}")
    return adapter


def poll_once(
    session: requests.Session,
    adapter: Adapter,
    settings: Settings,
    catalog: Catalog,
    notifier: Notifier,
    now: Optional[int] = None,
) -> list[AlertEvent]:
    """
    One harvest -> reconcile -> dispatch cycle.

    HarvestError propagates with `catalog` untouched; delivery failures are only logged.
    """
    fresh = harvest(
        session,
        adapter,
        settings.wishlist_url,
        timeout=settings.harvest_timeout,
        max_workers=settings.max_workers,
    )
    events = reconcile(catalog, fresh, now=now, policy=settings.policy)
    dispatch(notifier, events, mode=settings.alert_mode)
    print(
        "[info] tick: items={} alerts={} tracked={}".format(
            len(fresh), len(events), len(catalog)
        )
    )
    return events


def run_watcher(
    settings: Settings,
    site: str = "coolstuffinc",
    once: bool = False,
    dry_run: bool = False,
) -> None:
    adapter = get_adapter(site)
    notifier: Notifier = (
        ConsoleNotifier()
        if dry_run
        else BoxcarNotifier(settings.token, settings.notification)
    )

    print(f"[info] Watching: {settings.wishlist_url} via adapter={site}")
    print(f"[info] Interval: {settings.interval}s, harvest timeout: {settings.harvest_timeout:g}s")
    if settings.policy.realert_hours > 0:
        print(f"[info] Re-alert low stock every {settings.policy.realert_hours}h")
    print(f"[info] Alerts: {settings.alert_mode} -> {'console' if dry_run else 'boxcar'}")

    session = make_session()
    catalog: Catalog = {}
    host = domain_of(settings.wishlist_url)

    while True:
        try:
            poll_once(session, adapter, settings, catalog, notifier)
        except HarvestError as e:
            print(f"[warn] {host}: cycle abandoned, {type(e).__name__}: {e}")
        except Exception:
            traceback.print_exc()
        if once:
            break
        time.sleep(settings.interval)
