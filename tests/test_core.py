import threading

import pytest

from wishlist_watcher import core
from wishlist_watcher.adapters.base import Adapter, FetchError, ItemRecord
from wishlist_watcher.config import ConfigError, Settings
from wishlist_watcher.core import get_adapter, poll_once, run_watcher
from wishlist_watcher.harvest import FetchFailed, HarvestTimeout
from wishlist_watcher.notify import DeliveryError, Notifier

WISHLIST = "https://www.coolstuffinc.com/main_wishlist.php?id=42"
NOW = 1_700_000_000


def _rec(code, stock):
    return ItemRecord(code, f"Item {code}", f"https://www.coolstuffinc.com/p/{code}", "", stock)


class ScriptedAdapter(Adapter):
    """Serves one page whose contents change between polls."""

    def __init__(self, polls):
        self.polls = list(polls)

    def count_pages(self, session, url):
        return 1

    def fetch_page(self, session, url):
        current = self.polls.pop(0)
        if isinstance(current, Exception):
            raise current
        return current


class Recorder(Notifier):
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send(self, message):
        if self.fail:
            raise DeliveryError("boxcar down")
        self.sent.append(message)


def _settings(**kw):
    kw.setdefault("harvest_timeout", 5)
    return Settings(wishlist_url=WISHLIST, token="tok", **kw)


def test_two_cycles_alert_once_and_prune():
    adapter = ScriptedAdapter([[_rec("A", 5), _rec("B", 0)], [_rec("A", 2)]])
    catalog = {}
    notifier = Recorder()

    assert poll_once(None, adapter, _settings(), catalog, notifier, now=NOW) == []
    assert notifier.sent == []

    events = poll_once(None, adapter, _settings(), catalog, notifier, now=NOW + 300)

    assert [e.code for e in events] == ["A"]
    assert len(notifier.sent) == 1
    assert "down to <strong>2</strong> copies left" in notifier.sent[0]
    assert set(catalog) == {"A"}
    assert catalog["A"].current == 2


def test_failed_harvest_leaves_catalog_unchanged():
    adapter = ScriptedAdapter([[_rec("A", 5)], FetchError(WISHLIST + "&page=1", "HTTP 503")])
    catalog = {}
    poll_once(None, adapter, _settings(), catalog, Recorder(), now=NOW)
    before = {k: (v.previous, v.current) for k, v in catalog.items()}

    with pytest.raises(FetchFailed):
        poll_once(None, adapter, _settings(), catalog, Recorder(), now=NOW + 300)

    assert {k: (v.previous, v.current) for k, v in catalog.items()} == before


def test_delivery_failure_keeps_reconciled_state():
    adapter = ScriptedAdapter([[_rec("A", 3)], [_rec("A", 0)]])
    catalog = {}
    poll_once(None, adapter, _settings(), catalog, Recorder(fail=True), now=NOW)
    events = poll_once(None, adapter, _settings(), catalog, Recorder(fail=True), now=NOW + 1)

    assert len(events) == 1
    assert catalog["A"].current == 0
    assert catalog["A"].alerted_at == NOW + 1


def test_each_mode_sends_one_notification_per_event():
    adapter = ScriptedAdapter([[_rec("A", 0), _rec("B", 4)], [_rec("A", 3), _rec("B", 0)]])
    catalog = {}
    notifier = Recorder()
    settings = _settings(alert_mode="each")
    poll_once(None, adapter, settings, catalog, notifier, now=NOW)
    poll_once(None, adapter, settings, catalog, notifier, now=NOW + 1)
    assert len(notifier.sent) == 2


def test_run_watcher_survives_cycle_failure(monkeypatch, capsys):
    adapter = ScriptedAdapter([FetchError(WISHLIST + "&page=1", "HTTP 503")])
    monkeypatch.setitem(core.ADAPTERS, "coolstuffinc", adapter)

    run_watcher(_settings(), once=True, dry_run=True)

    out = capsys.readouterr().out
    assert "[info] Watching:" in out
    assert "cycle abandoned, FetchFailed" in out


def test_harvest_timeout_leaves_catalog_unchanged():
    gate = threading.Event()

    class Stalled(ScriptedAdapter):
        def fetch_page(self, session, url):
            if not self.polls:
                gate.wait(5)
                return []
            return super().fetch_page(session, url)

    adapter = Stalled([[_rec("A", 5), _rec("B", 0)]])
    catalog = {}
    notifier = Recorder()
    poll_once(None, adapter, _settings(), catalog, notifier, now=NOW)
    before = {k: (v.previous, v.current) for k, v in catalog.items()}

    try:
        with pytest.raises(HarvestTimeout):
            poll_once(None, adapter, _settings(harvest_timeout=0.2), catalog, notifier, now=NOW + 300)
    finally:
        gate.set()

    assert {k: (v.previous, v.current) for k, v in catalog.items()} == before
    assert notifier.sent == []


def test_get_adapter_alias_and_unknown_site():
    assert get_adapter("csi") is core.ADAPTERS["csi"]
    assert get_adapter(" CoolStuffInc ") is core.ADAPTERS["coolstuffinc"]
    with pytest.raises(ConfigError, match="Unknown site"):
        get_adapter("amazon")
