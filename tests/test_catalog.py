from wishlist_watcher.adapters.base import ItemRecord
from wishlist_watcher.alerts import AlertPolicy
from wishlist_watcher.catalog import TrackedProduct, prune, reconcile

NOW = 1_700_000_000


def _rec(code, stock, name=None, url=None):
    return ItemRecord(
        code=code,
        name=name or f"Item {code}",
        url=url or f"https://www.coolstuffinc.com/p/{code}",
        stock_text="",
        stock=stock,
    )


def _harvest(*recs):
    return {r.code: r for r in recs}


def test_first_sighting_is_baseline_without_alert():
    tracked = {}
    events = reconcile(tracked, _harvest(_rec("A", 5), _rec("B", 0)), now=NOW)

    assert events == []
    assert tracked["A"].current == tracked["A"].previous == 5
    assert tracked["B"].current == tracked["B"].previous == 0
    assert tracked["A"].first_seen == NOW


def test_end_to_end_low_stock_and_delisting():
    tracked = {}
    reconcile(tracked, _harvest(_rec("A", 5), _rec("B", 0)), now=NOW)

    events = reconcile(tracked, _harvest(_rec("A", 2)), now=NOW + 300)

    assert [e.code for e in events] == ["A"]
    assert "down to <strong>2</strong> copies left" in events[0].message
    assert set(tracked) == {"A"}
    assert tracked["A"].current == 2
    assert tracked["A"].previous == 5
    assert tracked["A"].alerted_at == NOW + 300


def test_key_set_matches_latest_harvest():
    tracked = {}
    reconcile(tracked, _harvest(_rec("A", 1), _rec("B", 1), _rec("C", 1)), now=NOW)
    reconcile(tracked, _harvest(_rec("C", 1), _rec("D", 1)), now=NOW)
    assert set(tracked) == {"C", "D"}

    reconcile(tracked, {}, now=NOW)
    assert tracked == {}


def test_each_call_shifts_previous():
    tracked = {}
    fresh = _harvest(_rec("A", 0))
    reconcile(tracked, fresh, now=NOW)
    reconcile(tracked, _harvest(_rec("A", 4)), now=NOW)
    events = reconcile(tracked, _harvest(_rec("A", 4)), now=NOW)

    assert events == []
    assert tracked["A"].previous == 4
    assert tracked["A"].current == 4


def test_back_in_stock_and_out_of_stock_in_one_cycle():
    tracked = {}
    reconcile(tracked, _harvest(_rec("A", 0), _rec("B", 3)), now=NOW)
    events = reconcile(tracked, _harvest(_rec("A", 8), _rec("B", 0)), now=NOW)

    by_code = {e.code: e.message for e in events}
    assert "now has <strong>8</strong> copies available" in by_code["A"]
    assert "now out of stock" in by_code["B"]


def test_name_and_url_follow_latest_harvest():
    tracked = {}
    reconcile(tracked, _harvest(_rec("A", 3, name="Old")), now=NOW)
    reconcile(tracked, _harvest(_rec("A", 3, name="New", url="https://x/p/A")), now=NOW)
    assert tracked["A"].name == "New"
    assert tracked["A"].url == "https://x/p/A"


def test_realert_stamps_alerted_at():
    tracked = {}
    policy = AlertPolicy(realert_hours=24)
    reconcile(tracked, _harvest(_rec("A", 3)), now=NOW, policy=policy)

    assert reconcile(tracked, _harvest(_rec("A", 3)), now=NOW + 3600, policy=policy) == []
    events = reconcile(tracked, _harvest(_rec("A", 3)), now=NOW + 86400, policy=policy)
    assert len(events) == 1
    assert tracked["A"].alerted_at == NOW + 86400
    assert reconcile(tracked, _harvest(_rec("A", 3)), now=NOW + 90000, policy=policy) == []


def test_prune_returns_removed_codes():
    tracked = {
        "A": TrackedProduct("A", "a", "", 1, 1, NOW),
        "B": TrackedProduct("B", "b", "", 1, 1, NOW),
    }
    assert prune(tracked, {"A": _rec("A", 1)}) == ["B"]
    assert set(tracked) == {"A"}
