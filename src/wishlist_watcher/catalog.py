from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, NamedTuple, Optional

from .adapters.base import ItemRecord
from .alerts import AlertPolicy, should_alert
from .utils import now_epoch

"""
Tracked catalog (in memory only, one entry per item code):

catalog[code] = TrackedProduct(
  name, url,
  current,      # stock level seen on the latest poll
  previous,     # stock level seen on the poll before that
  first_seen,   # epoch seconds
  alerted_at,   # epoch seconds of the last alert, or None
)

The key set always equals the key set of the latest successful harvest.
"""


@dataclass
class TrackedProduct:
    code: str
    name: str
    url: str
    current: int
    previous: int
    first_seen: int
    alerted_at: Optional[int] = None

    @classmethod
    def from_record(cls, rec: ItemRecord, now: int) -> "TrackedProduct":
        # first sighting is a baseline: previous == current, so no transition fires
        return cls(
            code=rec.code,
            name=rec.name,
            url=rec.url,
            current=rec.stock,
            previous=rec.stock,
            first_seen=now,
        )


class AlertEvent(NamedTuple):
    code: str
    message: str


Catalog = Dict[str, TrackedProduct]


def prune(tracked: Catalog, fresh: Mapping[str, ItemRecord]) -> List[str]:
    """Drop tracked codes missing from the fresh harvest. Removal never alerts."""
    gone = [code for code in tracked if code not in fresh]
    for code in gone:
        del tracked[code]
    return gone


def reconcile(
    tracked: Catalog,
    fresh: Mapping[str, ItemRecord],
    *,
    now: int | None = None,
    policy: AlertPolicy = AlertPolicy(),
) -> List[AlertEvent]:
    """
    Merge one harvest into `tracked` (in place) and return the alerts it triggers.

    Call exactly once per harvested snapshot: every call shifts previous <- current.
    """
    now = now_epoch() if now is None else now
    events: List[AlertEvent] = []

    for code, rec in fresh.items():
        p = tracked.get(code)
        if p is None:
            tracked[code] = TrackedProduct.from_record(rec, now)
            continue

        p.previous = p.current
        p.current = rec.stock
        if rec.name:
            p.name = rec.name
        if rec.url:
            p.url = rec.url

        msg = should_alert(p, now=now, policy=policy)
        if msg:
            p.alerted_at = now
            events.append(AlertEvent(code=code, message=msg))

    prune(tracked, fresh)
    return events
