from __future__ import annotations

import html
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .stock import OUT_OF_STOCK, PRE_ORDER

if TYPE_CHECKING:
    from .catalog import TrackedProduct

LOW_STOCK_LIMIT = 6


@dataclass(frozen=True)
class AlertPolicy:
    low_stock_limit: int = LOW_STOCK_LIMIT
    realert_hours: int = 0  # 0 disables "still low" reminders

    @property
    def realert_seconds(self) -> int:
        return max(0, self.realert_hours) * 3600


def _link(p: TrackedProduct) -> str:
    name = html.escape(p.name or p.code)
    if not p.url:
        return f"<strong>{name}</strong>"
    return f'<strong><a href="{html.escape(p.url, quote=True)}">{name}</a></strong>'


def _realert_due(p: TrackedProduct, now: int, policy: AlertPolicy) -> bool:
    if policy.realert_seconds <= 0:
        return False
    since = p.alerted_at if p.alerted_at is not None else p.first_seen
    return now - since >= policy.realert_seconds


def should_alert(p: TrackedProduct, *, now: int, policy: AlertPolicy = AlertPolicy()) -> str:
    """
    Decide whether the (previous, current) stock transition of `p` is worth a notification.
    Branches are checked in order and at most one message is returned; "" means no alert.
    """
    prev, cur = p.previous, p.current
    low = 0 < cur < policy.low_stock_limit

    if prev == PRE_ORDER and cur != PRE_ORDER:
        if cur == OUT_OF_STOCK:
            return f"<p>{_link(p)} is no longer a pre-order and is now out of stock.</p>"
        return (
            f"<p>{_link(p)} is no longer pre-order only and is now available for ordering"
            f" with <strong>{cur}</strong> copies!</p>"
        )
    if cur > 0 and prev <= OUT_OF_STOCK:
        return f"<p>{_link(p)} now has <strong>{cur}</strong> copies available.</p>"
    if cur == OUT_OF_STOCK and prev != OUT_OF_STOCK:
        return f"<p>{_link(p)} is now out of stock.</p>"
    if low and cur < prev:
        return f"<p>{_link(p)} is down to <strong>{cur}</strong> copies left.</p>"
    if low and _realert_due(p, now, policy):
        return f"<p>{_link(p)} still has only <strong>{cur}</strong> copies left.</p>"
    return ""
