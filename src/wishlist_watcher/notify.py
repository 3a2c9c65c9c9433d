from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import requests

from .catalog import AlertEvent
from .utils import html_to_text

BOXCAR_URL = "https://new.boxcar.io/api/notifications"


class DeliveryError(RuntimeError):
    """The notification endpoint could not be reached or rejected the message."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class NotificationConfig:
    """Fixed metadata sent with every notification."""

    title: str = "Low Stock Alert"
    sound: str = "clanging"
    source_name: str = "CSI Stock Notifier"
    url: str = "http://www.coolstuffinc.com"
    endpoint: str = BOXCAR_URL


# ---------- Notifier base ----------


class Notifier:
    """Abstract notifier. Implement send()."""

    def send(self, message: str) -> None:
        raise NotImplementedError


# ---------- Boxcar ----------


def build_payload(config: NotificationConfig, token: str, message: str) -> dict[str, str]:
    return {
        "notification[title]": config.title,
        "notification[long_message]": message,
        "notification[sound]": config.sound,
        "notification[source_name]": config.source_name,
        "notification[url]": config.url,
        "user_credentials": token,
    }


class BoxcarNotifier(Notifier):
    """
    Posts form-encoded push notifications to Boxcar. Failures raise DeliveryError
    and are not retried here; the caller decides what to do with a lost message.
    """

    def __init__(
        self,
        token: str,
        config: NotificationConfig = NotificationConfig(),
        session: requests.Session | None = None,
    ):
        self.token = token
        self.config = config
        self.session = session

    def send(self, message: str) -> None:
        data = build_payload(self.config, self.token, message)
        post = self.session.post if self.session is not None else requests.post
        try:
            r = post(self.config.endpoint, data=data, timeout=15)
        except requests.RequestException as e:
            raise DeliveryError(f"Boxcar request failed: {e}") from e
        if r.status_code >= 300:
            raise DeliveryError(
                f"Boxcar returned {r.status_code}: {r.text[:200]}", status_code=r.status_code
            )


# ---------- Console ----------


class ConsoleNotifier(Notifier):
    """Prints alerts instead of delivering them (dry runs)."""

    def send(self, message: str) -> None:
        print(f"[alert] {html_to_text(message)}")


# ---------- Rendering helpers ----------


def render_digest(events: Iterable[AlertEvent]) -> str:
    """Concatenate the HTML fragments of one cycle into a single long_message."""
    return "".join(e.message for e in events)


def dispatch(notifier: Notifier, events: list[AlertEvent], mode: str = "digest") -> int:
    """
    Deliver alert events, one notification per cycle ("digest") or per event ("each").
    Delivery failures are reported and dropped. Returns the number of messages delivered.
    """
    if not events:
        return 0
    messages = [render_digest(events)] if mode == "digest" else [e.message for e in events]
    sent = 0
    for msg in messages:
        try:
            notifier.send(msg)
            sent += 1
        except DeliveryError as e:
            print(f"[warn] Notification not delivered: {e}")
    return sent
