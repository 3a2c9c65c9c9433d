from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .alerts import LOW_STOCK_LIMIT, AlertPolicy
from .harvest import HARVEST_TIMEOUT, MAX_WORKERS
from .notify import BOXCAR_URL, NotificationConfig

ALERT_MODES = ("digest", "each")


class ConfigError(ValueError):
    """Missing or invalid configuration; fatal at startup."""


@dataclass(frozen=True)
class Settings:
    wishlist_url: str
    token: str
    interval: int = 300
    harvest_timeout: float = HARVEST_TIMEOUT
    max_workers: int = MAX_WORKERS
    alert_mode: str = "digest"
    policy: AlertPolicy = field(default_factory=AlertPolicy)
    notification: NotificationConfig = field(default_factory=NotificationConfig)


def _required(name: str, override: Optional[str]) -> str:
    value = (override or os.getenv(name, "")).strip()
    if not value:
        raise ConfigError(f"{name} environment variable was missing or blank")
    return value


def _number(name: str, default: str, override: Optional[float] = None, cast=int):
    if override is not None:
        return cast(override)
    raw = os.getenv(name, "").strip() or default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def load_settings(
    *,
    wishlist_url: Optional[str] = None,
    token: Optional[str] = None,
    interval: Optional[int] = None,
    harvest_timeout: Optional[float] = None,
    realert_hours: Optional[int] = None,
    alert_mode: Optional[str] = None,
    dotenv_path: Optional[str] = None,
    require_token: bool = True,
) -> Settings:
    """
    Build Settings from the environment (after loading .env). Explicit arguments win.
    Raises ConfigError on missing credentials or malformed values.
    """
    load_dotenv(dotenv_path=dotenv_path)

    url = _required("CSI_WISHLIST", wishlist_url)
    if require_token:
        tok = _required("BOXCAR_TOKEN", token)
    else:
        tok = (token or os.getenv("BOXCAR_TOKEN", "")).strip()

    mode = (alert_mode or os.getenv("ALERT_MODE", "") or "digest").strip().lower()
    if mode not in ALERT_MODES:
        raise ConfigError(f"ALERT_MODE must be one of {', '.join(ALERT_MODES)}, got {mode!r}")

    every = _number("CHECK_EVERY", "300", interval)
    timeout = _number("HARVEST_TIMEOUT", str(HARVEST_TIMEOUT), harvest_timeout, cast=float)
    workers = _number("MAX_WORKERS", str(MAX_WORKERS))
    if every <= 0 or timeout <= 0 or workers <= 0:
        raise ConfigError("CHECK_EVERY, HARVEST_TIMEOUT and MAX_WORKERS must be positive")

    policy = AlertPolicy(
        low_stock_limit=_number("LOW_STOCK_LIMIT", str(LOW_STOCK_LIMIT)),
        realert_hours=_number("REALERT_HOURS", "0", realert_hours),
    )

    defaults = NotificationConfig()
    notification = NotificationConfig(
        title=os.getenv("NOTIFY_TITLE", "").strip() or defaults.title,
        sound=os.getenv("NOTIFY_SOUND", "").strip() or defaults.sound,
        source_name=os.getenv("NOTIFY_SOURCE", "").strip() or defaults.source_name,
        url=os.getenv("NOTIFY_URL", "").strip() or defaults.url,
        endpoint=os.getenv("BOXCAR_URL", "").strip() or BOXCAR_URL,
    )

    return Settings(
        wishlist_url=url,
        token=tok,
        interval=every,
        harvest_timeout=timeout,
        max_workers=workers,
        alert_mode=mode,
        policy=policy,
        notification=notification,
    )
