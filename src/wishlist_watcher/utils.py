from __future__ import annotations

import html as _html
import re
import time
from urllib.parse import urljoin, urlsplit

import requests
from requests.adapters import HTTPAdapter, Retry

# ---------- Time helpers ----------


def now_epoch() -> int:
    return int(time.time())


# ---------- URL helpers ----------


def page_url(wishlist_url: str, page: int) -> str:
    """
    Address one page of the wishlist, e.g.:
      https://www.coolstuffinc.com/main_wishlist.php?id=123  ->  ...?id=123&page=2
    """
    sep = "&" if urlsplit(wishlist_url).query else "?"
    if wishlist_url.endswith(("?", "&")):
        sep = ""
    return f"{wishlist_url}{sep}page={page}"


def absolute_url(base_url: str, href: str | None) -> str:
    if not href:
        return ""
    return urljoin(base_url, href.strip())


def domain_of(u_or_host: str) -> str:
    host = urlsplit(u_or_host).netloc or u_or_host
    host = host.lower()
    return host[4:] if host.startswith("www.") else host


# ---------- HTTP session ----------


def make_session() -> requests.Session:
    s = requests.Session()
    s.headers.update({"User-Agent": "Mozilla/5.0 (compatible; WishlistWatcher/1.0)"})
    retries = Retry(
        total=3,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset(["GET", "HEAD"]),
        raise_on_status=False,
    )
    s.mount("https://", HTTPAdapter(max_retries=retries))
    s.mount("http://", HTTPAdapter(max_retries=retries))
    return s


# ---------- HTML to text ----------


def html_to_text(s: str) -> str:
    s = re.sub(r"<a [^>]*href=['\"]([^'\"]+)['\"][^>]*>(.*?)</a>", r"\2 (\1)", s, flags=re.I)
    s = re.sub(r"</p>\s*<p>", "\n", s, flags=re.I)
    s = re.sub(r"<[^>]+>", "", s)
    return _html.unescape(s).strip()
