from __future__ import annotations

from typing import List, Optional

import requests
from bs4 import BeautifulSoup
from bs4.element import Tag

from ..stock import ClassificationError, classify
from ..utils import absolute_url
from .base import Adapter, FetchError, ItemRecord

ITEM_MARKER = "[pid]"
PAGINATION = ".pages"
STOCK_STATUS = ".stockStatus"


def as_tag(obj: object | None) -> Optional[Tag]:
    """Return obj if it is a bs4 Tag, else None (filters out NavigableString/ints/etc)."""
    return obj if isinstance(obj, Tag) else None


def _attr(tag: Tag, name: str) -> str:
    raw = tag.get(name)
    if isinstance(raw, list):
        return str(raw[0]) if raw else ""
    return str(raw) if raw else ""


def _get_soup(session: requests.Session, url: str) -> BeautifulSoup:
    try:
        r = session.get(url, timeout=25)
        r.raise_for_status()
        return BeautifulSoup(r.text, "html.parser")
    except requests.RequestException as e:
        raise FetchError(url, e) from e


def parse_page_count(soup: BeautifulSoup) -> int:
    pages = as_tag(soup.select_one(PAGINATION))
    if pages is None:
        return 0
    return len(pages.find_all("a"))


def parse_items(soup: BeautifulSoup, base_url: str) -> List[ItemRecord]:
    out: List[ItemRecord] = []
    for card in soup.select(ITEM_MARKER):
        code = _attr(card, "pid").strip()
        if not code:
            continue

        # name + link live in the card heading
        link = as_tag(card.select_one("h3 a"))
        name = link.get_text(strip=True) if link is not None else ""
        url = absolute_url(base_url, _attr(link, "href")) if link is not None else ""

        status = card.select_one(STOCK_STATUS)
        stock_text = status.get_text(" ", strip=True) if status is not None else ""
        try:
            stock = classify(stock_text)
        except ClassificationError as e:
            print(f"[warn] Could not find stock for '{name or code}' - {e}")
            continue

        out.append(ItemRecord(code=code, name=name, url=url, stock_text=stock_text, stock=stock))
    return out


class CoolStuffWishlistAdapter(Adapter):
    """
    Adapter for Cool Stuff Inc. wishlist pages (server-rendered HTML), e.g.:

    https://www.coolstuffinc.com/main_wishlist.php?id=123456

    Each item card carries a `pid` attribute, an <h3><a> heading with name and link,
    and a `.stockStatus` element such as "Only 3 left in stock" or "Pre-order".
    """

    def count_pages(self, session: requests.Session, url: str) -> int:
        return parse_page_count(_get_soup(session, url))

    def fetch_page(self, session: requests.Session, url: str) -> List[ItemRecord]:
        return parse_items(_get_soup(session, url), url)
