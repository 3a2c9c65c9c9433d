from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, NamedTuple

import requests


class ItemRecord(NamedTuple):
    code: str
    name: str
    url: str
    stock_text: str
    stock: int


class FetchError(RuntimeError):
    """A wishlist page could not be retrieved or parsed."""

    def __init__(self, url: str, cause: BaseException | str):
        super().__init__(f"Failed to fetch {url}: {cause}")
        self.url = url
        self.cause = cause


class Adapter(ABC):
    @abstractmethod
    def count_pages(self, session: requests.Session, url: str) -> int:
        """
        Fetch the wishlist root page and return how many pages the pagination control links to.
        Return 0 when the control is missing or empty; raise FetchError on transport failure.
        """
        raise NotImplementedError

    @abstractmethod
    def fetch_page(self, session: requests.Session, url: str) -> List[ItemRecord]:
        """
        Return the ItemRecords found on one wishlist page.
        Implementations should:
          - raise FetchError when the page cannot be fetched
          - drop (and report) items whose stock text cannot be classified
          - never share mutable state between calls; they run on worker threads
        """
        raise NotImplementedError
