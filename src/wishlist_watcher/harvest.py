from __future__ import annotations

import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Dict, List

import requests

from .adapters.base import Adapter, FetchError, ItemRecord
from .utils import page_url

HARVEST_TIMEOUT = 60.0
MAX_WORKERS = 8


class HarvestError(RuntimeError):
    """A whole harvest cycle failed; the tracked catalog must be left untouched."""


class NoPagesError(HarvestError):
    def __init__(self, url: str):
        super().__init__(f"No pagination links found on {url}; page layout not recognized")
        self.url = url


class HarvestTimeout(HarvestError):
    def __init__(self, timeout: float, done: int, total: int):
        super().__init__(f"Harvest timed out after {timeout:g}s ({done}/{total} pages done)")
        self.timeout = timeout
        self.done = done
        self.total = total


class FetchFailed(HarvestError):
    def __init__(self, error: FetchError):
        super().__init__(str(error))
        self.error = error


def harvest(
    session: requests.Session,
    adapter: Adapter,
    wishlist_url: str,
    *,
    timeout: float = HARVEST_TIMEOUT,
    max_workers: int = MAX_WORKERS,
) -> Dict[str, ItemRecord]:
    """
    Fetch every wishlist page concurrently and merge the items into one dict keyed by item code.

    Pages are numbered 1..N, one per link in the pagination control of the root page.
    Raises NoPagesError, HarvestTimeout or FetchFailed; on timeout the pending page
    fetches are abandoned rather than awaited.
    """
    deadline = time.monotonic() + timeout
    pool = ThreadPoolExecutor(max_workers=max(1, max_workers))
    items: Dict[str, ItemRecord] = {}
    num_pages = 0
    pages_done = 0
    try:
        # the root fetch shares the deadline with the page fetches
        root = pool.submit(adapter.count_pages, session, wishlist_url)
        done, _ = wait([root], timeout=max(0.0, deadline - time.monotonic()))
        if not done:
            raise HarvestTimeout(timeout, 0, 0)
        try:
            num_pages = root.result()
        except FetchError as e:
            raise FetchFailed(e) from e
        if num_pages <= 0:
            raise NoPagesError(wishlist_url)

        pending: set[Future[List[ItemRecord]]] = {
            pool.submit(adapter.fetch_page, session, page_url(wishlist_url, n))
            for n in range(1, num_pages + 1)
        }
        while pending:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise HarvestTimeout(timeout, pages_done, num_pages)
            done, pending = wait(pending, timeout=remaining, return_when=FIRST_COMPLETED)
            for fut in done:
                try:
                    records = fut.result()
                except FetchError as e:
                    raise FetchFailed(e) from e
                for rec in records:
                    items[rec.code] = rec
                pages_done += 1
    finally:
        # never block on abandoned fetches; each is bounded by its own request timeout
        pool.shutdown(wait=False, cancel_futures=True)

    return items
