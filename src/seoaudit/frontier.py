"""Breadth-first crawl frontier: the seen-set and FIFO queue of a crawl."""

import logging
from collections import deque
from typing import Optional

from seoaudit.url_normalizer import get_origin, is_same_origin, normalize_url, resolve_link

logger = logging.getLogger(__name__)


class CrawlFrontier:
    """Owns the de-duplication set and the queue of URLs still to render.

    The seen-set holds normalized URLs that were either rendered or queued;
    the queue holds the raw URLs used for navigation. A single coordinating
    coroutine owns the frontier, so no locking is needed.
    """

    def __init__(self, start_url: str, max_pages: int):
        """Seed the frontier with the start URL.

        Args:
            start_url: Absolute URL the crawl starts from
            max_pages: Page budget used to bound discovery

        Raises:
            ValueError: If the start URL is not an absolute http(s) URL
        """
        origin = get_origin(start_url)
        if origin is None:
            raise ValueError(f"Invalid start URL: {start_url!r}")
        if max_pages < 1:
            raise ValueError(f"max_pages must be at least 1, got {max_pages}")

        self.origin = origin
        self.max_pages = max_pages
        self.seen: set[str] = {normalize_url(start_url)}
        self.queue: deque[str] = deque([start_url])

    def __len__(self) -> int:
        return len(self.queue)

    def __bool__(self) -> bool:
        return bool(self.queue)

    def next_batch(self, size: int) -> list[str]:
        """Remove up to ``size`` URLs from the front of the queue."""
        batch = []
        while self.queue and len(batch) < size:
            batch.append(self.queue.popleft())
        return batch

    def mark_seen(self, url: str) -> bool:
        """Mark a URL as seen. Returns False if it already was."""
        key = normalize_url(url)
        if key in self.seen:
            return False
        self.seen.add(key)
        return True

    def has_room(self, completed: int, reserved: int = 0) -> bool:
        """Whether another URL fits in the page budget.

        Args:
            completed: Pages already recorded
            reserved: Rendered pages of the current batch not yet recorded
        """
        return completed + reserved + len(self.queue) < self.max_pages

    def offer(self, link: str, completed: int, reserved: int = 0) -> Optional[str]:
        """Enqueue a discovered same-origin link if unseen and within budget.

        Args:
            link: Link path (or absolute URL) discovered on a page
            completed: Pages already recorded
            reserved: Rendered pages of the current batch not yet recorded

        Returns:
            The absolute URL that was enqueued, or None
        """
        full_url = resolve_link(link, self.origin)
        if not is_same_origin(full_url, self.origin):
            return None

        key = normalize_url(full_url)
        if key in self.seen or not self.has_room(completed, reserved):
            return None

        self.seen.add(key)
        self.queue.append(full_url)
        return full_url
