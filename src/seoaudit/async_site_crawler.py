"""Asynchronous site crawler with breadth-first search for multi-page analysis."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from seoaudit.config import CrawlConfig
from seoaudit.constants import RENDER_TIMEOUT_GRACE_SECONDS
from seoaudit.frontier import CrawlFrontier
from seoaudit.models import CrawlError, CrawlResult, PageSignal
from seoaudit.renderer import PageRenderer, PlaywrightRenderer
from seoaudit.technical_checks import TechnicalChecker
from seoaudit.url_normalizer import normalize_url

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], Awaitable[None]]


class AsyncSiteCrawler:
    """Asynchronously crawls a site using breadth-first search (BFS).

    Pages are rendered in fixed-size concurrent batches:
    - All URLs of batch n are attempted before any URL discovered during
      batch n
    - Results are merged in discovery order, not completion order
    - A failed page is recorded as an error and never stops the crawl
    - Discovery stops once recorded plus queued pages reach the budget
    """

    def __init__(
        self,
        config: Optional[CrawlConfig] = None,
        renderer: Optional[PageRenderer] = None,
        technical_checker: Optional[TechnicalChecker] = None,
    ):
        """Initialize the async site crawler.

        Args:
            config: Crawl configuration (page budget, concurrency, timeouts)
            renderer: Page render capability; defaults to PlaywrightRenderer
            technical_checker: Site probes; defaults to TechnicalChecker
        """
        self.config = config or CrawlConfig()
        self.renderer = renderer or PlaywrightRenderer(self.config)
        self.technical_checker = technical_checker or TechnicalChecker(
            user_agent=self.config.user_agent
        )

    @property
    def render_timeout(self) -> float:
        """Upper bound for a whole render in seconds."""
        return self.config.timeout + self.config.settle_delay + RENDER_TIMEOUT_GRACE_SECONDS

    async def crawl_site(
        self,
        start_url: str,
        max_pages: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CrawlResult:
        """Crawl a site starting from a URL using async BFS.

        Args:
            start_url: The starting URL to crawl from
            max_pages: Page budget; defaults to the configured budget
            on_progress: Optional coroutine called with the page count after
                each batch

        Returns:
            CrawlResult with pages in discovery order, technical checks and
            per-URL errors

        Raises:
            ValueError: If the start URL is not an absolute URL
        """
        max_pages = max_pages or self.config.max_pages
        frontier = CrawlFrontier(start_url, max_pages)
        pages: list[PageSignal] = []
        errors: list[CrawlError] = []
        recorded: set[str] = set()

        logger.info(f"Starting site crawl from: {start_url}")
        logger.info(f"Max pages: {max_pages}, Concurrency: {self.config.concurrency}")

        await self.renderer.start()
        try:
            technical_checks = await self.technical_checker.run(start_url)

            while frontier and len(pages) < max_pages:
                batch_size = min(self.config.concurrency, max_pages - len(pages))
                batch = frontier.next_batch(batch_size)

                results = await asyncio.gather(
                    *(self._render_page(url, frontier.origin) for url in batch),
                    return_exceptions=True,
                )

                for index, (url, result) in enumerate(zip(batch, results)):
                    if isinstance(result, Exception):
                        errors.append(CrawlError(url=url, error=self._describe_error(result)))
                        continue
                    if isinstance(result, BaseException):
                        raise result

                    key = normalize_url(result.url)
                    if key in recorded:
                        logger.debug(f"Skipping {url}: resolves to already crawled {result.url}")
                        continue
                    recorded.add(key)
                    frontier.mark_seen(result.url)
                    pages.append(result)

                    reserved = sum(
                        1 for later in results[index + 1:]
                        if not isinstance(later, BaseException)
                    )
                    queued = 0
                    for link in result.internal_link_urls:
                        if frontier.offer(link, len(pages), reserved):
                            queued += 1
                    if queued:
                        logger.debug(f"  → Queued {queued} new links from {url}")

                logger.info(
                    f"Crawl progress: {len(pages)}/{max_pages} pages, "
                    f"{len(frontier)} queued, {len(errors)} errors"
                )
                if on_progress:
                    await on_progress(len(pages))

            logger.info(f"Crawl complete! {len(pages)} pages, {len(errors)} errors")
            return CrawlResult(pages=pages, technical_checks=technical_checks, errors=errors)
        finally:
            await self.renderer.close()

    async def _render_page(self, url: str, origin: str) -> PageSignal:
        """Render one page, bounded by the render timeout."""
        logger.info(f"Crawling: {url}")
        try:
            return await asyncio.wait_for(
                self.renderer.render(url, origin),
                timeout=self.render_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"  ⚠️  Timeout crawling {url}")
            raise
        except Exception as e:
            logger.warning(f"  ⚠️  Failed to crawl {url}: {e}")
            raise

    def _describe_error(self, error: Exception) -> str:
        if isinstance(error, asyncio.TimeoutError):
            return f"Timed out after {self.render_timeout:.0f}s"
        return str(error) or type(error).__name__
