"""Page render capability backed by Playwright."""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Playwright

from seoaudit.config import CrawlConfig
from seoaudit.models import PageSignal
from seoaudit.page_extractor import extract_page_signal
from seoaudit.url_normalizer import get_origin

logger = logging.getLogger(__name__)


class PageRenderer(ABC):
    """Renders a URL and returns its page signals.

    Implementations may hold resources between ``start`` and ``close``; the
    crawler calls both around every traversal.
    """

    async def start(self) -> None:
        """Acquire long-lived resources (browser, connections)."""

    async def close(self) -> None:
        """Release resources acquired in ``start``."""

    @abstractmethod
    async def render(self, url: str, base_origin: str) -> PageSignal:
        """Render ``url`` and extract its signals.

        Args:
            url: Absolute URL to render
            base_origin: Origin of the crawl, used to classify links

        Returns:
            PageSignal including HTTP status and redirect chain

        Raises:
            Exception: Any navigation or extraction failure
        """

    async def __aenter__(self) -> "PageRenderer":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class PlaywrightRenderer(PageRenderer):
    """Renders pages in headless Chromium, one isolated context per page."""

    def __init__(self, config: Optional[CrawlConfig] = None):
        """Initialize the renderer.

        Args:
            config: Crawl configuration (timeout, viewport, user agent)
        """
        self.config = config or CrawlConfig()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    async def start(self) -> None:
        if self._browser is not None:
            return
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.config.headless)
        logger.info("Browser launched successfully")

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    @asynccontextmanager
    async def _acquire_context(self):
        """Yield a fresh browser context that is closed on every exit path."""
        if self._browser is None:
            raise RuntimeError("Renderer not started; call start() first")

        context: BrowserContext = await self._browser.new_context(
            user_agent=self.config.user_agent,
            viewport={
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
        )
        try:
            yield context
        finally:
            await context.close()

    async def render(self, url: str, base_origin: Optional[str] = None) -> PageSignal:
        base_origin = base_origin or get_origin(url)

        async with self._acquire_context() as context:
            page = await context.new_page()
            redirect_chain: list[str] = []

            def response_handler(response):
                if 300 <= response.status < 400:
                    redirect_chain.append(response.url)

            page.on("response", response_handler)

            try:
                response = await page.goto(
                    url,
                    wait_until="networkidle",
                    timeout=self.config.timeout_ms,
                )
                http_status = response.status if response else 0

                # Give late client-side rendering a chance to settle
                await asyncio.sleep(self.config.settle_delay)

                html = await page.content()
                final_url = page.url
            except Exception as e:
                logger.warning(f"Failed to render {url}: {e}")
                raise

        return extract_page_signal(
            html,
            page_url=final_url,
            base_origin=base_origin,
            http_status=http_status,
            redirect_chain=redirect_chain,
        )
