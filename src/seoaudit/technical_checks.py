"""Site-level technical probes: robots.txt, sitemap and HTTPS reachability."""

import asyncio
import logging
from typing import Optional

import httpx

from seoaudit.constants import (
    DEFAULT_USER_AGENT,
    ROBOTS_TXT_PATH,
    SITEMAP_CANDIDATE_PATHS,
    SSL_SERVER_ERROR_STATUS,
    TECHNICAL_PROBE_TIMEOUT_SECONDS,
)
from seoaudit.models import TechnicalCheckResult
from seoaudit.url_normalizer import get_origin

logger = logging.getLogger(__name__)


class TechnicalChecker:
    """Runs three independent probes concurrently.

    Every probe is bounded by its own timeout and fails soft to a negative
    default, so ``run`` never raises for network problems.
    """

    def __init__(
        self,
        timeout: float = TECHNICAL_PROBE_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the checker.

        Args:
            timeout: Per-probe timeout in seconds
            user_agent: User agent sent with each probe
            transport: Optional httpx transport (used to stub the network in tests)
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
        )

    async def run(self, site_url: str) -> TechnicalCheckResult:
        """Run all probes against the origin of ``site_url``.

        Args:
            site_url: Any absolute URL on the site

        Returns:
            Union of the three probe outcomes
        """
        origin = get_origin(site_url)
        if origin is None:
            logger.warning(f"Cannot run technical checks for malformed URL: {site_url}")
            return TechnicalCheckResult()

        (has_robots, robots_content), (has_sitemap, sitemap_url), ssl_valid = (
            await asyncio.gather(
                self.check_robots_txt(origin),
                self.check_sitemap(origin),
                self.check_ssl(origin),
            )
        )

        return TechnicalCheckResult(
            has_robots_txt=has_robots,
            robots_txt_content=robots_content,
            has_sitemap=has_sitemap,
            sitemap_url=sitemap_url,
            ssl_valid=ssl_valid,
            ssl_expires_at=None,
        )

    async def check_robots_txt(self, origin: str) -> tuple[bool, Optional[str]]:
        """GET /robots.txt; present iff the response is successful."""
        robots_url = f"{origin}{ROBOTS_TXT_PATH}"
        try:
            async with self._client() as client:
                response = await asyncio.wait_for(client.get(robots_url), self.timeout)
            if response.is_success:
                logger.info(f"Found robots.txt at {robots_url}")
                return True, response.text
            logger.info(f"No robots.txt found at {robots_url} (status: {response.status_code})")
        except (httpx.HTTPError, OSError, asyncio.TimeoutError) as e:
            logger.warning(f"Failed to check robots.txt: {e}")
        return False, None

    async def check_sitemap(self, origin: str) -> tuple[bool, Optional[str]]:
        """HEAD each candidate path in order; the first success wins."""
        async with self._client() as client:
            for path in SITEMAP_CANDIDATE_PATHS:
                sitemap_url = f"{origin}{path}"
                try:
                    response = await asyncio.wait_for(client.head(sitemap_url), self.timeout)
                except (httpx.HTTPError, OSError, asyncio.TimeoutError) as e:
                    logger.debug(f"Sitemap probe failed for {sitemap_url}: {e}")
                    continue
                if response.is_success:
                    logger.info(f"Found sitemap at {sitemap_url}")
                    return True, sitemap_url
        return False, None

    async def check_ssl(self, origin: str) -> bool:
        """HEAD the HTTPS origin; valid when it answers below 500."""
        https_origin = "https://" + origin.split("://", 1)[1]
        try:
            async with self._client() as client:
                response = await asyncio.wait_for(client.head(https_origin), self.timeout)
            return response.status_code < SSL_SERVER_ERROR_STATUS
        except (httpx.HTTPError, OSError, asyncio.TimeoutError) as e:
            logger.warning(f"HTTPS check failed for {https_origin}: {e}")
            return False


async def run_technical_checks(site_url: str, **kwargs) -> TechnicalCheckResult:
    """Convenience wrapper around ``TechnicalChecker.run``."""
    return await TechnicalChecker(**kwargs).run(site_url)
