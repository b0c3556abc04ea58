"""Tests for site-level technical probes."""

import asyncio
import time

import httpx
import pytest

from seoaudit.technical_checks import TechnicalChecker, run_technical_checks


def _transport(routes: dict[tuple[str, str], int], body: str = "User-agent: *\nDisallow:"):
    """MockTransport answering (method, path) routes; everything else is 404."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, str(request.url)))
        status = routes.get((request.method, request.url.path), 404)
        return httpx.Response(status, text=body if status == 200 else "")

    transport = httpx.MockTransport(handler)
    transport.seen = seen
    return transport


class TestTechnicalChecker:
    """Tests for TechnicalChecker."""

    @pytest.mark.asyncio
    async def test_all_checks_pass(self):
        transport = _transport({
            ("GET", "/robots.txt"): 200,
            ("HEAD", "/sitemap.xml"): 200,
            ("HEAD", "/"): 200,
        })
        result = await TechnicalChecker(transport=transport).run("https://example.com/some/page")

        assert result.has_robots_txt is True
        assert result.robots_txt_content.startswith("User-agent")
        assert result.has_sitemap is True
        assert result.sitemap_url == "https://example.com/sitemap.xml"
        assert result.ssl_valid is True
        assert result.ssl_expires_at is None

    @pytest.mark.asyncio
    async def test_sitemap_index_fallback(self):
        transport = _transport({("HEAD", "/sitemap_index.xml"): 200})
        result = await TechnicalChecker(transport=transport).run("https://example.com")

        assert result.sitemap_url == "https://example.com/sitemap_index.xml"
        assert result.has_robots_txt is False
        assert result.robots_txt_content is None

    @pytest.mark.asyncio
    async def test_ssl_probe_uses_https(self):
        transport = _transport({("HEAD", "/"): 200})
        result = await TechnicalChecker(transport=transport).run("http://example.com/")

        assert result.ssl_valid is True
        assert any(
            method == "HEAD" and url.startswith("https://example.com") for method, url in transport.seen
        )

    @pytest.mark.asyncio
    async def test_ssl_client_error_still_valid(self):
        transport = _transport({("HEAD", "/"): 403})
        result = await TechnicalChecker(transport=transport).run("https://example.com")
        assert result.ssl_valid is True

    @pytest.mark.asyncio
    async def test_ssl_server_error_invalid(self):
        transport = _transport({("HEAD", "/"): 503})
        result = await TechnicalChecker(transport=transport).run("https://example.com")
        assert result.ssl_valid is False

    @pytest.mark.asyncio
    async def test_network_failures_default_to_negative(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        checker = TechnicalChecker(transport=httpx.MockTransport(handler))
        result = await checker.run("https://unreachable.example")

        assert result.has_robots_txt is False
        assert result.has_sitemap is False
        assert result.sitemap_url is None
        assert result.ssl_valid is False

    @pytest.mark.asyncio
    async def test_malformed_url(self):
        result = await TechnicalChecker().run("not a url")

        assert result.has_robots_txt is False
        assert result.ssl_valid is False

    @pytest.mark.asyncio
    async def test_convenience_wrapper(self):
        transport = _transport({("GET", "/robots.txt"): 200})
        result = await run_technical_checks("https://example.com", transport=transport)
        assert result.has_robots_txt is True

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_real_site(self):
        result = await TechnicalChecker().run("https://example.com")
        assert result.ssl_valid is True

    @pytest.mark.asyncio
    async def test_slow_responses_fail_soft_within_timeout(self):
        async def handler(request):
            await asyncio.sleep(5)
            return httpx.Response(200, text="User-agent: *")

        checker = TechnicalChecker(timeout=0.2, transport=httpx.MockTransport(handler))
        started = time.monotonic()
        result = await checker.run("https://example.com")
        elapsed = time.monotonic() - started

        assert elapsed < 1.0
        assert result.has_robots_txt is False
        assert result.has_sitemap is False
        assert result.ssl_valid is False

    @pytest.mark.asyncio
    async def test_slow_sitemap_candidate_moves_to_next(self):
        async def handler(request):
            if request.url.path == "/sitemap.xml":
                await asyncio.sleep(5)
            if request.url.path == "/sitemap_index.xml":
                return httpx.Response(200)
            return httpx.Response(404)

        checker = TechnicalChecker(timeout=0.2, transport=httpx.MockTransport(handler))
        has_sitemap, sitemap_url = await checker.check_sitemap("https://example.com")

        assert has_sitemap is True
        assert sitemap_url == "https://example.com/sitemap_index.xml"
