"""Shared fixtures and test doubles."""

import asyncio
from typing import Optional

import pytest

from seoaudit.database import LocalSqliteDatabase
from seoaudit.models import PageSignal, TechnicalCheckResult
from seoaudit.renderer import PageRenderer
from seoaudit.url_normalizer import normalize_url

ORIGIN = "https://example.com"


class FakeRenderer(PageRenderer):
    """Renders pages from an in-memory link graph keyed by path."""

    def __init__(
        self,
        site: dict[str, list[str]],
        failing: Optional[set[str]] = None,
        hanging: Optional[set[str]] = None,
        redirects: Optional[dict[str, str]] = None,
    ):
        self.site = site
        self.failing = failing or set()
        self.hanging = hanging or set()
        self.redirects = redirects or {}
        self.calls: list[str] = []
        self.started = False
        self.closed = False

    async def start(self) -> None:
        self.started = True

    async def close(self) -> None:
        self.closed = True

    async def render(self, url: str, base_origin: str) -> PageSignal:
        self.calls.append(url)
        path = normalize_url(url)[len(base_origin):] or "/"
        await asyncio.sleep(0)

        if path in self.hanging:
            await asyncio.sleep(3600)
        if path in self.failing:
            raise RuntimeError(f"net::ERR_CONNECTION_REFUSED at {url}")

        final_url = self.redirects.get(path, url)
        final_path = normalize_url(final_url)[len(base_origin):] or "/"
        links = self.site.get(final_path, [])
        return PageSignal(
            url=final_url,
            http_status=200,
            title=f"Page {final_path}",
            internal_links=len(links),
            internal_link_urls=list(links),
            redirect_chain=[url] if final_url != url else [],
        )


class StubTechnicalChecker:
    """Technical checker that never touches the network."""

    def __init__(self, result: Optional[TechnicalCheckResult] = None):
        self.result = result or TechnicalCheckResult(has_robots_txt=True, ssl_valid=True)
        self.calls: list[str] = []

    async def run(self, site_url: str) -> TechnicalCheckResult:
        self.calls.append(site_url)
        return self.result


def make_good_signal(url: str = f"{ORIGIN}/", **overrides) -> PageSignal:
    """A page meeting every scoring threshold."""
    values = dict(
        url=url,
        http_status=200,
        title="T" * 55,
        meta_description="D" * 155,
        h1="Main heading",
        h2s=["Section"],
        word_count=300,
        image_count=0,
        images_without_alt=0,
        internal_links=1,
        external_links=0,
        has_viewport_meta=True,
        is_indexable=True,
        redirect_chain=[],
    )
    values.update(overrides)
    return PageSignal(**values)


@pytest.fixture
def good_signal():
    return make_good_signal()


@pytest.fixture
def memory_db():
    db = LocalSqliteDatabase("sqlite:///:memory:")
    yield db
    db.close()
