"""Extraction of page signals from rendered HTML."""

import json
import logging
import re
from typing import Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

from seoaudit.models import PageSignal
from seoaudit.url_normalizer import get_origin

logger = logging.getLogger(__name__)

_NOINDEX_RE = re.compile(r"noindex", re.IGNORECASE)

# Elements whose text never shows up in the rendered body text
_INVISIBLE_TAGS = ("script", "style", "noscript", "template")


def _clean(text: Optional[str]) -> Optional[str]:
    """Trim text and collapse empty values to None."""
    if text is None:
        return None
    text = text.strip()
    return text or None


def _get_meta(soup: BeautifulSoup, name: str) -> Optional[str]:
    tag = soup.find("meta", attrs={"name": name}) or soup.find(
        "meta", attrs={"property": name}
    )
    if tag is None:
        return None
    return _clean(tag.get("content"))


def _count_words(soup: BeautifulSoup) -> int:
    body = soup.body
    if body is None:
        return 0
    for tag in body.find_all(_INVISIBLE_TAGS):
        tag.decompose()
    return len(body.get_text(" ").split())


def _parse_structured_data(soup: BeautifulSoup) -> list:
    blocks = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            blocks.append(json.loads(script.string or script.get_text() or ""))
        except (json.JSONDecodeError, TypeError):
            logger.debug("Skipping invalid JSON-LD block")
    return blocks


def extract_page_signal(
    html: str,
    page_url: str,
    base_origin: str,
    http_status: int = 200,
    redirect_chain: Optional[list[str]] = None,
) -> PageSignal:
    """Extract the fixed-shape signal structure from rendered HTML.

    Links are resolved against the page URL and counted as internal when
    their origin matches ``base_origin``; internal links are recorded as
    ``path + ?query`` so the crawler can resolve them against the origin.

    Args:
        html: Rendered HTML content
        page_url: Final URL of the page (after redirects)
        base_origin: Origin of the crawl start URL
        http_status: Final HTTP status code
        redirect_chain: 3xx response URLs seen before the final response

    Returns:
        PageSignal for the page
    """
    soup = BeautifulSoup(html, "lxml")

    title = _clean(soup.title.get_text()) if soup.title else None
    meta_description = _get_meta(soup, "description")

    h1_tag = soup.find("h1")
    h1 = _clean(h1_tag.get_text()) if h1_tag else None
    h2s = [h2.get_text().strip() for h2 in soup.find_all("h2")]

    images = soup.find_all("img")
    images_without_alt = sum(1 for img in images if not (img.get("alt") or "").strip())

    internal_links = 0
    external_links = 0
    internal_link_urls: list[str] = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href:
            continue
        absolute = urljoin(page_url, href)
        if get_origin(absolute) == base_origin:
            internal_links += 1
            parsed = urlsplit(absolute)
            path = parsed.path or "/"
            internal_link_urls.append(f"{path}?{parsed.query}" if parsed.query else path)
        else:
            external_links += 1

    canonical_url = None
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        if "canonical" in [value.lower() for value in rel]:
            canonical_url = urljoin(page_url, link["href"])
            break

    og_tags = {}
    for meta in soup.find_all("meta", attrs={"property": re.compile(r"^og:")}):
        content = meta.get("content")
        if content:
            og_tags[meta["property"]] = content

    structured_data = _parse_structured_data(soup)
    has_viewport_meta = soup.find("meta", attrs={"name": "viewport"}) is not None

    robots = _get_meta(soup, "robots")
    is_indexable = not robots or not _NOINDEX_RE.search(robots)

    # Must run last: strips invisible elements from the tree
    word_count = _count_words(soup)

    return PageSignal(
        url=page_url,
        http_status=http_status,
        title=title,
        meta_description=meta_description,
        h1=h1,
        h2s=h2s,
        word_count=word_count,
        image_count=len(images),
        images_without_alt=images_without_alt,
        internal_links=internal_links,
        external_links=external_links,
        canonical_url=canonical_url,
        og_tags=og_tags,
        structured_data=structured_data,
        has_viewport_meta=has_viewport_meta,
        is_indexable=is_indexable,
        redirect_chain=list(redirect_chain or []),
        internal_link_urls=internal_link_urls,
    )
