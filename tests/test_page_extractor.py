"""Tests for page signal extraction."""

import pytest

from seoaudit.page_extractor import extract_page_signal

ORIGIN = "https://example.com"
PAGE_URL = "https://example.com/dir/page"

SAMPLE_HTML = """
<html>
<head>
    <title>  My Page  </title>
    <meta name="description" content="A page about things">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <link rel="canonical" href="/canonical-page">
    <meta property="og:title" content="OG Title">
    <meta property="og:image" content="https://example.com/og.png">
    <script type="application/ld+json">{"@type": "Organization", "name": "Example"}</script>
    <script type="application/ld+json">{not valid json</script>
</head>
<body>
    <h1> Main Heading </h1>
    <h2>First</h2>
    <h2>Second</h2>
    <p>hello world foo</p>
    <script>var hidden = "should not count";</script>
    <style>.x { color: red; }</style>
    <img src="a.png" alt="Alt text">
    <img src="b.png">
    <img src="c.png" alt="   ">
    <a href="/about">About</a>
    <a href="contact?x=1">Contact</a>
    <a href="https://other.com/">External</a>
    <a href="">Empty</a>
</body>
</html>
"""


@pytest.fixture
def signal():
    return extract_page_signal(SAMPLE_HTML, PAGE_URL, ORIGIN)


class TestExtractPageSignal:
    """Tests for extract_page_signal."""

    def test_text_fields(self, signal):
        assert signal.url == PAGE_URL
        assert signal.http_status == 200
        assert signal.title == "My Page"
        assert signal.meta_description == "A page about things"
        assert signal.h1 == "Main Heading"
        assert signal.h2s == ["First", "Second"]

    def test_images(self, signal):
        assert signal.image_count == 3
        assert signal.images_without_alt == 2

    def test_links(self, signal):
        assert signal.internal_links == 2
        assert signal.external_links == 1
        assert signal.internal_link_urls == ["/about", "/dir/contact?x=1"]

    def test_canonical_resolved(self, signal):
        assert signal.canonical_url == "https://example.com/canonical-page"

    def test_og_tags(self, signal):
        assert signal.og_tags == {
            "og:title": "OG Title",
            "og:image": "https://example.com/og.png",
        }

    def test_invalid_structured_data_skipped(self, signal):
        assert signal.structured_data == [{"@type": "Organization", "name": "Example"}]

    def test_viewport_and_indexability(self, signal):
        assert signal.has_viewport_meta is True
        assert signal.is_indexable is True

    def test_word_count_ignores_scripts_and_styles(self, signal):
        # Main Heading First Second hello world foo About Contact External Empty
        assert signal.word_count == 11

    def test_noindex_case_insensitive(self):
        html = '<html><head><meta name="robots" content="NOINDEX, follow"></head><body></body></html>'
        signal = extract_page_signal(html, PAGE_URL, ORIGIN)
        assert signal.is_indexable is False

    def test_empty_values_are_missing(self):
        html = "<html><head><title>   </title><meta name='description' content=''></head><body><h1> </h1></body></html>"
        signal = extract_page_signal(html, PAGE_URL, ORIGIN)

        assert signal.title is None
        assert signal.meta_description is None
        assert signal.h1 is None

    def test_description_by_property(self):
        html = '<html><head><meta property="description" content="From property"></head><body></body></html>'
        assert extract_page_signal(html, PAGE_URL, ORIGIN).meta_description == "From property"

    def test_empty_document(self):
        signal = extract_page_signal("", PAGE_URL, ORIGIN)

        assert signal.title is None
        assert signal.word_count == 0
        assert signal.has_viewport_meta is False
        assert signal.internal_link_urls == []

    def test_status_and_redirects_passed_through(self):
        chain = ["https://example.com/old"]
        signal = extract_page_signal("<html></html>", PAGE_URL, ORIGIN, http_status=301, redirect_chain=chain)

        assert signal.http_status == 301
        assert signal.redirect_chain == chain
