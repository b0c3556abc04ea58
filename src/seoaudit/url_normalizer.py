"""URL canonicalization used for crawl de-duplication."""

from typing import Optional
from urllib.parse import unquote_plus, urljoin, urlsplit

from seoaudit.constants import TRACKING_QUERY_PARAMS

_DEFAULT_PORTS = {"http": 80, "https": 443}


def get_origin(url: str) -> Optional[str]:
    """Return ``scheme://host[:port]`` for an absolute URL, or None.

    The host is lower-cased and default ports are dropped, so two spellings
    of the same origin compare equal.
    """
    try:
        parsed = urlsplit(url)
        port = parsed.port
    except ValueError:
        return None

    scheme = parsed.scheme.lower()
    host = parsed.hostname
    if not scheme or not host:
        return None

    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


def is_same_origin(url: str, origin: str) -> bool:
    """Check whether an absolute URL belongs to the given origin."""
    return get_origin(url) == origin


def resolve_link(link: str, origin: str) -> str:
    """Resolve a same-origin link path to an absolute URL."""
    return urljoin(origin + "/", link)


def _strip_tracking_params(query: str) -> str:
    kept = []
    for pair in query.split("&"):
        if not pair:
            continue
        key = unquote_plus(pair.split("=", 1)[0])
        if key in TRACKING_QUERY_PARAMS:
            continue
        kept.append(pair)
    return "&".join(kept)


def normalize_url(url: str) -> str:
    """Canonicalize a URL into a de-duplication key.

    Drops the fragment and the ``utm_source``/``utm_medium``/``utm_campaign``
    parameters (other parameters keep their order), strips one trailing slash
    unless the path is ``/``, and reassembles ``origin + path + query``.
    Malformed input is returned unchanged. The key is never used for
    navigation.

    Args:
        url: Absolute URL to normalize

    Returns:
        Normalized URL
    """
    origin = get_origin(url)
    if origin is None:
        return url

    parsed = urlsplit(url)
    path = parsed.path or "/"
    if path.endswith("/") and len(path) > 1:
        path = path[:-1]

    query = _strip_tracking_params(parsed.query)
    normalized = f"{origin}{path}"
    if query:
        normalized += f"?{query}"
    return normalized
