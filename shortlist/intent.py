from __future__ import annotations

"""
Build a SearchIntent from raw user input.

Input is either free text ("wireless earbuds") or a product URL.  For URLs
the source store is detected from the host and a best-effort product name
is taken from the page title (when fetched) or from the URL slug, so the
match filter has something better than the raw URL to compare titles with.
"""

import re
from typing import Optional
from urllib.parse import unquote, urlparse

from loguru import logger

from .normalize import clamp_query
from .pipeline_types import ExtractedProduct, SearchConstraints, SearchIntent

_AMAZON_DP_RE = re.compile(r"/([^/]+)/(?:dp|gp/product)/[A-Z0-9]{10}", re.IGNORECASE)
_SHEIN_ID_RE = re.compile(r"-p-\d+(?:-cat-\d+)?$", re.IGNORECASE)
_EXT_RE = re.compile(r"\.(html?|php|aspx?)$", re.IGNORECASE)
_SEP_RE = re.compile(r"[-_+]+")

__all__ = ["is_url", "detect_store", "name_from_url", "build_intent"]


def is_url(text: Optional[str]) -> bool:
    """True for absolute http(s) URLs with a host."""
    if not text or any(ch.isspace() for ch in text.strip()):
        return False
    p = urlparse(text.strip())
    return p.scheme in {"http", "https"} and bool(p.netloc)


def _host(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def detect_store(url: str) -> Optional[str]:
    """
    Store name for a product URL.

    amazon.* and amzn.to -> "amazon", *.shein.com -> "shein", otherwise the
    registrable label of the host ("shop.example.co.uk" -> "example").
    """
    host = _host(url)
    if not host:
        return None
    if "amazon." in host or host.startswith("amazon") or host == "amzn.to":
        return "amazon"
    if "shein." in host:
        return "shein"

    labels = [lbl for lbl in host.split(".") if lbl]
    if len(labels) >= 3 and len(labels[-1]) == 2 and labels[-2] in {"co", "com", "org", "net"}:
        return labels[-3]
    if len(labels) >= 2:
        return labels[-2]
    return labels[0] if labels else None


def _slug_to_name(slug: str) -> Optional[str]:
    slug = _EXT_RE.sub("", unquote(slug))
    slug = _SHEIN_ID_RE.sub("", slug)
    name = _SEP_RE.sub(" ", slug).strip()
    if not re.search(r"[A-Za-z]{2,}", name):
        return None
    return name


def name_from_url(url: str) -> Optional[str]:
    """Best-effort product name from a URL path; None when the path has no readable slug."""
    if _host(url) == "amzn.to":
        # short links carry no slug
        return None
    path = urlparse(url).path or ""

    m = _AMAZON_DP_RE.search(path)
    if m:
        return _slug_to_name(m.group(1))

    parts = [seg for seg in path.split("/") if seg]
    # walk back past ids such as /product/123456.html
    for seg in reversed(parts):
        name = _slug_to_name(seg)
        if name and name.lower() not in {"dp", "product", "products", "item", "p"}:
            return name
    return None


def build_intent(
    query: str,
    constraints: Optional[SearchConstraints] = None,
    page_title: Optional[str] = None,
) -> SearchIntent:
    """
    Keyword or URL intent for one search.

    URL intents carry an ExtractedProduct with the source store, so the
    match filter never suggests the store the user is already on.
    """
    q = clamp_query(query)
    if not q:
        raise ValueError("query must be non-empty")

    if not is_url(q):
        return SearchIntent(query=q, constraints=constraints, input_type="keyword")

    store = detect_store(q)
    name = (page_title or "").strip() or name_from_url(q)
    logger.info("URL intent: store={} name={!r}", store, name)

    return SearchIntent(
        query=name or q,
        extracted_product=ExtractedProduct(name=name, store=store),
        constraints=constraints,
        input_type="url",
    )
