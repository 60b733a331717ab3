from __future__ import annotations

"""
Affiliate link building.

Pure: the link depends only on the store, the product URL or id, and the
platform settings passed in (or loaded from the environment).  It never
affects which products are shortlisted or how they rank.
"""

import re
from typing import Dict, Optional
from urllib.parse import quote

from loguru import logger

from .config import AffiliatePlatform, load_affiliate_platforms

_ASIN_RE = re.compile(r"/(?:dp|gp/product)/([A-Z0-9]{10})", re.IGNORECASE)
_NUMERIC_ID_RE = re.compile(r"(\d+)(?:\.html)?(?:$|\?|#)")


def _looks_like_url(text: str) -> bool:
    return bool(re.match(r"^https?://", text, re.IGNORECASE))


def extract_product_id(store: str, url_or_id: str) -> Optional[str]:
    """ASIN for Amazon URLs, trailing numeric id for other stores; non-URLs are already ids."""
    if not _looks_like_url(url_or_id):
        return url_or_id
    if store.lower() == "amazon":
        m = _ASIN_RE.search(url_or_id)
    else:
        m = _NUMERIC_ID_RE.search(url_or_id)
    return m.group(1) if m else None


def build_affiliate_link(
    store: Optional[str],
    url_or_id: Optional[str],
    platforms: Optional[Dict[str, AffiliatePlatform]] = None,
) -> Optional[str]:
    """
    Tracking link for a product.

    Falls back to the plain product URL when the store has no affiliate
    settings or no product id can be read from it; returns None when there
    is nothing to link to.
    """
    target = (url_or_id or "").strip()
    if not target or not store:
        return None
    fallback = target if _looks_like_url(target) else None

    if platforms is None:
        platforms = load_affiliate_platforms()
    platform = platforms.get(store.lower())
    if platform is None:
        return fallback

    product_id = extract_product_id(store, target)
    if not product_id:
        logger.debug("No product id in {} for store {}", target, store)
        return fallback

    return platform.link_template.format(
        base_url=platform.base_url,
        product_id=quote(product_id, safe=""),
        affiliate_id=quote(platform.affiliate_id, safe=""),
    )
