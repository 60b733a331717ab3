from __future__ import annotations

from typing import Optional

import httpx
from bs4 import BeautifulSoup
from loguru import logger

from .config import (
    HTTP_CONNECT_TIMEOUT,
    HTTP_READ_TIMEOUT,
    HTTP_MAX_REDIRECTS,
    HTTP_MAX_BYTES,
    HTTP_USER_AGENT,
)
from .normalize import clamp_query


def extract_title(html: str) -> Optional[str]:
    """og:title if the page has one, else <title>."""
    soup = BeautifulSoup(html, "html.parser")
    og = soup.find("meta", attrs={"property": "og:title"})
    if og is not None and og.get("content", "").strip():
        return og["content"].strip()
    if soup.title is not None and soup.title.string:
        title = soup.title.string.strip()
        return title or None
    return None


def fetch_product_title(url: str) -> Optional[str]:
    """
    Fetch a product page and return its title.

    Hardening:
      - httpx with timeouts and a redirect cap
      - 2 MB body cap
      - any failure -> None, the caller falls back to the URL slug
    """
    headers = {"User-Agent": HTTP_USER_AGENT}
    try:
        with httpx.Client(
            follow_redirects=True,
            timeout=httpx.Timeout(HTTP_READ_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT),
            max_redirects=HTTP_MAX_REDIRECTS,
        ) as client:
            r = client.get(url, headers=headers)
            if r.status_code >= 400:
                logger.warning("Page fetch: HTTP {} for {}", r.status_code, url)
                return None

            if len(r.content) > HTTP_MAX_BYTES:
                logger.warning("Page fetch aborted: {} bytes > {} limit", len(r.content), HTTP_MAX_BYTES)
                return None

            title = extract_title(r.text)
            if not title:
                return None
            cleaned = clamp_query(title)
            return cleaned or None
    except httpx.TimeoutException:
        logger.warning("Page fetch timeout for {}", url)
        return None
    except httpx.HTTPError as e:
        logger.warning("Page fetch exception for {}: {}", url, e)
        return None
