"""
Product providers: sources of raw candidate records.

A provider only fetches and normalises rows into CandidateRecord; matching,
scoring and ranking happen downstream.  Two kinds ship here:

- FileProvider: a local JSON / CSV / parquet dump read with pandas
- HttpProvider: a JSON search endpoint queried with httpx

Store-specific field names are mapped by ``normalize_amazon_row`` and
``normalize_shein_row``.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

import httpx
import pandas as pd
from loguru import logger

from .config import (
    HTTP_CONNECT_TIMEOUT,
    HTTP_MAX_BYTES,
    HTTP_READ_TIMEOUT,
    HTTP_USER_AGENT,
    MAX_PROVIDER_RESULTS,
)
from .normalize import contains_either, normalize_title, shared_keyword_count
from .pipeline_types import CandidateRecord, ProviderSearchResult, SearchIntent

RowNormalizer = Callable[[Mapping[str, Any]], CandidateRecord]


class ProductProvider(Protocol):
    name: str
    store: str
    kind: str  # "file" / "api"

    def search(self, intent: SearchIntent) -> ProviderSearchResult: ...

    def is_available(self) -> bool: ...


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------


def _missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _first(raw: Mapping[str, Any], *keys: str):
    for k in keys:
        v = raw.get(k)
        if not _missing(v):
            return v
    return None


def _to_float(value) -> Optional[float]:
    if _missing(value) or isinstance(value, bool):
        return None
    try:
        f = float(str(value).replace("$", "").replace(",", "").strip())
    except ValueError:
        return None
    return f if math.isfinite(f) else None


def _to_int(value) -> Optional[int]:
    f = _to_float(value)
    return int(f) if f is not None else None


def _to_str(value) -> Optional[str]:
    if _missing(value):
        return None
    return str(value).strip()


def _to_id(value) -> Optional[str]:
    """Source id as text; integral floats from numeric columns lose their ".0"."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return _to_str(value)


def _nested(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    v = raw.get(key)
    return v if isinstance(v, Mapping) else {}


# ---------------------------------------------------------------------------
# Store row normalisers
# ---------------------------------------------------------------------------


def normalize_amazon_row(raw: Mapping[str, Any]) -> CandidateRecord:
    shipping = _nested(raw, "shipping")
    ship_price = _first(shipping, "cost")
    if ship_price is None:
        ship_price = _first(raw, "shipping_cost", "shipping_price")
    ship_days = _first(shipping, "estimatedDays")
    if ship_days is None:
        ship_days = _first(raw, "delivery_time_days", "estimated_delivery_days")

    return CandidateRecord(
        id=_to_id(_first(raw, "asin", "id")),
        name=_to_str(_first(raw, "title", "name")),
        price=_to_float(_first(raw, "price", "current_price")),
        store="amazon",
        currency=_to_str(raw.get("currency")) or "USD",
        category=_to_str(_first(raw, "category", "product_category")),
        brand=_to_str(raw.get("brand")),
        rating=_to_float(_first(raw, "rating", "stars")),
        review_count=_to_int(_first(raw, "reviews_count", "reviews", "num_reviews")),
        shipping_days=_to_int(ship_days),
        shipping_price=_to_float(ship_price),
        image_url=_to_str(_first(raw, "image_url", "image", "main_image")),
        url=_to_str(_first(raw, "product_url", "url")),
        affiliate_url=_to_str(raw.get("affiliate_url")),
    )


def normalize_shein_row(raw: Mapping[str, Any]) -> CandidateRecord:
    shipping = _nested(raw, "shipping")
    ship_price = _first(shipping, "fee")
    if ship_price is None:
        ship_price = _first(raw, "shipping_fee", "freight")
    ship_days = _first(shipping, "delivery_days")
    if ship_days is None:
        ship_days = raw.get("delivery_days")

    return CandidateRecord(
        id=_to_id(_first(raw, "goods_id", "id", "productId")),
        name=_to_str(_first(raw, "goods_name", "name", "title")),
        price=_to_float(_first(raw, "sale_price", "price", "retailPrice")),
        store="shein",
        currency=_to_str(raw.get("currency")) or "USD",
        category=_to_str(_first(raw, "cat_name", "category", "cate_name")),
        brand=_to_str(raw.get("brand")) or "SHEIN",
        rating=_to_float(_first(raw, "comment_rank", "rating")),
        review_count=_to_int(_first(raw, "comment_count", "reviews", "commentNumber")),
        shipping_days=_to_int(ship_days),
        shipping_price=_to_float(ship_price),
        image_url=_to_str(_first(raw, "goods_img", "image", "goods_thumb")),
        url=_to_str(_first(raw, "goods_url", "url")),
        affiliate_url=_to_str(raw.get("affiliate_url")),
    )


ROW_NORMALIZERS: Dict[str, RowNormalizer] = {
    "amazon": normalize_amazon_row,
    "shein": normalize_shein_row,
}


# ---------------------------------------------------------------------------
# Shared pre-filter
# ---------------------------------------------------------------------------


def _prefilter(records: Sequence[CandidateRecord], intent: SearchIntent) -> List[CandidateRecord]:
    """Cheap relevance cut so a provider does not return its whole catalogue."""
    query = normalize_title(intent.query)
    min_rating = intent.constraints.min_rating if intent.constraints else None

    out: List[CandidateRecord] = []
    for rec in records:
        if min_rating is not None and (rec.rating or 0.0) < min_rating:
            continue
        haystack = normalize_title(" ".join(filter(None, [rec.name, rec.category, rec.brand])))
        if not haystack:
            continue
        if contains_either(haystack, query) or shared_keyword_count(query, haystack) >= 1:
            out.append(rec)
    return out


def _records_from_rows(rows: Sequence[Mapping[str, Any]], normalizer: RowNormalizer) -> List[CandidateRecord]:
    return [normalizer(r) for r in rows if isinstance(r, Mapping)]


# ---------------------------------------------------------------------------
# File provider
# ---------------------------------------------------------------------------


def load_rows(path: Path) -> List[Dict[str, Any]]:
    """Rows of a JSON / CSV / parquet product dump as plain dicts (NaN -> None)."""
    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(path, dtype=str)
    elif suffix == ".parquet":
        df = pd.read_parquet(path)
    else:
        df = pd.read_json(path, dtype=False, convert_dates=False)
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient="records")


class FileProvider:
    """Serves products from a local dump of one store's catalogue."""

    kind = "file"

    def __init__(self, name: str, store: str, path: Path, *, max_results: int = MAX_PROVIDER_RESULTS):
        self.name = name
        self.store = store
        self.path = Path(path)
        self.max_results = max_results
        self._normalizer = ROW_NORMALIZERS[store]
        self._records: Optional[List[CandidateRecord]] = None

    def is_available(self) -> bool:
        return self.path.exists()

    def _load(self) -> List[CandidateRecord]:
        if self._records is None:
            rows = load_rows(self.path)
            self._records = _records_from_rows(rows, self._normalizer)
            logger.info("[{}] loaded {} rows from {}", self.name, len(self._records), self.path)
        return self._records

    def search(self, intent: SearchIntent) -> ProviderSearchResult:
        if not self.is_available():
            logger.warning("[{}] data file missing: {}", self.name, self.path)
            return ProviderSearchResult(provider=self.name)
        try:
            records = self._load()
        except (OSError, ValueError) as e:
            logger.warning("[{}] failed to read {}: {}", self.name, self.path, e)
            return ProviderSearchResult(provider=self.name)

        matched = _prefilter(records, intent)
        return ProviderSearchResult(
            provider=self.name,
            products=matched[: self.max_results],
            total_results=len(matched),
        )


# ---------------------------------------------------------------------------
# HTTP provider
# ---------------------------------------------------------------------------


class HttpProvider:
    """Queries a JSON search endpoint: GET <url>?q=<query> -> {"products": [...]}."""

    kind = "api"

    def __init__(
        self,
        name: str,
        store: str,
        url: str,
        *,
        api_key: str = "",
        max_results: int = MAX_PROVIDER_RESULTS,
    ):
        self.name = name
        self.store = store
        self.url = url
        self.api_key = api_key
        self.max_results = max_results
        self._normalizer = ROW_NORMALIZERS[store]

    def is_available(self) -> bool:
        return bool(self.url)

    def _headers(self) -> Dict[str, str]:
        headers = {"User-Agent": HTTP_USER_AGENT, "Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def search(self, intent: SearchIntent) -> ProviderSearchResult:
        if not self.is_available():
            return ProviderSearchResult(provider=self.name)
        try:
            with httpx.Client(
                timeout=httpx.Timeout(HTTP_READ_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT),
            ) as client:
                r = client.get(self.url, params={"q": intent.query}, headers=self._headers())
                if r.status_code >= 400:
                    logger.warning("[{}] HTTP {} from {}", self.name, r.status_code, self.url)
                    return ProviderSearchResult(provider=self.name)
                if len(r.content) > HTTP_MAX_BYTES:
                    logger.warning("[{}] response too large: {} bytes", self.name, len(r.content))
                    return ProviderSearchResult(provider=self.name)
                payload = r.json()
        except httpx.HTTPError as e:
            logger.warning("[{}] request failed: {}", self.name, e)
            return ProviderSearchResult(provider=self.name)
        except ValueError as e:
            logger.warning("[{}] invalid JSON: {}", self.name, e)
            return ProviderSearchResult(provider=self.name)

        if isinstance(payload, list):
            rows = payload
        elif isinstance(payload, dict):
            rows = payload.get("products") or payload.get("results") or []
        else:
            rows = []

        records = _records_from_rows(rows, self._normalizer)
        matched = _prefilter(records, intent)
        return ProviderSearchResult(
            provider=self.name,
            products=matched[: self.max_results],
            total_results=len(matched),
        )
