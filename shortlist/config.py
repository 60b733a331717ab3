from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


# ---------------------------
# Paths
# ---------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATA_DIR = PROJECT_ROOT / "data"
AMAZON_DATA_PATH = Path(os.getenv("AMAZON_DATA_FILE", str(DATA_DIR / "amazon-products.json")))
SHEIN_DATA_PATH = Path(os.getenv("SHEIN_DATA_FILE", str(DATA_DIR / "shein-products.json")))


# ---------------------------
# Match filter settings
# ---------------------------

MAX_MATCHES = 30           # hard cap on filtered results
MIN_KEYWORD_LENGTH = 3     # tokens shorter than this never count as shared keywords

# Strict gates (price band, accessory mismatch, attribute conflicts) are opt-in
STRICT_MATCHING = _env_flag("SHORTLIST_STRICT_MATCHING")
PRICE_BAND_TOLERANCE = 0.4  # +/- 40% of the extracted product's price


# ---------------------------
# Badge ranking
# ---------------------------

# Minimum rating for price-driven badges (best_value / cheapest).
# Unrated candidates are treated as eligible.
QUALITY_THRESHOLD = 3.0


# ---------------------------
# Scoring collaborator
# ---------------------------

SCORING_WEIGHTS: Dict[str, float] = {
    "price": 0.35,
    "rating": 0.30,
    "reviews": 0.15,
    "shipping": 0.20,
}
RATING_PRIOR_STRENGTH = 50   # Bayesian "m": pull toward the mean for low review counts
MIN_REVIEW_COUNT = 10        # below this the reviews component is nearly zero


# ---------------------------
# Providers
# ---------------------------

MAX_PROVIDER_RESULTS = 20

ENABLE_AMAZON_FILE = _env_flag("ENABLE_AMAZON_FILE", "1")
ENABLE_SHEIN_FILE = _env_flag("ENABLE_SHEIN_FILE", "1")

AMAZON_API_URL = os.getenv("AMAZON_API_URL", "")
SHEIN_API_URL = os.getenv("SHEIN_API_URL", "")
PRODUCT_API_KEY = os.getenv("PRODUCT_API_KEY", "")

PROVIDER_PRIORITIES: Dict[str, int] = {
    "amazon-file": 1,
    "shein-file": 2,
    "amazon-api": 3,
    "shein-api": 4,
}


# ---------------------------
# HTTP hardening (provider APIs and product page fetch)
# ---------------------------

HTTP_CONNECT_TIMEOUT = 3.0
HTTP_READ_TIMEOUT = 8.0
HTTP_MAX_REDIRECTS = 3
HTTP_MAX_BYTES = 2_000_000  # 2 MB cap

HTTP_USER_AGENT = "shortlist/1.0 (+https://example.com; contact=shortlist@placeholder.com)"

FETCH_PRODUCT_PAGES = _env_flag("SHORTLIST_FETCH_PAGES")


# ---------------------------
# Text processing
# ---------------------------

MAX_QUERY_CHARS = 1000


# ---------------------------
# Affiliate links
# ---------------------------

# store -> (default base url, default link template); tag ids come from
# AFFILIATE_<STORE>_ID, overrides from AFFILIATE_<STORE>_BASE_URL / _TEMPLATE
AFFILIATE_DEFAULTS: Dict[str, Tuple[str, str]] = {
    "amazon": ("https://www.amazon.com", "{base_url}/dp/{product_id}?tag={affiliate_id}"),
    "shein": ("https://us.shein.com", "{base_url}/product/{product_id}.html?aff={affiliate_id}"),
    "aliexpress": ("https://www.aliexpress.com", "{base_url}/item/{product_id}.html?aff={affiliate_id}"),
}


# ---------------------------
# Pydantic models shared around the app
# ---------------------------

class SearchRequest(BaseModel):
    """
    Request body for POST /search.
    """

    query: str = Field(..., min_length=1)
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    min_rating: Optional[float] = Field(default=None, ge=0, le=5)
    categories: List[str] = Field(default_factory=list)
    stores: List[str] = Field(default_factory=list)


class ProductItem(BaseModel):
    """
    One shortlisted product as returned to clients.
    """

    id: str
    store: str
    name: str
    price: float
    currency: str = "USD"
    category: Optional[str] = None
    brand: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    shipping_days: Optional[int] = None
    shipping_price: Optional[float] = None
    url: Optional[str] = None
    affiliate_url: Optional[str] = None
    image_url: Optional[str] = None
    score: float = Field(ge=0.0, le=1.0)
    badge: Optional[str] = None
    is_recommended: bool = True
    is_risky: bool = False
    reasoning_tags: List[str] = Field(default_factory=list)
    risk_reasons: List[str] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """
    Response body for POST /search.
    """

    query: str
    input_type: str  # "url" / "keyword"
    store: Optional[str] = None
    results: List[ProductItem]


class HealthResponse(BaseModel):
    """
    Response body for GET /health.
    """

    status: str
    providers: List[str] = Field(default_factory=list)


class AffiliatePlatform(BaseModel):
    """Link settings for one store's affiliate programme."""

    store: str
    base_url: str
    affiliate_id: str = Field(..., min_length=1)
    link_template: str


def load_affiliate_platforms() -> Dict[str, AffiliatePlatform]:
    """
    Affiliate settings from the environment, read at call time.

    A store without an AFFILIATE_<STORE>_ID is left out; AFFILIATE_ENABLED=0
    turns every store off.
    """
    if not _env_flag("AFFILIATE_ENABLED", "1"):
        return {}
    platforms: Dict[str, AffiliatePlatform] = {}
    for store, (base_default, template_default) in AFFILIATE_DEFAULTS.items():
        prefix = f"AFFILIATE_{store.upper()}"
        affiliate_id = os.getenv(f"{prefix}_ID", "").strip()
        if not affiliate_id:
            continue
        platforms[store] = AffiliatePlatform(
            store=store,
            base_url=os.getenv(f"{prefix}_BASE_URL", base_default).rstrip("/"),
            affiliate_id=affiliate_id,
            link_template=os.getenv(f"{prefix}_TEMPLATE", template_default),
        )
    return platforms
