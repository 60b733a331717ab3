"""Typed containers shared across pipeline modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

BEST_CHOICE = "best_choice"
BEST_VALUE = "best_value"
FASTEST = "fastest"
CHEAPEST = "cheapest"

# Priority order: a higher tier claims its winner before lower tiers look.
BADGES: Tuple[str, ...] = (BEST_CHOICE, BEST_VALUE, FASTEST, CHEAPEST)


@dataclass(frozen=True)
class ExtractedProduct:
    """Product details derived from a URL or an earlier extraction step."""

    name: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    store: Optional[str] = None


@dataclass(frozen=True)
class SearchConstraints:
    """
    User-supplied limits on the shortlist.

    ``similarity_threshold`` is carried through for callers; the match
    filter does not read it.
    """

    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    categories: Tuple[str, ...] = ()
    stores: Tuple[str, ...] = ()
    similarity_threshold: Optional[float] = None


@dataclass(frozen=True)
class SearchIntent:
    """What the user is searching for; built once per request."""

    query: str
    extracted_product: Optional[ExtractedProduct] = None
    constraints: Optional[SearchConstraints] = None
    input_type: str = "keyword"

    @property
    def source_store(self) -> Optional[str]:
        if self.extracted_product is None:
            return None
        return self.extracted_product.store or None


@dataclass(frozen=True)
class CandidateRecord:
    """
    A raw product observation from one source.

    ``id`` is unique only within ``store``; the global key is ``(store, id)``.
    Required fields are typed optional because source adapters may fail to
    fill them; the match filter drops such records.
    """

    id: Optional[str]
    name: Optional[str]
    price: Optional[float]
    store: str
    currency: str = "USD"
    category: Optional[str] = None
    brand: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    shipping_days: Optional[int] = None
    shipping_price: Optional[float] = None
    image_url: Optional[str] = None
    url: Optional[str] = None
    affiliate_url: Optional[str] = None


@dataclass(frozen=True)
class ScoredCandidate:
    """A matched candidate with its relevance score and optional badge."""

    record: CandidateRecord
    score: float
    badge: Optional[str] = None


@dataclass
class ProviderSearchResult:
    """Raw response from a single provider."""

    provider: str
    products: List[CandidateRecord] = field(default_factory=list)
    total_results: int = 0
