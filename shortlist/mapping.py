from __future__ import annotations
"""
Mapping utilities to convert ranked candidates into API responses.

Pairs each ScoredCandidate with its guardrail verdict and builds the
Pydantic schemas (ProductItem / SearchResponse).
"""

import math
from typing import Dict, List, Optional, Sequence

from loguru import logger

from .affiliate import build_affiliate_link
from .config import AffiliatePlatform, ProductItem, SearchResponse, load_affiliate_platforms
from .guardrails import GuardrailVerdict
from .pipeline_types import ScoredCandidate, SearchIntent


def _clip_score(score: float) -> float:
    if score is None or not math.isfinite(score):
        return 0.0
    return min(1.0, max(0.0, float(score)))


def to_api_item(
    candidate: ScoredCandidate,
    verdict: Optional[GuardrailVerdict] = None,
    affiliate_platforms: Optional[Dict[str, AffiliatePlatform]] = None,
) -> ProductItem:
    """A record without its own affiliate link gets one built from its URL or id."""
    r = candidate.record
    item = ProductItem(
        id=str(r.id),
        store=r.store,
        name=str(r.name or "").strip(),
        price=float(r.price),
        currency=r.currency or "USD",
        category=r.category,
        brand=r.brand,
        rating=r.rating,
        review_count=r.review_count,
        shipping_days=r.shipping_days,
        shipping_price=r.shipping_price,
        url=r.url,
        affiliate_url=r.affiliate_url or build_affiliate_link(r.store, r.url or r.id, affiliate_platforms),
        image_url=r.image_url,
        score=_clip_score(candidate.score),
        badge=candidate.badge,
    )
    if verdict is not None:
        item.is_recommended = verdict.is_recommended
        item.is_risky = verdict.is_risky
        item.reasoning_tags = list(verdict.reasoning_tags)
        item.risk_reasons = list(verdict.risk_reasons)
    return item


def map_results_to_response(
    query: str,
    intent: SearchIntent,
    ranked: Sequence[ScoredCandidate],
    verdicts: Optional[Sequence[GuardrailVerdict]] = None,
) -> SearchResponse:
    """
    Convert ranked candidates into a SearchResponse, keeping their order.
    """
    if verdicts is not None and len(verdicts) != len(ranked):
        raise ValueError("verdicts must align one-to-one with ranked candidates")

    platforms = load_affiliate_platforms()
    items: List[ProductItem] = []
    for i, c in enumerate(ranked):
        items.append(to_api_item(c, verdicts[i] if verdicts is not None else None, platforms))

    logger.info("Mapped {} results for query {!r}", len(items), query)
    return SearchResponse(
        query=query,
        input_type=intent.input_type,
        store=intent.source_store,
        results=items,
    )
