"""
Trust guardrails for the final shortlist.

Guardrails flag risky products instead of deleting them: every candidate
gets a verdict with positive reasoning tags and, where a check fails, the
risk reasons. Badges and ordering are never touched.

Checks:
- minimum rating (category thresholds, adjusted by platform trust)
- minimum review count
- price outlier vs the set median (possible scam / listing error)
- platform reliability
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
from pydantic import BaseModel, Field

from .pipeline_types import BEST_CHOICE, BEST_VALUE, CHEAPEST, FASTEST, CandidateRecord, ScoredCandidate

BADGE_LABELS: Dict[str, str] = {
    BEST_CHOICE: "Category Winner",
    BEST_VALUE: "Best Value",
    FASTEST: "Fastest Delivery",
    CHEAPEST: "Most Affordable",
}


class CategoryThresholds(BaseModel):
    min_rating: float = 4.0
    min_review_count: int = 10
    price_outlier_factor: float = 0.4  # prices below factor * median are suspicious


class GuardrailConfig(BaseModel):
    """Global thresholds, per-category overrides and platform trust lists."""

    global_thresholds: CategoryThresholds = Field(default_factory=CategoryThresholds)
    categories: Dict[str, CategoryThresholds] = Field(default_factory=dict)
    stricter_platforms: List[str] = Field(default_factory=list)
    trusted_platforms: List[str] = Field(default_factory=list)


DEFAULT_GUARDRAILS = GuardrailConfig(
    categories={
        "electronics": CategoryThresholds(min_rating=4.1, min_review_count=25, price_outlier_factor=0.35),
        "fashion": CategoryThresholds(min_rating=3.9, min_review_count=5, price_outlier_factor=0.4),
        "home": CategoryThresholds(min_rating=4.0, min_review_count=15, price_outlier_factor=0.4),
        "media": CategoryThresholds(min_rating=3.8, min_review_count=3, price_outlier_factor=0.45),
    },
    stricter_platforms=["unknown", "third-party"],
    trusted_platforms=["amazon", "ebay", "walmart"],
)


@dataclass
class GuardrailVerdict:
    is_recommended: bool
    is_risky: bool
    reasoning_tags: List[str] = field(default_factory=list)
    risk_reasons: List[str] = field(default_factory=list)


def platform_trust(store: str, config: GuardrailConfig) -> str:
    """'trusted', 'new' or 'standard'."""
    s = (store or "").lower()
    if any(p.lower() in s for p in config.trusted_platforms):
        return "trusted"
    if any(p.lower() in s for p in config.stricter_platforms):
        return "new"
    return "standard"


def thresholds_for(record: CandidateRecord, config: GuardrailConfig) -> CategoryThresholds:
    t = config.global_thresholds
    if record.category and record.category.lower() in config.categories:
        t = config.categories[record.category.lower()]
    t = t.model_copy()

    trust = platform_trust(record.store, config)
    if trust == "new":
        t.min_rating += 0.2
        t.min_review_count = max(t.min_review_count, 20)
    elif trust == "trusted":
        t.min_rating = max(3.5, t.min_rating - 0.1)
        t.min_review_count = max(1, t.min_review_count - 5)
    return t


def median_price(records: Sequence[CandidateRecord]) -> Optional[float]:
    prices = [float(r.price) for r in records if r.price is not None and r.price > 0]
    if len(prices) < 2:
        return None
    return float(np.median(prices))


def _positive_signals(record: CandidateRecord, badge: Optional[str]) -> List[str]:
    tags: List[str] = []
    if record.shipping_days is not None:
        if record.shipping_days <= 2:
            tags.append("Express Shipping")
        elif record.shipping_days <= 5:
            tags.append("Fast Shipping")
    if record.shipping_price == 0:
        tags.append("Free Shipping")
    if record.brand:
        tags.append(f"Brand: {record.brand}")
    if badge in BADGE_LABELS:
        tags.append(BADGE_LABELS[badge])
    return tags


def evaluate(
    candidate: ScoredCandidate,
    median: Optional[float],
    only_option: bool,
    config: GuardrailConfig = DEFAULT_GUARDRAILS,
) -> GuardrailVerdict:
    r = candidate.record
    t = thresholds_for(r, config)
    tags: List[str] = []
    risks: List[str] = []

    rating = r.rating if r.rating is not None else 0.0
    if rating >= t.min_rating:
        tags.append("High Rating")
    else:
        risks.append(f"Rating {rating:.1f}/5 (below {t.min_rating:.1f} threshold)")

    reviews = r.review_count if r.review_count is not None else 0
    if reviews >= t.min_review_count:
        tags.append("Trusted Seller")
    else:
        risks.append(f"Only {reviews} review(s) (below {t.min_review_count} threshold)")

    if median:
        if r.price < t.price_outlier_factor * median:
            risks.append(
                f"Price {r.price:.2f} is far below the median ({median:.2f}) - possible scam or listing error"
            )
        elif r.price <= median * 0.85:
            tags.append("Good Deal")

    trust = platform_trust(r.store, config)
    if trust == "trusted":
        tags.append("Trusted Seller")
    elif trust == "new":
        risks.append(f'Platform "{r.store}" is not in the trusted seller list')

    tags.extend(_positive_signals(r, candidate.badge))

    # preserve first-seen order
    unique_tags = list(dict.fromkeys(tags))
    return GuardrailVerdict(
        is_recommended=not risks or only_option,
        is_risky=bool(risks),
        reasoning_tags=unique_tags,
        risk_reasons=risks,
    )


def apply_guardrails(
    candidates: Sequence[ScoredCandidate],
    config: GuardrailConfig = DEFAULT_GUARDRAILS,
) -> List[GuardrailVerdict]:
    """One verdict per candidate, in input order."""
    if not candidates:
        return []
    records = [c.record for c in candidates]
    median = median_price(records) if len(records) >= 3 else None
    only_option = len(candidates) == 1
    return [evaluate(c, median, only_option, config) for c in candidates]


def recommended_only(
    candidates: Sequence[ScoredCandidate],
    verdicts: Sequence[GuardrailVerdict],
) -> List[ScoredCandidate]:
    """Strict "safe" view: drop anything flagged risky."""
    return [c for c, v in zip(candidates, verdicts) if v.is_recommended and not v.is_risky]
