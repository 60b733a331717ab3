"""
Relevance scoring for matched candidates.

Deterministic, set-relative weighted score in [0, 1]:

    score = w_price * price + w_rating * rating + w_reviews * reviews + w_shipping * shipping

Each component is normalised against the other candidates in the same
shortlist, so the same record can score differently in different searches.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from .config import (
    MIN_REVIEW_COUNT,
    RATING_PRIOR_STRENGTH,
    SCORING_WEIGHTS,
)
from .pipeline_types import CandidateRecord, ScoredCandidate


def _as_array(values: Sequence[Optional[float]]) -> np.ndarray:
    """Float array with NaN for missing values."""
    return np.array([np.nan if v is None else float(v) for v in values], dtype="float64")


def price_scores(prices: np.ndarray) -> np.ndarray:
    """Cheapest -> 1.0, most expensive -> 0.0; non-positive prices score 0."""
    valid = np.isfinite(prices) & (prices > 0)
    out = np.zeros_like(prices)
    if not valid.any():
        return out
    lo, hi = prices[valid].min(), prices[valid].max()
    if hi == lo:
        out[valid] = 1.0
        return out
    out[valid] = (hi - prices[valid]) / (hi - lo)
    return np.clip(out, 0.0, 1.0)


def rating_scores(ratings: np.ndarray, reviews: np.ndarray) -> np.ndarray:
    """
    Bayesian-averaged rating on a 0-1 scale.

    Low review counts are pulled toward the mean rating of the set.
    """
    rated = np.isfinite(ratings) & (ratings > 0)
    out = np.zeros_like(ratings)
    if not rated.any():
        return out
    prior = float(ratings[rated].mean())
    v = np.clip(np.where(np.isfinite(reviews), reviews, 0.0), 0.0, None)
    m = float(RATING_PRIOR_STRENGTH)
    bayes = (v * np.where(rated, ratings, 0.0) + m * prior) / (v + m)
    out[rated] = bayes[rated] / 5.0
    return np.clip(out, 0.0, 1.0)


def review_scores(reviews: np.ndarray) -> np.ndarray:
    """log10-scaled review count relative to the most-reviewed candidate."""
    counts = np.clip(np.where(np.isfinite(reviews), reviews, 0.0), 0.0, None)
    out = np.zeros_like(counts)
    positive = counts > 0
    if not positive.any():
        return out
    logs = np.log10(counts + 1.0)
    max_log = logs[positive].max()
    out[positive] = logs[positive] / max_log
    out[positive & (counts < MIN_REVIEW_COUNT)] = 0.05
    return np.clip(out, 0.0, 1.0)


def _shipping_time_component(days: float) -> float:
    if not np.isfinite(days):
        return 0.5
    if days <= 2:
        return 1.0
    if days <= 5:
        return 0.7
    if days <= 10:
        return 0.4
    return 0.1


def shipping_scores(ship_prices: np.ndarray, ship_days: np.ndarray) -> np.ndarray:
    """Half shipping cost (free -> 1.0), half delivery time; 0.4 when both are unknown."""
    known_prices = ship_prices[np.isfinite(ship_prices)]
    max_ship = float(known_prices.max()) if known_prices.size else 0.0

    out = np.empty_like(ship_prices)
    for i, (cost, days) in enumerate(zip(ship_prices, ship_days)):
        if not np.isfinite(cost) and not np.isfinite(days):
            out[i] = 0.4
            continue
        if np.isfinite(cost) and cost == 0:
            cost_part = 1.0
        elif np.isfinite(cost) and max_ship > 0:
            cost_part = min(1.0, max(0.0, 1.0 - cost / max_ship))
        else:
            cost_part = 0.5
        out[i] = 0.5 * cost_part + 0.5 * _shipping_time_component(days)
    return np.clip(out, 0.0, 1.0)


def score_candidates(candidates: Sequence[CandidateRecord]) -> List[ScoredCandidate]:
    """Score every candidate against the rest of the set; input order is kept."""
    if not candidates:
        return []

    prices = _as_array([c.price for c in candidates])
    ratings = _as_array([c.rating for c in candidates])
    reviews = _as_array([c.review_count for c in candidates])
    ship_prices = _as_array([c.shipping_price for c in candidates])
    ship_days = _as_array([c.shipping_days for c in candidates])

    total = (
        SCORING_WEIGHTS["price"] * price_scores(prices)
        + SCORING_WEIGHTS["rating"] * rating_scores(ratings, reviews)
        + SCORING_WEIGHTS["reviews"] * review_scores(reviews)
        + SCORING_WEIGHTS["shipping"] * shipping_scores(ship_prices, ship_days)
    )
    total = np.clip(total, 0.0, 1.0)

    return [ScoredCandidate(record=c, score=float(s)) for c, s in zip(candidates, total)]


def order_by_score(scored: Sequence[ScoredCandidate]) -> List[ScoredCandidate]:
    """Highest score first; equal scores keep their input order."""
    return sorted(scored, key=lambda c: -c.score)
