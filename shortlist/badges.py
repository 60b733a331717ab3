"""
Badge ranking: pick at most one winner per recommendation badge.

Tiers run in priority order (best_choice, best_value, fastest, cheapest).
Each tier looks only at candidates no higher tier has claimed, so a
candidate carries at most one badge and each badge goes to at most one
candidate. Every tier ends its sort key with the input position, which
makes the winner a total, reproducible choice.

Missing fields never raise; they sort lowest for the tier that reads them.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from .config import QUALITY_THRESHOLD
from .pipeline_types import BEST_CHOICE, BEST_VALUE, CHEAPEST, FASTEST, ScoredCandidate


def _present(value) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except TypeError:
        return False


def _desc_missing_last(value) -> Tuple[int, float]:
    """Sort key for "higher is better" fields; absent values sort after any present one."""
    return (0, -float(value)) if _present(value) else (1, 0.0)


def _asc_missing_last(value) -> float:
    """Sort key for "lower is better" fields."""
    return float(value) if _present(value) else math.inf


def meets_quality_bar(candidate: ScoredCandidate, threshold: float = QUALITY_THRESHOLD) -> bool:
    """Unrated candidates pass; rated ones need at least ``threshold``."""
    rating = candidate.record.rating
    return not _present(rating) or rating >= threshold


# ---------------------------------------------------------------------------
# Tier keys (smaller is better)
# ---------------------------------------------------------------------------


def _best_choice_key(c: ScoredCandidate, pos: int):
    r = c.record
    return (
        _desc_missing_last(c.score),
        _desc_missing_last(r.rating),
        _desc_missing_last(r.review_count),
        _asc_missing_last(r.price),
        pos,
    )


def _best_value_key(c: ScoredCandidate, pos: int):
    r = c.record
    return (
        _asc_missing_last(r.price),
        _desc_missing_last(r.rating),
        _desc_missing_last(r.review_count),
        pos,
    )


def _fastest_key(c: ScoredCandidate, pos: int):
    r = c.record
    return (_asc_missing_last(r.shipping_days), _asc_missing_last(r.price), pos)


def _cheapest_key(c: ScoredCandidate, pos: int):
    r = c.record
    return (_asc_missing_last(r.price), _desc_missing_last(r.rating), pos)


def _select(
    candidates: Sequence[ScoredCandidate],
    claimed: Dict[int, str],
    eligible: Callable[[ScoredCandidate], bool],
    key,
) -> Optional[int]:
    pool = [
        (key(c, pos), pos)
        for pos, c in enumerate(candidates)
        if pos not in claimed and eligible(c)
    ]
    if not pool:
        return None
    return min(pool)[1]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def rank_badges(
    candidates: Sequence[ScoredCandidate],
    *,
    quality_threshold: float = QUALITY_THRESHOLD,
) -> List[ScoredCandidate]:
    """
    Assign recommendation badges.

    Returns a new list in input order.  Winners get their badge set; every
    other candidate comes back with ``badge=None``.
    """
    if candidates is None:
        raise ValueError("candidates must be a sequence, got None")

    def quality_ok(c: ScoredCandidate) -> bool:
        return meets_quality_bar(c, quality_threshold)

    tiers = [
        (BEST_CHOICE, lambda c: True, _best_choice_key),
        (BEST_VALUE, quality_ok, _best_value_key),
        (FASTEST, lambda c: _present(c.record.shipping_days), _fastest_key),
        (CHEAPEST, quality_ok, _cheapest_key),
    ]

    claimed: Dict[int, str] = {}
    for badge, eligible, key in tiers:
        winner = _select(candidates, claimed, eligible, key)
        if winner is not None:
            claimed[winner] = badge

    logger.debug(
        "Badges assigned: {}",
        {badge: candidates[pos].record.id for pos, badge in sorted(claimed.items())},
    )

    return [
        c if c.badge == claimed.get(pos) else replace(c, badge=claimed.get(pos))
        for pos, c in enumerate(candidates)
    ]
