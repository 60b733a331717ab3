from __future__ import annotations

"""
Match filter: turn a raw, multi-source candidate list into the shortlist of
legitimate alternatives for one search intent.

Stages (each a plain subset filter over the survivors, input order kept):

1. validity        - id, name and a finite price are required
2. deduplication   - first occurrence of (store, id) wins
3. self-store      - never suggest the store the user came from
4. category gate   - lenient: candidates without a category pass
5. title gate      - containment first, then keyword overlap
6. price range     - inclusive user bounds
   (strict gates)  - optional price band / accessory / attribute checks
7. cap             - at most ``MAX_MATCHES`` results

The public entry point is :func:`filter_candidates`.  It is pure: no I/O,
no module state, and an empty list is the normal "no matches" outcome.
"""

import math
from typing import Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from .attributes import attributes_compatible, extract_attributes, is_major_category_mismatch
from .config import MAX_MATCHES, PRICE_BAND_TOLERANCE, STRICT_MATCHING
from .normalize import (
    contains_either,
    normalize_category,
    normalize_title,
    shared_keyword_count,
)
from .pipeline_types import CandidateRecord, SearchIntent


# ---------------------------------------------------------------------------
# Validity & identity
# ---------------------------------------------------------------------------


def _is_finite_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def is_valid_candidate(candidate: CandidateRecord) -> bool:
    """True if the record has an identifier, a name and a finite price."""
    if candidate.id is None or str(candidate.id) == "":
        return False
    if not candidate.name:
        return False
    return _is_finite_number(candidate.price)


def candidate_key(candidate: CandidateRecord) -> Tuple[str, str]:
    """Global identity of a record: lower-cased store plus source id."""
    return ((candidate.store or "").lower(), str(candidate.id))


def remove_duplicates(candidates: Iterable[CandidateRecord]) -> List[CandidateRecord]:
    seen = set()
    out: List[CandidateRecord] = []
    for c in candidates:
        key = candidate_key(c)
        if key in seen:
            continue
        seen.add(key)
        out.append(c)
    return out


def _exclude_store(candidates: Sequence[CandidateRecord], store: Optional[str]) -> List[CandidateRecord]:
    if not store:
        return list(candidates)
    own = store.lower()
    return [c for c in candidates if (c.store or "").lower() != own]


# ---------------------------------------------------------------------------
# Category gate
# ---------------------------------------------------------------------------


def categories_compatible(cat1: str, cat2: str) -> bool:
    """
    Compatibility of two *normalised* category labels.

    Exact match, containment either way, or one shared keyword.
    """
    if cat1 == cat2:
        return True
    if contains_either(cat1, cat2):
        return True
    return shared_keyword_count(cat1, cat2) >= 1


def passes_category_match(intent: SearchIntent, candidate: CandidateRecord) -> bool:
    extracted = intent.extracted_product.category if intent.extracted_product else None
    allowed = intent.constraints.categories if intent.constraints else ()

    if not extracted and not allowed:
        return True

    if not candidate.category or not candidate.category.strip():
        # missing data is not penalised
        return True

    cand = normalize_category(candidate.category)

    if extracted and categories_compatible(normalize_category(extracted), cand):
        return True

    if allowed:
        return any(categories_compatible(normalize_category(cat), cand) for cat in allowed)

    return not extracted


# ---------------------------------------------------------------------------
# Title similarity gate
# ---------------------------------------------------------------------------


def passes_title_similarity(intent: SearchIntent, candidate: CandidateRecord) -> bool:
    query = normalize_title(intent.query)
    raw_extracted = intent.extracted_product.name if intent.extracted_product else None
    extracted = normalize_title(raw_extracted) if raw_extracted else None
    name = normalize_title(candidate.name)

    if not name:
        return False

    if contains_either(name, query):
        return True

    if extracted:
        if contains_either(name, extracted):
            return True
        if shared_keyword_count(extracted, name) >= 2:
            return True

    return shared_keyword_count(query, name) >= 1


# ---------------------------------------------------------------------------
# Price gates
# ---------------------------------------------------------------------------


def passes_price_range(intent: SearchIntent, candidate: CandidateRecord) -> bool:
    if intent.constraints is None:
        return True
    lo = intent.constraints.min_price
    hi = intent.constraints.max_price
    if lo is not None and candidate.price < lo:
        return False
    if hi is not None and candidate.price > hi:
        return False
    return True


def passes_price_band(intent: SearchIntent, candidate: CandidateRecord) -> bool:
    """Strict gate: stay within +/- PRICE_BAND_TOLERANCE of the source price."""
    source_price = intent.extracted_product.price if intent.extracted_product else None
    if not _is_finite_number(source_price) or source_price <= 0:
        return True
    lower = source_price * (1 - PRICE_BAND_TOLERANCE)
    upper = source_price * (1 + PRICE_BAND_TOLERANCE)
    return lower <= candidate.price <= upper


def _passes_strict_gates(intent: SearchIntent, candidate: CandidateRecord) -> bool:
    if not passes_price_band(intent, candidate):
        return False

    source_category = intent.extracted_product.category if intent.extracted_product else None
    if is_major_category_mismatch(source_category, candidate.category):
        return False

    source_title = (intent.extracted_product.name if intent.extracted_product else None) or intent.query
    return attributes_compatible(extract_attributes(source_title), extract_attributes(candidate.name))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def filter_candidates(
    intent: SearchIntent,
    candidates: Sequence[CandidateRecord],
    *,
    max_results: int = MAX_MATCHES,
    strict: Optional[bool] = None,
) -> List[CandidateRecord]:
    """
    Return the candidates that legitimately match ``intent``.

    Malformed records are dropped silently.  Only a missing ``intent`` or
    ``candidates`` argument raises, since that is a caller bug.
    """
    if intent is None:
        raise ValueError("intent must be provided to filter_candidates")
    if candidates is None:
        raise ValueError("candidates must be a sequence, got None")
    if strict is None:
        strict = STRICT_MATCHING

    valid = [c for c in candidates if is_valid_candidate(c)]
    unique = remove_duplicates(valid)
    foreign = _exclude_store(unique, intent.source_store)

    kept: List[CandidateRecord] = []
    for c in foreign:
        if not passes_category_match(intent, c):
            continue
        if not passes_title_similarity(intent, c):
            continue
        if not passes_price_range(intent, c):
            continue
        if strict and not _passes_strict_gates(intent, c):
            continue
        kept.append(c)

    logger.debug(
        "Match filter: {} in, {} valid, {} unique, {} foreign, {} kept",
        len(candidates), len(valid), len(unique), len(foreign), len(kept),
    )
    return kept[:max_results]
