from __future__ import annotations

"""
End-to-end search pipeline.

    providers -> match filter -> scoring -> badge ranker -> guardrails -> response

Every stage after the providers is pure; the providers are the only I/O.
"""

import argparse
import json
from typing import List, Optional, Sequence

from loguru import logger

from . import config
from .badges import rank_badges
from .guardrails import apply_guardrails
from .intent import build_intent, is_url
from .mapping import map_results_to_response
from .matching import filter_candidates
from .page_fetch import fetch_product_title
from .pipeline_types import CandidateRecord, SearchConstraints, SearchIntent
from .providers import ProductProvider
from .resolver import ProviderResolver
from .scoring import order_by_score, score_candidates


def gather_candidates(intent: SearchIntent, providers: Sequence[ProductProvider]) -> List[CandidateRecord]:
    """Concatenate provider results in provider order; a failing provider contributes nothing."""
    records: List[CandidateRecord] = []
    for p in providers:
        try:
            res = p.search(intent)
        except Exception as e:
            logger.warning("Provider {} failed: {}", p.name, e)
            continue
        logger.info("Provider {} returned {} of {} products", p.name, len(res.products), res.total_results)
        records.extend(res.products)
    return records


def run_search(
    intent: SearchIntent,
    providers: Sequence[ProductProvider],
    *,
    strict: Optional[bool] = None,
    query: Optional[str] = None,
):
    """
    Run one search and return a SearchResponse.

    ``query`` is echoed back in the response; it defaults to ``intent.query``.
    """
    raw = gather_candidates(intent, providers)
    matched = filter_candidates(intent, raw, strict=strict)
    ranked = rank_badges(order_by_score(score_candidates(matched)))
    verdicts = apply_guardrails(ranked)

    logger.info(
        "Search {!r}: {} raw, {} matched, {} badged",
        intent.query, len(raw), len(matched), sum(1 for c in ranked if c.badge),
    )
    return map_results_to_response(query if query is not None else intent.query, intent, ranked, verdicts)


def search_query(
    query: str,
    constraints: Optional[SearchConstraints] = None,
    *,
    resolver: Optional[ProviderResolver] = None,
    fetch_pages: Optional[bool] = None,
    strict: Optional[bool] = None,
):
    """Convenience wrapper: raw query string in, SearchResponse out."""
    if fetch_pages is None:
        fetch_pages = config.FETCH_PRODUCT_PAGES

    title = None
    if fetch_pages and is_url(query.strip()):
        title = fetch_product_title(query.strip())

    intent = build_intent(query, constraints, page_title=title)
    resolver = resolver or ProviderResolver()
    return run_search(intent, resolver.available_providers(intent), strict=strict, query=query.strip())


# ---------------------------
# CLI entrypoint
# ---------------------------

def main(argv: Optional[Sequence[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Shortlist alternatives for a product query or URL")
    ap.add_argument("query", help="Keywords or a product URL")
    ap.add_argument("--min_price", type=float, default=None)
    ap.add_argument("--max_price", type=float, default=None)
    ap.add_argument("--min_rating", type=float, default=None)
    ap.add_argument("--category", action="append", default=[], help="Allowed category (repeatable)")
    ap.add_argument("--store", action="append", default=[], help="Restrict to store (repeatable)")
    ap.add_argument("--strict", action="store_true", help="Enable price band / attribute gates")
    ap.add_argument("--fetch_pages", action="store_true", help="Fetch the product page title for URL queries")
    args = ap.parse_args(argv)

    constraints = SearchConstraints(
        min_price=args.min_price,
        max_price=args.max_price,
        min_rating=args.min_rating,
        categories=tuple(args.category),
        stores=tuple(args.store),
    )
    response = search_query(
        args.query,
        constraints,
        fetch_pages=args.fetch_pages or None,
        strict=args.strict or None,
    )
    print(json.dumps(response.model_dump(), indent=2))


if __name__ == "__main__":
    main()
