from __future__ import annotations

"""
FastAPI application for the product shortlist.

- GET  /health : liveness plus the names of the available providers
- POST /search : keyword or URL query -> ranked, badged, guardrailed shortlist
"""

from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .config import HealthResponse, SearchRequest, SearchResponse
from .pipeline import search_query
from .pipeline_types import SearchConstraints
from .resolver import ProviderResolver

_resolver: Optional[ProviderResolver] = None


def get_resolver() -> ProviderResolver:
    global _resolver
    if _resolver is None:
        _resolver = ProviderResolver()
        logger.info("Provider resolver ready: {}", _resolver.names)
    return _resolver


app = FastAPI(title="Shortlist")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    providers = [p.name for p in get_resolver().available_providers()]
    return HealthResponse(status="healthy", providers=providers)


@app.post("/search", response_model=SearchResponse)
def search(req: SearchRequest) -> SearchResponse:
    query = req.query.strip()
    if not query:
        raise HTTPException(status_code=422, detail="Query must be non-empty")
    if req.min_price is not None and req.max_price is not None and req.min_price > req.max_price:
        raise HTTPException(status_code=422, detail="min_price must not exceed max_price")

    constraints = SearchConstraints(
        min_price=req.min_price,
        max_price=req.max_price,
        min_rating=req.min_rating,
        categories=tuple(req.categories),
        stores=tuple(req.stores),
    )
    return search_query(query, constraints, resolver=get_resolver())
