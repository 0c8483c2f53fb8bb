"""FastAPI application wiring the search service."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Query

from .config import settings
from .filters import SortKey
from .models import SearchResponse
from .search_service import get_service

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

# Force a predictable logging setup even when run under uvicorn, so the
# per-query timing lines are visible. ``force=True`` replaces uvicorn's
# default handlers.
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)
logger.info("Logging configured at %s", settings.log_level.upper())

app = FastAPI(title="Product Query Search")


@app.on_event("startup")
async def startup_event() -> None:
    if not settings.load_on_startup:
        return
    try:
        loaded = get_service().reload()
    except FileNotFoundError as exc:
        logger.warning("Catalog not loaded on startup: %s", exc)
        return
    logger.info("Loaded %s products on startup", loaded)


@app.get("/health")
async def health() -> dict:
    service = get_service()
    return {
        "catalog": settings.catalog_path,
        "products": len(service.catalog),
        "cache": service.cache.name if service.cache is not None else None,
    }


@app.get("/search", response_model=SearchResponse)
def search(
    q: str = Query("", description="Search query, e.g. 'price:<=60' or 'sony tv under $300'"),
    sort: Optional[SortKey] = Query(None, description="Explicit ordering overriding relevance"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=settings.max_page_size),
    brand: Optional[str] = Query(None, description="Only products of this brand (case-insensitive)"),
    category: Optional[str] = Query(None, description="Only products in this category (case-insensitive)"),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
) -> dict:
    if min_price is not None and max_price is not None and min_price > max_price:
        raise HTTPException(status_code=422, detail="min_price must not exceed max_price")
    return get_service().search(
        q,
        sort=sort,
        page=page,
        page_size=page_size,
        brand=brand,
        category=category,
        min_price=min_price,
        max_price=max_price,
    )


@app.post("/reload")
def reload_catalog() -> dict:
    try:
        count = get_service().reload()
    except (FileNotFoundError, RuntimeError) as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return {"indexed": count}
