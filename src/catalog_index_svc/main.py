"""FastAPI application - Catalog Parent Index Service.

Serves parent lookups and id translation from the in-memory index built
out of the Commerce catalog feed. Handlers are plain functions so a lookup
that triggers a build blocks a worker thread, not the event loop.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from . import __version__
from .commerce.client import CommerceClient
from .commerce.fetcher import RemoteCatalogFetcher
from .config import Config, load_config
from .mapping.builder import CatalogHierarchyBuilder
from .mapping.cache import MappingCache
from .mapping.resolver import LookupStatus, ParentResolver


logger = logging.getLogger(__name__)


# Response models
class ParentResponse(BaseModel):
    item_id: str
    parent_id: str
    matched_on: str
    built_at: datetime | None = None


class TranslateResponse(BaseModel):
    local_id: str
    entity_id: str


class HealthResponse(BaseModel):
    status: str
    cache: dict[str, Any]


# Global instances (initialized in lifespan, or injected with _set_globals)
_cache: MappingCache | None = None
_resolver: ParentResolver | None = None


def _set_globals(cache: MappingCache | None, resolver: ParentResolver | None) -> None:
    """Wire the cache and resolver the route handlers read."""
    global _cache, _resolver
    _cache = cache
    _resolver = resolver


def build_resolver(config: Config) -> tuple[MappingCache, ParentResolver]:
    """Create the client -> fetcher -> builder -> cache -> resolver chain."""
    client = CommerceClient(config.commerce)
    fetcher = RemoteCatalogFetcher(client, page_size=config.mapping.page_size)
    builder = CatalogHierarchyBuilder(root_id=config.mapping.catalogs_root_id)
    cache = MappingCache.for_commerce(fetcher, builder, config.commerce.default_environment)
    return cache, ParentResolver(cache)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    owns_cache = _resolver is None

    if owns_cache:
        logger.info("Starting catalog parent index service...")
        config = load_config()
        cache, resolver = build_resolver(config)
        _set_globals(cache, resolver)

        if config.mapping.warm_on_startup:
            cache.ensure_fresh()

        logger.info("Catalog parent index service started")

    yield

    if owns_cache:
        logger.info("Shutting down catalog parent index service...")
        if _cache is not None:
            _cache.close()
        _set_globals(None, None)
        logger.info("Catalog parent index service stopped")


app = FastAPI(
    title="Catalog Parent Index Service",
    description="Parent lookups over the Commerce catalog hierarchy.",
    version=__version__,
    lifespan=lifespan,
)


def _require_resolver() -> ParentResolver:
    if _resolver is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return _resolver


@app.get("/health", response_model=HealthResponse)
def health():
    """Health check endpoint."""
    if _cache is None:
        return HealthResponse(status="starting", cache={})

    stats = _cache.stats()
    snapshot = _cache.snapshot
    if snapshot is not None and snapshot.failed:
        status = "degraded"
    else:
        status = "healthy"
    return HealthResponse(status=status, cache=stats)


@app.get("/parent/{item_id}", response_model=ParentResponse)
def get_parent(item_id: str):
    """Resolve the parent of a catalog item, variation or synthesized node."""
    resolver = _require_resolver()
    result = resolver.lookup(item_id)

    if result.status is LookupStatus.NO_DATA:
        raise HTTPException(status_code=503, detail="Catalog index has no data")
    if result.status is LookupStatus.NOT_FOUND:
        raise HTTPException(status_code=404, detail=f"No parent for {result.child_id}")

    return ParentResponse(
        item_id=result.child_id,
        parent_id=result.parent_id,
        matched_on=result.matched_on,
        built_at=result.snapshot_built_at,
    )


@app.get("/translate/{local_id}", response_model=TranslateResponse)
def translate(local_id: str):
    """Translate a local item id to its Commerce entity id."""
    resolver = _require_resolver()
    entity_id = resolver.translate(local_id)
    if entity_id is None:
        raise HTTPException(status_code=404, detail=f"Unknown id {local_id}")
    return TranslateResponse(local_id=local_id, entity_id=entity_id)


@app.post("/refresh")
def refresh():
    """Rebuild the index from the catalog feed."""
    resolver = _require_resolver()
    resolver.cache.refresh()
    return resolver.cache.stats()


@app.get("/")
def root():
    """Root endpoint with service info."""
    return {
        "service": "Catalog Parent Index Service",
        "version": __version__,
        "endpoints": {
            "/parent/{item_id}": "Parent of an item",
            "/translate/{local_id}": "Commerce entity id of an item",
            "/refresh": "POST - Rebuild the index",
            "/health": "Health check",
        },
    }


def run():
    """Run the service with uvicorn."""
    import uvicorn

    config = load_config()
    logging.basicConfig(
        level=config.logging.level.upper(),
        format=config.logging.format,
    )

    uvicorn.run(
        "catalog_index_svc.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
    )


if __name__ == "__main__":
    run()
