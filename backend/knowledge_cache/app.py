"""FastAPI application setup for Knowledge Cache."""

from __future__ import annotations

from fastapi import FastAPI

from knowledge_cache.api.dependencies import (
    close_resources,
    get_app_settings,
    get_store,
)
from knowledge_cache.api.routes_admin import router as admin_router
from knowledge_cache.api.routes_retrieve import router as retrieve_router
from knowledge_cache.core.logging import configure_logging

configure_logging()

app = FastAPI(
    title="Knowledge Cache",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(retrieve_router, prefix="", tags=["retrieval"])
app.include_router(admin_router, prefix="", tags=["admin"])


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons on startup."""
    get_app_settings()
    get_store()


@app.on_event("shutdown")
async def shutdown() -> None:
    await close_resources()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
