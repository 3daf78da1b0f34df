"""Administrative routes: scheduled crawl, cache status and metrics."""

from __future__ import annotations

import hmac

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse

from knowledge_cache.api.dependencies import get_app_settings, get_helpcenter_cache
from knowledge_cache.cache.helpcenter_cache import HelpCenterCache
from knowledge_cache.core.config import Settings
from knowledge_cache.core.logging import get_logger
from knowledge_cache.core.metrics import REQUEST_COUNT, metrics_response
from knowledge_cache.models.dto import CacheMetadataResponse, CrawlResponse

logger = get_logger(__name__)

router = APIRouter()


def require_cron_secret(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Check the scheduler's shared secret.

    Without a configured secret the crawl may be triggered unauthenticated,
    which is only meant for local development.
    """
    if not settings.cron_secret:
        return
    expected = f"Bearer {settings.cron_secret}"
    if authorization is None or not hmac.compare_digest(authorization.encode(), expected.encode()):
        REQUEST_COUNT.labels(endpoint="cron_crawl", method="GET", status="401").inc()
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.get(
    "/cron/crawl",
    response_model=CrawlResponse,
    summary="Crawl the help center and replace the cached snapshot",
    dependencies=[Depends(require_cron_secret)],
)
async def crawl_helpcenter(cache: HelpCenterCache = Depends(get_helpcenter_cache)):
    result = await cache.crawl()
    payload = CrawlResponse.from_result(result)
    if not result.success:
        REQUEST_COUNT.labels(endpoint="cron_crawl", method="GET", status="500").inc()
        return JSONResponse(status_code=500, content=payload.model_dump())
    REQUEST_COUNT.labels(endpoint="cron_crawl", method="GET", status="200").inc()
    return payload


@router.get("/cache/metadata", response_model=CacheMetadataResponse, summary="Describe the cached snapshot")
async def cache_metadata(cache: HelpCenterCache = Depends(get_helpcenter_cache)) -> CacheMetadataResponse:
    metadata = await cache.get_metadata()
    if metadata is None:
        raise HTTPException(status_code=404, detail="Cache is empty")
    return CacheMetadataResponse.from_metadata(metadata)


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["require_cron_secret", "router"]
