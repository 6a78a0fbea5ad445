"""
Cache Monitor Router.

GET /api/v1/cache-monitor returns cache insights, or the fixed
`{"error": "Failed to fetch cache metrics"}` 500 envelope on any failure.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..dependencies import Cache, Monitor
from ..schemas import CacheInsightsResponse
from ...cache import get_cache_insights

logger = logging.getLogger(__name__)

ERROR_CACHE_METRICS = "Failed to fetch cache metrics"

router = APIRouter(tags=["Cache"], responses={500: {"description": ERROR_CACHE_METRICS}})


@router.get("/cache-monitor", response_model=CacheInsightsResponse, summary="Cache insights")
async def cache_monitor(cache: Cache, monitor: Monitor):
    try:
        insights = await get_cache_insights(monitor, cache)
        return CacheInsightsResponse(**insights)
    except Exception:
        logger.exception("Error fetching cache metrics")
        return JSONResponse(status_code=500, content={"error": ERROR_CACHE_METRICS})
