from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Query
from fastapi.responses import JSONResponse
from redis.asyncio import Redis

from treasury_yield.config import get_settings
from treasury_yield.http import HttpClient
from treasury_yield.models import QueryRequest
from treasury_yield.services.cache import CatalogCache
from treasury_yield.services.finder import OpportunityFinder
from treasury_yield.utils.logging import setup_logging

app = FastAPI(title="Treasury Yield Opportunity Engine", version="1.0.0")

logger = logging.getLogger(__name__)

ERROR_STATUS = {"TIMEOUT": 504}


def get_finder() -> OpportunityFinder:
    return app.state.finder


def _respond(result: Dict[str, Any]) -> JSONResponse:
    if result.get("status") == "error":
        return JSONResponse(status_code=ERROR_STATUS.get(result.get("code"), 502), content=result)
    return JSONResponse(content=result)


@app.on_event("startup")
async def startup_event() -> None:
    settings = get_settings()
    setup_logging(settings)
    app.state.http = HttpClient()
    app.state.redis = None
    cache = None
    if settings.ENABLE_REDIS:
        app.state.redis = Redis.from_url(settings.REDIS_URL, decode_responses=False)
        cache = CatalogCache(app.state.redis, ttl_seconds=settings.CACHE_TTL_SECONDS)
    app.state.finder = OpportunityFinder(app.state.http, settings=settings, cache=cache)
    logger.info(
        f"Opportunity engine ready - chain={settings.TARGET_CHAIN} "
        f"ticker={settings.NATIVE_TICKER} cache={'redis' if cache else 'off'}"
    )


@app.on_event("shutdown")
async def shutdown_event() -> None:
    if getattr(app.state, "redis", None):
        await app.state.redis.aclose()
    if getattr(app.state, "http", None):
        await app.state.http.aclose()


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/opportunities")
async def get_opportunities(finder: OpportunityFinder = Depends(get_finder)):
    return _respond(await finder.find())


@app.post("/api/opportunities/query")
async def post_query(req: QueryRequest, finder: OpportunityFinder = Depends(get_finder)):
    return _respond(await finder.find(req.text, req.filters))


@app.get("/api/opportunities/protocols/{protocol}")
async def get_protocol_pools(
    protocol: str,
    min_apy: Optional[float] = Query(None, ge=0.0),
    limit: Optional[int] = Query(None, ge=1, le=50),
    finder: OpportunityFinder = Depends(get_finder),
):
    return _respond(await finder.best_pools_for_protocol(protocol, min_apy=min_apy, limit=limit))
