from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from treasury_yield.clients.defillama import fetch_pools
from treasury_yield.config import Settings, get_settings
from treasury_yield.errors import FetchTimeoutError, YieldEngineError
from treasury_yield.http import HttpClient
from treasury_yield.models import (
    AnalysisResult,
    FilteredSet,
    MatchedProvider,
    NoMatch,
    Opportunity,
    QueryFilters,
)
from treasury_yield.services.analyzer import analyze_opportunities
from treasury_yield.services.cache import CatalogCache
from treasury_yield.services.formatter import format_resolution, opportunity_payload, payload_list
from treasury_yield.services.resolver import QueryResolver
from treasury_yield.services.risk import build_opportunities
from treasury_yield.services.scoring import LocalScoring

logger = logging.getLogger(__name__)

LOCAL_EXPLANATION = (
    "These pools represent the best balance between safety (determined by TVL and risk level) and yield (APY)"
)


def _best_fields(result: AnalysisResult) -> Dict[str, Any]:
    return {
        "bestOverallOpportunity": opportunity_payload(result.best_overall),
        "bestByAPY": opportunity_payload(result.best_by_apy),
        "bestByRisk": opportunity_payload(result.best_by_risk),
        "bestByLiquidity": opportunity_payload(result.best_by_liquidity),
        "bestForSmallStakers": opportunity_payload(result.best_for_small_stakers),
    }


class OpportunityFinder:
    """Caller-facing entrypoint: fetch, classify, assess, score, resolve, format.

    Holds no per-request state; every call works on its own fetched catalog.
    """

    def __init__(self, http: HttpClient, settings: Settings | None = None, cache: CatalogCache | None = None):
        self.http = http
        self.settings = settings or get_settings()
        self.cache = cache
        self.chain = self.settings.TARGET_CHAIN
        self.ticker = self.settings.NATIVE_TICKER.lower()
        self.thresholds = self.settings.risk_thresholds()
        self.resolver = QueryResolver(
            self.ticker,
            chain=self.chain,
            thresholds=self.thresholds,
            default_limit=self.settings.DEFAULT_PROTOCOL_LIMIT,
        )

    async def _load_pools(self):
        if self.cache is not None:
            cached = await self.cache.get_pools(self.chain)
            if cached is not None:
                logger.debug(f"Catalog cache hit for {self.chain}: {len(cached)} pools")
                return cached
        timeout = self.settings.FETCH_TIMEOUT_SECONDS
        try:
            pools = await asyncio.wait_for(
                fetch_pools(self.http, self.chain, url=self.settings.AGGREGATOR_URL),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise FetchTimeoutError(f"Pool catalog fetch exceeded {timeout:g}s") from e
        if self.cache is not None:
            await self.cache.save_pools(self.chain, pools)
        return pools

    async def fetch_opportunities(self) -> List[Opportunity]:
        pools = await self._load_pools()
        return build_opportunities(pools, self.ticker, self.thresholds)

    async def analyze(self) -> AnalysisResult:
        return self.analyze_set(await self.fetch_opportunities())

    def analyze_set(self, opportunities: List[Opportunity]) -> AnalysisResult:
        return analyze_opportunities(
            opportunities,
            self.ticker,
            thresholds=self.thresholds,
            liquidity_fallback=self.settings.LIQUIDITY_FALLBACK,
        )

    async def find(self, text: Optional[str] = None, filters: QueryFilters | None = None) -> Dict[str, Any]:
        try:
            opportunities = await self.fetch_opportunities()
        except YieldEngineError as e:
            logger.warning(f"Staking opportunity lookup failed [{e.code}]: {e.message}")
            return e.to_dict()
        return self.respond(opportunities, text, filters)

    def respond(
        self,
        opportunities: List[Opportunity],
        text: Optional[str] = None,
        filters: QueryFilters | None = None,
    ) -> Dict[str, Any]:
        limit = filters.limit if filters else None
        if not text and not (filters and filters.is_active()):
            result = self.analyze_set(opportunities)
            return {
                "status": "success",
                "message": self._found_message(result),
                "recommendation": result.recommendation_reason,
                **_best_fields(result),
                "opportunityCount": len(result.all_opportunities),
                "allOpportunities": payload_list(result.all_opportunities[:limit]),
                "dataSources": result.data_sources,
                "analysisTimestamp": result.analysis_timestamp.isoformat(),
            }

        resolution = self.resolver.resolve(text, opportunities, filters)
        logger.debug(f"Query {text!r} resolved as {resolution.kind}")

        if isinstance(resolution, FilteredSet):
            result = self.analyze_set(resolution.opportunities)
            return {
                "status": "success",
                "message": f"Found {len(resolution.opportunities)} staking opportunities matching your filters.",
                "resolution": resolution.kind,
                "recommendation": result.recommendation_reason,
                **_best_fields(result),
                "allMatchingOpportunities": payload_list(resolution.opportunities[:limit]),
                "filters": resolution.filters.model_dump(by_alias=True, exclude_none=True),
                "dataSources": result.data_sources,
                "analysisTimestamp": result.analysis_timestamp.isoformat(),
            }

        if isinstance(resolution, NoMatch):
            out: Dict[str, Any] = {
                "status": "success",
                "message": resolution.reason,
                "resolution": resolution.kind,
                "recommendation": resolution.reason,
                "opportunities": [],
            }
            if resolution.filters is not None:
                out["filters"] = resolution.filters.model_dump(by_alias=True, exclude_none=True)
            return out

        opps = resolution.matches if isinstance(resolution, MatchedProvider) else resolution.opportunities
        out = {
            "status": "success",
            "message": f"Found {len(opps)} staking opportunities for your query.",
            "resolution": resolution.kind,
            "recommendation": format_resolution(resolution, self.ticker),
            "opportunities": payload_list(opps),
        }
        if isinstance(resolution, MatchedProvider):
            out["provider"] = resolution.provider
            out["matchStage"] = resolution.stage
        return out

    def _found_message(self, result: AnalysisResult) -> str:
        if not result.all_opportunities:
            return f"No staking opportunities found on {self.chain} at the moment."
        return (
            f"Found {len(result.all_opportunities)} staking opportunities"
            f" from {', '.join(result.data_sources)}."
        )

    async def best_pools_for_protocol(
        self,
        protocol: str = "",
        min_apy: float | None = None,
        limit: int | None = None,
    ) -> Dict[str, Any]:
        """Rank one protocol's pools with the set-relative (local) score."""
        try:
            opportunities = await self.fetch_opportunities()
        except YieldEngineError as e:
            logger.warning(f"Protocol pool lookup failed [{e.code}]: {e.message}")
            return e.to_dict()

        name = protocol.lower().strip()
        eligible = [o for o in opportunities if not name or name in o.project.lower()]
        if min_apy is not None:
            eligible = [o for o in eligible if o.apy >= min_apy]
        ranked = LocalScoring(self.thresholds).rank(eligible)
        best = ranked[: limit or self.settings.DEFAULT_PROTOCOL_LIMIT]
        return {
            "status": "success",
            "totalPoolsFound": len(eligible),
            "projectName": protocol or "All projects",
            "bestPools": payload_list(best),
            "explanation": LOCAL_EXPLANATION,
        }
