from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

from treasury_yield.config import RiskThresholds
from treasury_yield.models import (
    RISK_ORDER,
    FilteredSet,
    MatchedProvider,
    NoMatch,
    Opportunity,
    QueryFilters,
    Resolution,
    RiskComparison,
    SafeRecommendations,
)
from treasury_yield.services.formatter import safest
from treasury_yield.services.matching import MatcherCascade, default_cascade
from treasury_yield.services.scoring import LocalScoring

logger = logging.getLogger(__name__)

_METRIC = r"(?:apy|staking|yield|rewards?|interest|returns?|rate)"
_NAME = r"([a-z0-9\s\-_]+?)"
_SUFFIX = r"(?:\s+protocol|\s+pool|\s+staking|\s+platform)?"
_END = r"(?:\s+is|\?|$)"

# Priority order, first match wins
PROVIDER_PATTERNS = [
    # "what is the apy for amnis finance?"
    re.compile(
        _METRIC + r"\s+(?:for|from|in|at|on|of)\s+(?:the\s+)?" + _NAME
        + r"(?:\s+protocol|\s+pool|\s+staking|\s+opportunities?|\s+provider|\s+platform)?" + _END,
        re.IGNORECASE,
    ),
    # "tortuga staking apy"
    re.compile(_NAME + _SUFFIX + r"\s+" + _METRIC, re.IGNORECASE),
    # "tell me about thala"
    re.compile(
        r"(?:tell|show|give|provide)(?:\s+me)?\s+(?:about|on|info|information|details)\s+(?:the\s+)?"
        + _NAME + _SUFFIX + _END,
        re.IGNORECASE,
    ),
]

STOPWORDS = {"best", "top", "highest", "lowest", "safest", "good", "better"}
MIN_NAME_LENGTH = 3
COMPARISON_SIZE = 5


class QueryResolver:
    def __init__(
        self,
        ticker: str,
        chain: str | None = None,
        thresholds: RiskThresholds | None = None,
        cascade: MatcherCascade | None = None,
        default_limit: int = 3,
    ):
        self.ticker = ticker.lower()
        self.thresholds = thresholds or RiskThresholds()
        self.cascade = cascade or default_cascade(self.ticker)
        self.default_limit = default_limit
        self.stopwords = set(STOPWORDS)
        if chain:
            self.stopwords.add(chain.lower())
        self._local = LocalScoring(self.thresholds)

    def extract_provider_name(self, text: str) -> Optional[str]:
        query = text.lower().strip()
        for pattern in PROVIDER_PATTERNS:
            m = pattern.search(query)
            if m:
                name = " ".join(m.group(1).split())
                if name in self.stopwords or len(name) < MIN_NAME_LENGTH:
                    return None
                return name
        return None

    @staticmethod
    def apply_filters(candidates: Sequence[Opportunity], filters: QueryFilters) -> List[Opportunity]:
        out = list(candidates)
        if filters.min_apy is not None:
            out = [o for o in out if o.apy >= filters.min_apy]
        if filters.min_stake is not None:
            out = [o for o in out if o.tvl_usd >= filters.min_stake * 1000]
        if filters.max_risk is not None:
            ceiling = RISK_ORDER[filters.max_risk]
            out = [o for o in out if RISK_ORDER[o.risk_level] <= ceiling]
        return out

    def resolve(
        self,
        text: Optional[str],
        candidates: Sequence[Opportunity],
        filters: QueryFilters | None = None,
    ) -> Resolution:
        pool_set = list(candidates)
        if filters is not None and filters.is_active():
            pool_set = self.apply_filters(pool_set, filters)
            if not pool_set:
                return NoMatch(
                    reason=f"No staking opportunities match the filters ({filters.describe()}).",
                    filters=filters,
                )

        if not text or not text.strip():
            if filters is not None and filters.is_active():
                return FilteredSet(filters=filters, opportunities=pool_set)
            return self._safe(pool_set)

        limit = (filters.limit if filters else None) or self.default_limit
        name = self.extract_provider_name(text)
        if name:
            hit = self.cascade.run(name, pool_set)
            if hit:
                ranked = self._local.rank(hit.matches)[:limit]
                return MatchedProvider(provider=name, stage=hit.stage, matches=ranked)
            logger.debug(f"Provider '{name}' not in catalog, falling back to intent")

        return self._resolve_intent(text.lower(), pool_set)

    def _resolve_intent(self, query: str, pool_set: List[Opportunity]) -> Resolution:
        if "safe" in query or "low-risk" in query or "risk level" in query:
            return self._safe(pool_set)

        if "native" in query and "highest tvl" in query:
            native = [o for o in pool_set if o.is_native_asset]
            if not native:
                return NoMatch(reason=f"No native {self.ticker.upper()} staking pools found.")
            top = max(native, key=lambda o: o.apy)
            return MatchedProvider(provider=top.project, stage="native_intent", matches=[top])

        if "compare" in query and "risk" in query:
            ordered = sorted(pool_set, key=lambda o: RISK_ORDER[o.risk_level])
            return RiskComparison(opportunities=ordered[:COMPARISON_SIZE])

        return self._safe(pool_set)

    def _safe(self, pool_set: Sequence[Opportunity]) -> SafeRecommendations:
        picks, native_only = safest(pool_set, self.thresholds)
        return SafeRecommendations(opportunities=picks, native_only=native_only)
