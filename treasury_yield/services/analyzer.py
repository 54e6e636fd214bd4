from __future__ import annotations

from typing import List, Sequence

from treasury_yield.config import RiskThresholds
from treasury_yield.models import AnalysisResult, Opportunity
from treasury_yield.services.formatter import recommendation_reason
from treasury_yield.services.scoring import GlobalScoring, select_best

DEFAULT_SOURCES = ["DefiLlama"]


def analyze_opportunities(
    candidates: Sequence[Opportunity],
    ticker: str,
    thresholds: RiskThresholds | None = None,
    data_sources: List[str] | None = None,
    liquidity_fallback: str = "first",
) -> AnalysisResult:
    """Pick the best-by-X winners over ``candidates`` and explain the overall pick."""
    opps = list(candidates)
    if not opps:
        return AnalysisResult(recommendation_reason=recommendation_reason(None, ticker), data_sources=[])

    sources = data_sources or DEFAULT_SOURCES
    picks = select_best(opps, GlobalScoring(thresholds), liquidity_fallback=liquidity_fallback)
    reason = recommendation_reason(picks.best_overall, ticker, data_source=", ".join(sources))
    if picks.best_by_liquidity is None:
        reason += f". No native {ticker.upper()} pool listed, so no liquidity pick is made"

    return AnalysisResult(
        best_overall=picks.best_overall,
        best_by_apy=picks.best_by_apy,
        best_by_risk=picks.best_by_risk,
        best_by_liquidity=picks.best_by_liquidity,
        best_for_small_stakers=picks.best_for_small_stakers,
        all_opportunities=opps,
        recommendation_reason=reason,
        data_sources=list(sources),
    )
