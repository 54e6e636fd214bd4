from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from treasury_yield.config import RiskThresholds
from treasury_yield.models import (
    FilteredSet,
    MatchedProvider,
    NoMatch,
    Opportunity,
    RiskComparison,
    SafeRecommendations,
)
from treasury_yield.services.scoring import GlobalScoring

DISCLAIMER = "Note: Always do your own research and verify the protocol's security before staking."


def safest(
    candidates: Sequence[Opportunity],
    thresholds: RiskThresholds | None = None,
    n: int = 3,
) -> Tuple[List[Opportunity], bool]:
    """Top ``n`` pools by safety score, native pools only unless the set has none.

    Returns the pools and whether they were restricted to native pools.
    """
    native = [o for o in candidates if o.is_native_asset]
    pool_set = native or list(candidates)
    return GlobalScoring(thresholds).rank(pool_set)[:n], bool(native)


def _millions(tvl_usd: float) -> str:
    return f"${tvl_usd / 1_000_000:.2f}M"


def format_provider_info(opp: Opportunity) -> str:
    lines = [
        f"{opp.project} ({opp.symbol})",
        f"Total APY: {opp.apy:.2f}%",
    ]
    if opp.apy_base:
        lines.append(f"Base APY: {opp.apy_base:.2f}%")
    if opp.apy_reward:
        lines.append(f"Reward APY: {opp.apy_reward:.2f}%")
    lines.append(f"TVL: {_millions(opp.tvl_usd)}")
    if opp.reward_tokens:
        lines.append(f"Reward tokens: {', '.join(opp.reward_tokens)}")
    lines.append("")
    lines.append(f"Risk Level: {opp.risk_level.upper()}")
    lines.append("Risk Factors:")
    lines.extend(f"- {factor}" for factor in opp.risk_factors)
    if opp.url:
        lines.append(f"More info: {opp.url}")
    return "\n".join(lines)


def format_safe_recommendations(opps: Sequence[Opportunity], ticker: str, native_only: bool = True) -> str:
    if not opps:
        return f"No {ticker.upper()} staking opportunities found at the moment."
    label = f"{ticker.upper()} staking" if native_only else "staking (no native pools listed)"
    body = "\n\n".join(format_provider_info(o) for o in opps)
    return f"Here are the safest {label} opportunities:\n\n{body}\n\n{DISCLAIMER}"


def format_risk_comparison(opps: Sequence[Opportunity]) -> str:
    rows = [
        f"{o.project} ({o.symbol})\n"
        f"Risk Level: {o.risk_level.upper()}\n"
        f"TVL: {_millions(o.tvl_usd)}\n"
        f"APY: {o.apy:.2f}%"
        for o in opps
    ]
    return "Risk Level Comparison:\n\n" + "\n\n".join(rows)


def format_resolution(resolution: Any, ticker: str) -> str:
    if isinstance(resolution, MatchedProvider):
        return "\n\n".join(format_provider_info(o) for o in resolution.matches)
    if isinstance(resolution, SafeRecommendations):
        return format_safe_recommendations(resolution.opportunities, ticker, resolution.native_only)
    if isinstance(resolution, RiskComparison):
        return format_risk_comparison(resolution.opportunities)
    if isinstance(resolution, FilteredSet):
        return "\n\n".join(format_provider_info(o) for o in resolution.opportunities)
    if isinstance(resolution, NoMatch):
        return resolution.reason
    raise TypeError(f"Unsupported resolution type: {type(resolution).__name__}")


def recommendation_reason(opp: Optional[Opportunity], ticker: str, data_source: str = "DefiLlama") -> str:
    if opp is None:
        return "No staking opportunities found"
    reason = (
        f"{opp.project} ({opp.symbol}) is recommended with {opp.apy:.2f}% APY"
        f" and {_millions(opp.tvl_usd)} TVL. Risk level: {opp.risk_level.upper()}"
    )
    if opp.risk_factors:
        reason += f". Key factors: {opp.risk_factors[0]}"
    reason += "."
    if opp.is_native_asset:
        reason += f" This is a native {ticker.upper()} staking pool."
    return reason + f" Data source: {data_source}"


def opportunity_payload(opp: Optional[Opportunity]) -> Optional[Dict[str, Any]]:
    """camelCase JSON dict for callers; tvlUsd and apy are rounded for display."""
    if opp is None:
        return None
    data = opp.model_dump(mode="json", by_alias=True)
    data["tvlUsd"] = round(opp.tvl_usd, 2)
    data["apy"] = round(opp.apy, 2)
    return data


def payload_list(opps: Sequence[Opportunity]) -> List[Dict[str, Any]]:
    return [opportunity_payload(o) for o in opps]
