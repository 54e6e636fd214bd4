from __future__ import annotations

from typing import List, NamedTuple

from treasury_yield.config import RiskThresholds
from treasury_yield.models import Opportunity, Pool, RiskLevel
from treasury_yield.services.classifier import is_native_asset

VERY_HIGH_TVL = "very high TVL"
GOOD_TVL = "good TVL"
MODERATE_TVL = "moderate TVL"
LOW_TVL = "low TVL — higher risk"
SUSPICIOUS_APY = "unusually high APY — exercise caution"
HIGH_APY = "high APY — verify sustainability"
NATIVE_POOL = "native staking pool"
NON_NATIVE_POOL = "non-native pool — additional smart-contract risk"


class RiskAssessment(NamedTuple):
    risk_level: RiskLevel
    risk_factors: List[str]


def assess_risk(pool: Pool, is_native: bool, thresholds: RiskThresholds) -> RiskAssessment:
    tvl = pool.tvl_usd
    apy = pool.apy
    factors: List[str] = []

    if tvl >= thresholds.very_high_tvl:
        factors.append(VERY_HIGH_TVL)
    elif tvl >= thresholds.good_tvl:
        factors.append(GOOD_TVL)
    elif tvl >= thresholds.moderate_tvl:
        factors.append(MODERATE_TVL)
    else:
        factors.append(LOW_TVL)

    if apy > thresholds.suspicious_apy:
        factors.append(SUSPICIOUS_APY)
    elif apy > thresholds.high_apy:
        factors.append(HIGH_APY)

    factors.append(NATIVE_POOL if is_native else NON_NATIVE_POOL)

    if tvl >= thresholds.good_tvl and apy <= thresholds.high_apy and is_native:
        level: RiskLevel = "low"
    elif (
        tvl < thresholds.moderate_tvl
        or apy > thresholds.suspicious_apy
        or (not is_native and apy > thresholds.high_apy)
    ):
        level = "high"
    else:
        level = "medium"
    return RiskAssessment(level, factors)


def defillama_protocol_url(project: str) -> str:
    return f"https://defillama.com/protocol/{project.lower()}"


def build_opportunity(pool: Pool, ticker: str, thresholds: RiskThresholds) -> Opportunity:
    native = is_native_asset(pool.symbol, ticker)
    assessment = assess_risk(pool, native, thresholds)
    data = pool.model_dump()
    data["url"] = pool.url or defillama_protocol_url(pool.project)
    return Opportunity(
        **data,
        is_native_asset=native,
        risk_level=assessment.risk_level,
        risk_factors=assessment.risk_factors,
    )


def build_opportunities(pools: List[Pool], ticker: str, thresholds: RiskThresholds) -> List[Opportunity]:
    return [build_opportunity(p, ticker, thresholds) for p in pools]
