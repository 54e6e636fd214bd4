from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RiskLevel = Literal["low", "medium", "high"]

RISK_ORDER = {"low": 0, "medium": 1, "high": 2}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Pool(_CamelModel):
    """One aggregator listing, as returned by the yields endpoint."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    chain: str
    project: str
    symbol: str
    tvl_usd: float
    apy: float = Field(..., description="Total APY in %")
    apy_base: Optional[float] = None
    apy_reward: Optional[float] = None
    reward_tokens: Optional[List[str]] = None
    pool_id: str = Field(
        default="",
        validation_alias=AliasChoices("pool", "poolId", "pool_id"),
        serialization_alias="poolId",
    )
    url: Optional[str] = None
    # Aggregator extras, carried through untouched
    il_risk: Optional[str] = None
    stablecoin: Optional[bool] = None
    pool_meta: Optional[str] = None
    apy_mean30d: Optional[float] = Field(default=None, alias="apyMean30d")


class Opportunity(Pool):
    is_native_asset: bool
    risk_level: RiskLevel
    risk_factors: List[str] = Field(default_factory=list)


class AnalysisResult(_CamelModel):
    best_overall: Optional[Opportunity] = None
    best_by_apy: Optional[Opportunity] = Field(
        default=None,
        validation_alias=AliasChoices("bestByAPY", "bestByApy", "best_by_apy"),
        serialization_alias="bestByAPY",
    )
    best_by_risk: Optional[Opportunity] = None
    best_by_liquidity: Optional[Opportunity] = None
    best_for_small_stakers: Optional[Opportunity] = None
    all_opportunities: List[Opportunity] = Field(default_factory=list)
    analysis_timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    recommendation_reason: str = ""
    data_sources: List[str] = Field(default_factory=list)


class QueryFilters(_CamelModel):
    min_apy: Optional[float] = None
    min_stake: Optional[float] = Field(default=None, description="Stake available, in thousands of USD of TVL")
    limit: Optional[int] = Field(default=None, ge=1)
    max_risk: Optional[RiskLevel] = None

    def is_active(self) -> bool:
        return self.min_apy is not None or self.min_stake is not None or self.max_risk is not None

    def describe(self) -> str:
        parts: List[str] = []
        if self.min_apy is not None:
            parts.append(f"minApy={self.min_apy:g}")
        if self.min_stake is not None:
            parts.append(f"minStake={self.min_stake:g}")
        if self.max_risk is not None:
            parts.append(f"maxRisk={self.max_risk}")
        return ", ".join(parts) or "none"


# Resolver outcomes


class MatchedProvider(_CamelModel):
    kind: Literal["matched_provider"] = "matched_provider"
    provider: str
    stage: str = Field(..., description="Name of the matcher or intent that produced the match")
    matches: List[Opportunity]


class FilteredSet(_CamelModel):
    kind: Literal["filtered_set"] = "filtered_set"
    filters: QueryFilters
    opportunities: List[Opportunity]


class SafeRecommendations(_CamelModel):
    kind: Literal["safe_recommendations"] = "safe_recommendations"
    opportunities: List[Opportunity]
    native_only: bool = True


class RiskComparison(_CamelModel):
    kind: Literal["risk_comparison"] = "risk_comparison"
    opportunities: List[Opportunity]


class NoMatch(_CamelModel):
    kind: Literal["no_match"] = "no_match"
    reason: str
    filters: Optional[QueryFilters] = None


Resolution = Annotated[
    Union[MatchedProvider, FilteredSet, SafeRecommendations, RiskComparison, NoMatch],
    Field(discriminator="kind"),
]


class QueryRequest(_CamelModel):
    text: Optional[str] = None
    filters: Optional[QueryFilters] = None
