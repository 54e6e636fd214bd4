from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Dict, List, NamedTuple, Optional, Sequence, Type

from treasury_yield.config import RiskThresholds
from treasury_yield.models import RISK_ORDER, Opportunity


class ScoringStrategy(ABC):
    """Composite desirability score over a candidate set. Higher is better."""

    name: str = ""

    @abstractmethod
    def score_all(self, candidates: Sequence[Opportunity]) -> List[float]:
        ...

    def rank(self, candidates: Sequence[Opportunity]) -> List[Opportunity]:
        # sorted() is stable, equal scores keep arrival order
        scores = self.score_all(candidates)
        order = sorted(range(len(candidates)), key=lambda i: scores[i], reverse=True)
        return [candidates[i] for i in order]

    def best(self, candidates: Sequence[Opportunity]) -> Optional[Opportunity]:
        if not candidates:
            return None
        scores = self.score_all(candidates)
        return candidates[max(range(len(candidates)), key=scores.__getitem__)]


class GlobalScoring(ScoringStrategy):
    """Absolute score: risk tier bonus, TVL up to the very-high mark, APY sanity bonus.

    Also used as the safety score when ranking safe recommendations.
    """

    name = "global"
    RISK_BONUS = {"low": 20.0, "medium": 10.0, "high": 0.0}
    TVL_POINTS = 50.0

    def __init__(self, thresholds: RiskThresholds | None = None):
        self.thresholds = thresholds or RiskThresholds()

    def score(self, opp: Opportunity) -> float:
        t = self.thresholds
        tvl_points = min(self.TVL_POINTS, opp.tvl_usd / t.very_high_tvl * self.TVL_POINTS)
        if opp.apy <= t.normal_apy:
            apy_points = 30.0
        elif opp.apy <= t.high_apy:
            apy_points = 15.0
        else:
            apy_points = 0.0
        return self.RISK_BONUS[opp.risk_level] + tvl_points + apy_points

    def score_all(self, candidates: Sequence[Opportunity]) -> List[float]:
        return [self.score(o) for o in candidates]


class LocalScoring(ScoringStrategy):
    """Relative score: 50% impermanent-loss risk, 30% log TVL, 20% APY.

    TVL and APY are normalised against the maxima of the set being scored, so the
    same pool scores differently in different candidate sets.
    """

    name = "local"
    IL_RISK_SCORE = {"no": 5.0, "low": 4.0, "medium": 3.0, "high": 1.0, "il": 0.0}
    RISK_WEIGHT = 0.5
    TVL_WEIGHT = 0.3
    APY_WEIGHT = 0.2

    def __init__(self, thresholds: RiskThresholds | None = None):
        self.thresholds = thresholds or RiskThresholds()

    def score_all(self, candidates: Sequence[Opportunity]) -> List[float]:
        if not candidates:
            return []
        max_tvl = max(o.tvl_usd for o in candidates)
        max_apy = max(o.apy for o in candidates)
        tvl_norm = math.log(max_tvl + 1) if max_tvl > 0 else 0.0
        out: List[float] = []
        for o in candidates:
            risk = self.IL_RISK_SCORE.get((o.il_risk or "").lower(), 0.0)
            tvl_factor = math.log(o.tvl_usd + 1) / tvl_norm if tvl_norm > 0 else 0.0
            apy_factor = o.apy / max_apy if max_apy > 0 else 0.0
            out.append(risk * self.RISK_WEIGHT + tvl_factor * self.TVL_WEIGHT + apy_factor * self.APY_WEIGHT)
        return out


STRATEGIES: Dict[str, Type[ScoringStrategy]] = {
    GlobalScoring.name: GlobalScoring,
    LocalScoring.name: LocalScoring,
}


def get_strategy(name: str, thresholds: RiskThresholds | None = None) -> ScoringStrategy:
    try:
        cls = STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown scoring strategy '{name}'. Use one of: {sorted(STRATEGIES)}") from None
    return cls(thresholds)


class Selections(NamedTuple):
    best_overall: Optional[Opportunity]
    best_by_apy: Optional[Opportunity]
    best_by_risk: Optional[Opportunity]
    best_by_liquidity: Optional[Opportunity]
    best_for_small_stakers: Optional[Opportunity]


def select_best(
    candidates: Sequence[Opportunity],
    overall: ScoringStrategy | None = None,
    liquidity_fallback: str = "first",
) -> Selections:
    if not candidates:
        return Selections(None, None, None, None, None)

    overall = overall or GlobalScoring()
    by_apy = max(candidates, key=lambda o: (o.apy, o.tvl_usd))
    small = min(candidates, key=lambda o: o.tvl_usd)
    by_risk = min(candidates, key=lambda o: (RISK_ORDER[o.risk_level], -o.apy))

    native = [o for o in candidates if o.is_native_asset]
    if native:
        liquidity: Optional[Opportunity] = max(native, key=lambda o: o.apy)
    elif liquidity_fallback == "first":
        liquidity = candidates[0]
    else:
        liquidity = None

    return Selections(overall.best(candidates), by_apy, by_risk, liquidity, small)
