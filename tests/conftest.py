"""
Shared pytest fixtures for the treasury yield engine test suite.

Provides:
  - ``thresholds``: default ``RiskThresholds``.
  - ``llama_records``: a realistic DefiLlama ``/pools`` payload slice covering
    native, non-native, inactive and off-chain listings.
  - ``opportunities``: the live Aptos listings of ``llama_records`` as
    classified ``Opportunity`` objects.
  - ``make_http``: builds an ``HttpClient`` backed by ``httpx.MockTransport``.
  - ``settings``: ``Settings`` with the defaults (no .env lookup).
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List

import httpx
import pytest

from treasury_yield.config import RiskThresholds, Settings
from treasury_yield.http import HttpClient
from treasury_yield.models import Opportunity, Pool
from treasury_yield.services.risk import build_opportunities


@pytest.fixture
def thresholds() -> RiskThresholds:
    return RiskThresholds()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def llama_records() -> List[Dict[str, Any]]:
    return [
        {
            "chain": "Aptos", "project": "amnis-finance", "symbol": "STAPT",
            "tvlUsd": 60_000_000, "apy": 8.5, "apyBase": 8.5, "apyReward": None,
            "rewardTokens": None, "pool": "amnis-stapt", "ilRisk": "no", "stablecoin": False, "apyMean30d": 8.2,
        },
        {
            "chain": "Aptos", "project": "thala-lsd", "symbol": "THAPT",
            "tvlUsd": 25_000_000, "apy": 7.9, "apyBase": 7.9,
            "pool": "thala-thapt", "ilRisk": "no",
        },
        {
            "chain": "Aptos", "project": "liquidswap", "symbol": "APT-USDC",
            "tvlUsd": 4_200_000, "apy": 32.4, "apyBase": 12.1, "apyReward": 20.3,
            "rewardTokens": ["0x1::aptos_coin::AptosCoin"], "pool": "ls-apt-usdc", "ilRisk": "yes",
        },
        {
            "chain": "Aptos", "project": "echelon-market", "symbol": "USDT",
            "tvlUsd": 12_500_000, "apy": 6.1, "pool": "echelon-usdt", "ilRisk": "no",
        },
        {
            "chain": "Aptos", "project": "unknownprotocol", "symbol": "XYZ-APT",
            "tvlUsd": 500_000, "apy": 1500.0, "pool": "unk-xyz-apt", "ilRisk": "yes",
        },
        # inactive listings
        {"chain": "Aptos", "project": "dead-farm", "symbol": "APT", "tvlUsd": 0, "apy": 4.0, "pool": "dead"},
        {"chain": "Aptos", "project": "paused", "symbol": "USDC", "tvlUsd": 2_000_000, "apy": 0, "pool": "paused"},
        {"chain": "Aptos", "project": "no-apy", "symbol": "USDC", "tvlUsd": 2_000_000, "apy": None, "pool": "noapy"},
        # other chains
        {"chain": "Ethereum", "project": "lido", "symbol": "STETH", "tvlUsd": 9_000_000_000, "apy": 3.1, "pool": "lido"},
        {"chain": "Sui", "project": "aftermath", "symbol": "AFSUI", "tvlUsd": 80_000_000, "apy": 4.2, "pool": "af"},
    ]


@pytest.fixture
def opportunities(llama_records, thresholds) -> List[Opportunity]:
    """Live Aptos listings from ``llama_records``, classified and risk-assessed, in catalog order."""
    pools = [
        Pool.model_validate(r)
        for r in llama_records
        if r["chain"] == "Aptos" and (r.get("tvlUsd") or 0) > 0 and (r.get("apy") or 0) > 0
    ]
    return build_opportunities(pools, "apt", thresholds)


@pytest.fixture
def make_http() -> Callable[..., HttpClient]:
    """Factory: ``make_http(handler)`` where handler maps ``httpx.Request`` to ``httpx.Response``."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> HttpClient:
        return HttpClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def catalog_http(make_http, llama_records) -> HttpClient:
    """HttpClient that always serves ``llama_records`` as the aggregator body."""
    return make_http(lambda request: httpx.Response(200, json={"status": "success", "data": llama_records}))
