"""
Tests for treasury_yield/services/classifier.py.
"""

from __future__ import annotations

import pytest

from treasury_yield.services.classifier import is_native_asset


@pytest.mark.parametrize(
    "symbol",
    ["APT", "apt", "APT-USDC", "USDC-APT", "stAPT", "STAPT", "amAPT-stAPT", "liquid-staked-apt"],
)
def test_native_symbols(symbol):
    assert is_native_asset(symbol, "apt") is True


@pytest.mark.parametrize("symbol", ["USDC", "THAPT", "APTOS", "WETH-USDC", "", "CAPTAIN"])
def test_non_native_symbols(symbol):
    assert is_native_asset(symbol, "apt") is False


def test_ticker_is_case_insensitive():
    assert is_native_asset("stSUI", "SUI") is True


def test_other_ticker_does_not_match_apt_pools():
    assert is_native_asset("APT-USDC", "sui") is False
