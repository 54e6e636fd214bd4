"""
Tests for treasury_yield/services/matching.py.

Each matcher is exercised on its own, then the cascade ordering.
"""

from __future__ import annotations

from treasury_yield.models import Opportunity
from treasury_yield.services.matching import (
    Matcher,
    MatcherCascade,
    NormalizedProjectMatcher,
    ProjectNameMatcher,
    SymbolMatcher,
    TokenMatcher,
    default_cascade,
)


def _opp(project: str, symbol: str) -> Opportunity:
    return Opportunity(
        chain="Aptos", project=project, symbol=symbol, tvl_usd=1_000_000, apy=5.0,
        pool_id=f"{project}:{symbol}", is_native_asset=False, risk_level="medium",
    )


CATALOG = [
    _opp("Amnis Finance", "stAPT"),
    _opp("aries-markets", "USDC"),
    _opp("liquidswap", "APT-USDC"),
    _opp("thala_lsd", "THL"),
]


def _projects(hits):
    return [o.project for o in hits] if hits else hits


class TestProjectNameMatcher:
    def test_exact(self):
        assert _projects(ProjectNameMatcher().try_match("liquidswap", CATALOG)) == ["liquidswap"]

    def test_query_inside_project(self):
        assert _projects(ProjectNameMatcher().try_match("amnis", CATALOG)) == ["Amnis Finance"]

    def test_project_inside_query(self):
        hits = ProjectNameMatcher().try_match("liquidswap v1 pools", CATALOG)
        assert _projects(hits) == ["liquidswap"]

    def test_case_insensitive(self):
        assert _projects(ProjectNameMatcher().try_match("AMNIS FINANCE", CATALOG)) == ["Amnis Finance"]

    def test_no_hit_returns_none(self):
        assert ProjectNameMatcher().try_match("tortuga", CATALOG) is None

    def test_blank_returns_none(self):
        assert ProjectNameMatcher().try_match("  ", CATALOG) is None


class TestNormalizedProjectMatcher:
    def test_hyphen_vs_space(self):
        assert _projects(NormalizedProjectMatcher().try_match("aries markets", CATALOG)) == ["aries-markets"]

    def test_underscore_stripped(self):
        assert _projects(NormalizedProjectMatcher().try_match("thala-lsd", CATALOG)) == ["thala_lsd"]

    def test_project_name_stage_misses_these(self):
        assert ProjectNameMatcher().try_match("aries markets", CATALOG) is None


class TestSymbolMatcher:
    def test_symbol_substring(self):
        assert _projects(SymbolMatcher("apt").try_match("thl", CATALOG)) == ["thala_lsd"]

    def test_ticker_mention_matches_every_ticker_symbol(self):
        hits = SymbolMatcher("apt").try_match("apt staking", CATALOG)
        assert _projects(hits) == ["Amnis Finance", "liquidswap"]

    def test_no_ticker_no_hit(self):
        assert SymbolMatcher("apt").try_match("weth", CATALOG) is None


class TestTokenMatcher:
    def test_any_long_word(self):
        assert _projects(TokenMatcher().try_match("the finance one", CATALOG)) == ["Amnis Finance"]

    def test_short_words_ignored(self):
        assert TokenMatcher().try_match("li ar", CATALOG) is None


class TestCascade:
    def test_first_stage_wins(self):
        hit = default_cascade("apt").run("liquidswap", CATALOG)
        assert hit.stage == "project_name"
        assert _projects(hit.matches) == ["liquidswap"]

    def test_falls_through_to_normalized(self):
        hit = default_cascade("apt").run("aries markets", CATALOG)
        assert hit.stage == "normalized_project"

    def test_falls_through_to_token(self):
        hit = default_cascade("apt").run("aries lending", CATALOG)
        assert hit.stage == "token"
        assert _projects(hit.matches) == ["aries-markets"]

    def test_nothing_found(self):
        assert default_cascade("apt").run("tortuga", CATALOG) is None

    def test_custom_order_is_respected(self):
        class Always(Matcher):
            name = "always"

            def try_match(self, text, catalog):
                return list(catalog[:1])

        cascade = MatcherCascade([Always(), ProjectNameMatcher()])
        assert cascade.run("liquidswap", CATALOG).stage == "always"
