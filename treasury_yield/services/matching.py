from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Callable, List, NamedTuple, Optional, Sequence

from treasury_yield.models import Opportunity

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[-_\s]+")


def _squash(value: str) -> str:
    return _SEPARATORS.sub("", value.lower())


class Matcher(ABC):
    """One stage of provider-name resolution against a catalog."""

    name: str = ""

    @abstractmethod
    def try_match(self, text: str, catalog: Sequence[Opportunity]) -> Optional[List[Opportunity]]:
        """Return the matching opportunities, or None when this stage finds nothing."""

    @staticmethod
    def _collect(catalog: Sequence[Opportunity], pred: Callable[[Opportunity], bool]) -> Optional[List[Opportunity]]:
        hits = [o for o in catalog if pred(o)]
        return hits or None


class ProjectNameMatcher(Matcher):
    name = "project_name"

    def try_match(self, text: str, catalog: Sequence[Opportunity]) -> Optional[List[Opportunity]]:
        q = text.lower().strip()
        if not q:
            return None

        def pred(o: Opportunity) -> bool:
            p = o.project.lower()
            return p == q or q in p or p in q

        return self._collect(catalog, pred)


class NormalizedProjectMatcher(Matcher):
    """Project match ignoring hyphens, underscores and spaces ("amnis finance" ~ "amnis-finance")."""

    name = "normalized_project"

    def try_match(self, text: str, catalog: Sequence[Opportunity]) -> Optional[List[Opportunity]]:
        q = _squash(text)
        if not q:
            return None

        def pred(o: Opportunity) -> bool:
            p = _squash(o.project)
            return p == q or q in p or p in q

        return self._collect(catalog, pred)


class SymbolMatcher(Matcher):
    name = "symbol"

    def __init__(self, ticker: str):
        self.ticker = ticker.lower()

    def try_match(self, text: str, catalog: Sequence[Opportunity]) -> Optional[List[Opportunity]]:
        q = text.lower().strip()
        if not q:
            return None
        mentions_ticker = self.ticker in q

        def pred(o: Opportunity) -> bool:
            s = o.symbol.lower()
            return q in s or (mentions_ticker and self.ticker in s)

        return self._collect(catalog, pred)


class TokenMatcher(Matcher):
    """Last resort: any query word longer than two characters inside a project name."""

    name = "token"
    MIN_WORD_LENGTH = 3

    def try_match(self, text: str, catalog: Sequence[Opportunity]) -> Optional[List[Opportunity]]:
        words = [w for w in text.lower().split() if len(w) >= self.MIN_WORD_LENGTH]
        if not words:
            return None
        return self._collect(catalog, lambda o: any(w in o.project.lower() for w in words))


class CascadeHit(NamedTuple):
    stage: str
    matches: List[Opportunity]


class MatcherCascade:
    """Ordered matchers; the first stage with at least one hit wins."""

    def __init__(self, matchers: Sequence[Matcher]):
        self.matchers = list(matchers)

    def run(self, text: str, catalog: Sequence[Opportunity]) -> Optional[CascadeHit]:
        for matcher in self.matchers:
            hits = matcher.try_match(text, catalog)
            if hits:
                logger.debug(f"Provider '{text}' matched {len(hits)} pools via {matcher.name}")
                return CascadeHit(matcher.name, hits)
        return None


def default_cascade(ticker: str) -> MatcherCascade:
    return MatcherCascade([
        ProjectNameMatcher(),
        NormalizedProjectMatcher(),
        SymbolMatcher(ticker),
        TokenMatcher(),
    ])
