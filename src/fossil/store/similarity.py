"""
Content similarity scoring for deduplication.

A candidate is compared against every stored entry by word-set overlap,
computed separately for title and content and combined into one score in
``[0, 100]``:

    overlap(a, b) = |a ∩ b| / max(|a|, |b|) × 100
    score         = w × overlap(titles) + (1 − w) × overlap(contents)

with ``w`` the title weight (0.3 by default, so content dominates). Tokens
are lowercase, whitespace-delimited words. Two identical token sets score
100; a threshold of 100 therefore demands exact token-set equality on both
fields, and a threshold of 0 keeps every entry.

Ranking is by score descending; equal scores put the most recently created
entry first (then id, for a stable order).

Tags:
    similarity, deduplication, ranking
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from fossil.store.models import FossilEntry

DEFAULT_TITLE_WEIGHT = 0.3


def tokenize(text: str) -> frozenset[str]:
    """Lowercase whitespace-delimited word set."""
    return frozenset(text.lower().split())


def overlap(a: frozenset[str], b: frozenset[str]) -> float:
    """Shared-token ratio against the larger set, scaled to 0-100."""
    if not a and not b:
        return 100.0
    if not a or not b:
        return 0.0
    return len(a & b) / max(len(a), len(b)) * 100


@dataclass(frozen=True, slots=True)
class SimilarityMatch:
    """An existing entry and how similar it is to the query."""

    entry: FossilEntry
    score: float


class SimilarityEngine:
    """Scores a query ``(title, content)`` against a corpus of entries."""

    def __init__(self, title_weight: float = DEFAULT_TITLE_WEIGHT) -> None:
        if not 0.0 <= title_weight <= 1.0:
            raise ValueError(f"title_weight must be within [0, 1], got {title_weight}")
        self.title_weight = title_weight

    def score(self, title: str, content: str, entry: FossilEntry) -> float:
        return self._score(tokenize(title), tokenize(content), entry)

    def _score(self, title_tokens: frozenset[str], content_tokens: frozenset[str], entry: FossilEntry) -> float:
        title_score = overlap(title_tokens, tokenize(entry.title))
        content_score = overlap(content_tokens, tokenize(entry.content))
        if title_score == content_score:
            return title_score
        return self.title_weight * title_score + (1 - self.title_weight) * content_score

    def find_similar(
        self,
        title: str,
        content: str,
        corpus: Iterable[FossilEntry],
        threshold: float = 0.0,
    ) -> list[SimilarityMatch]:
        """Rank corpus entries scoring at least ``threshold``."""
        title_tokens = tokenize(title)
        content_tokens = tokenize(content)
        matches = [
            SimilarityMatch(entry, score)
            for entry in corpus
            if (score := self._score(title_tokens, content_tokens, entry)) >= threshold
        ]
        # stable sorts: id, then recency, then score (most significant last)
        matches.sort(key=lambda m: m.entry.id)
        matches.sort(key=lambda m: m.entry.created_at, reverse=True)
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches


__all__ = ["DEFAULT_TITLE_WEIGHT", "SimilarityEngine", "SimilarityMatch", "overlap", "tokenize"]
