"""Entry prioritization and score statistics."""

from __future__ import annotations

import statistics
from dataclasses import dataclass
from functools import cmp_to_key
from typing import List, Sequence

from repoindex.models import IndexEntry
from repoindex.utils.text import estimate_tokens

SCORE_TOLERANCE = 0.001
HIGH_THRESHOLD = 0.7
MEDIUM_THRESHOLD = 0.5
TIERS = ("high", "medium", "low")


def importance_tier(score: float) -> str:
    if score >= HIGH_THRESHOLD:
        return "high"
    if score >= MEDIUM_THRESHOLD:
        return "medium"
    return "low"


def _compare(a: IndexEntry, b: IndexEntry) -> int:
    difference = b.importance_score - a.importance_score
    if abs(difference) > SCORE_TOLERANCE:
        return 1 if difference > 0 else -1
    if a.domain != b.domain:
        return -1 if a.domain < b.domain else 1
    if a.timestamp != b.timestamp:
        return -1 if a.timestamp > b.timestamp else 1
    return 0


def prioritize(entries: Sequence[IndexEntry], max_entries: int | None = None) -> List[IndexEntry]:
    """Order by importance (ties within 0.001), then domain, then newest first.

    Entries beyond ``max_entries`` are dropped.
    """
    ordered = sorted(entries, key=cmp_to_key(_compare))
    if max_entries is not None:
        del ordered[max_entries:]
    return ordered


@dataclass(slots=True)
class ScoreDistribution:
    minimum: float = 0.0
    maximum: float = 0.0
    mean: float = 0.0
    median: float = 0.0
    high: int = 0
    medium: int = 0
    low: int = 0

    @classmethod
    def from_entries(cls, entries: Sequence[IndexEntry]) -> "ScoreDistribution":
        if not entries:
            return cls()
        scores = sorted((entry.importance_score for entry in entries), reverse=True)
        tiers = [importance_tier(score) for score in scores]
        return cls(
            minimum=scores[-1],
            maximum=scores[0],
            mean=statistics.fmean(scores),
            median=scores[len(scores) // 2],
            high=tiers.count("high"),
            medium=tiers.count("medium"),
            low=tiers.count("low"),
        )


@dataclass(slots=True)
class QualityMetrics:
    chunk_count: int = 0
    avg_summary_tokens: int = 0
    avg_freshness: float = 0.0

    @classmethod
    def from_entries(cls, entries: Sequence[IndexEntry]) -> "QualityMetrics":
        if not entries:
            return cls()
        summary_tokens = sum(estimate_tokens(entry.mini_summary) for entry in entries)
        return cls(
            chunk_count=len(entries),
            avg_summary_tokens=round(summary_tokens / len(entries)),
            avg_freshness=round(statistics.fmean(entry.freshness_score for entry in entries), 2),
        )
