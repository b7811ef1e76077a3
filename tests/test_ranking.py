"""Tests for importance scoring and prioritization."""

from __future__ import annotations

from dataclasses import replace

import pytest

from repoindex.index.ranking import QualityMetrics, ScoreDistribution, importance_tier, prioritize
from repoindex.index.scoring import (
    content_type_weight,
    domain_weight,
    filename_weight,
    importance_score,
    score_entry,
    tag_weight,
)
from repoindex.models import IndexEntry


def _entry(entry_id: str = "doc-a#c01", **overrides) -> IndexEntry:
    fields = dict(
        id=entry_id,
        title="Title",
        domain="core",
        source="src/core/a.ts",
        chunk_id=entry_id,
        mini_summary="A summary of the entry.",
        tags=(),
        timestamp="2024-01-01T00:00:00.000Z",
        freshness_score=0.5,
    )
    fields.update(overrides)
    return IndexEntry(**fields)


class TestWeights:
    """Test the individual score contributions."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("README.md", 0.25),
            ("src/index.ts", 0.25),
            ("docs/api-spec.md", 0.20),
            ("docs/architecture.md", 0.20),
            ("src/utils/format.ts", 0.05),
        ],
    )
    def test_filename_weight(self, path: str, expected: float) -> None:
        assert filename_weight(path) == expected

    def test_domain_weight(self) -> None:
        assert domain_weight("architecture") == 0.15
        assert domain_weight("ui") == 0.10
        assert domain_weight("api") == 0.05

    def test_content_type_weight(self) -> None:
        assert content_type_weight(_entry(source="docs/guide.md")) == 0.15
        assert content_type_weight(_entry(tags=("code", "function"))) == 0.12
        assert content_type_weight(_entry(tags=("code", "export"))) == 0.05

    def test_tag_weight(self) -> None:
        assert tag_weight(_entry(tags=("api", "websocket"))) == 0.10
        assert tag_weight(_entry(tags=("websocket",))) == 0.05
        assert tag_weight(_entry(tags=("react",))) == 0.0


class TestImportanceScore:
    """Test the combined importance formula."""

    def test_maximum_is_clamped(self) -> None:
        entry = _entry(source="docs/README.md", tags=("api",), freshness_score=1.0)
        assert importance_score(entry, "docs/README.md", "x" * 500) == pytest.approx(1.0)

    def test_baseline(self) -> None:
        entry = _entry(domain="misc", source="src/misc/a.ts", freshness_score=0.0)
        assert importance_score(entry, "src/misc/a.ts", "short") == pytest.approx(0.15)

    def test_size_bonus(self) -> None:
        entry = _entry(domain="misc", source="src/misc/a.ts", freshness_score=0.0)
        assert importance_score(entry, "src/misc/a.ts", "x" * 404) == pytest.approx(0.20)

    def test_score_entry_returns_new_entry(self) -> None:
        entry = _entry(freshness_score=1.0)
        scored = score_entry(entry, entry.source, "short")

        assert entry.importance_score == 0.0
        assert scored.importance_score == pytest.approx(0.3 + 0.05 + 0.15 + 0.05)
        assert replace(scored, importance_score=0.0) == entry


class TestPrioritize:
    """Test prioritize function."""

    def test_score_dominates(self) -> None:
        """A score 0.01 higher wins regardless of domain and timestamp."""
        high = _entry("doc-high#c01", domain="zeta", importance_score=0.81, timestamp="2020-01-01T00:00:00.000Z")
        low = _entry("doc-low#c01", domain="alpha", importance_score=0.80, timestamp="2024-01-01T00:00:00.000Z")

        assert prioritize([low, high]) == [high, low]

    def test_near_ties_order_by_domain(self) -> None:
        first = _entry("doc-a#c01", domain="api", importance_score=0.8)
        second = _entry("doc-b#c01", domain="ui", importance_score=0.8005)

        assert prioritize([second, first]) == [first, second]

    def test_then_newest_first(self) -> None:
        older = _entry("doc-a#c01", importance_score=0.5, timestamp="2023-01-01T00:00:00.000Z")
        newer = _entry("doc-b#c01", importance_score=0.5, timestamp="2024-06-01T00:00:00.000Z")

        assert prioritize([older, newer]) == [newer, older]

    def test_truncates(self) -> None:
        entries = [_entry(f"doc-{i}#c01", importance_score=i / 10) for i in range(10)]

        kept = prioritize(entries, max_entries=3)

        assert [entry.importance_score for entry in kept] == [0.9, 0.8, 0.7]

    def test_empty(self) -> None:
        assert prioritize([], max_entries=5) == []


class TestStatistics:
    """Test score distribution and quality metrics."""

    def test_tiers(self) -> None:
        assert importance_tier(0.7) == "high"
        assert importance_tier(0.69) == "medium"
        assert importance_tier(0.5) == "medium"
        assert importance_tier(0.49) == "low"

    def test_distribution(self) -> None:
        entries = [_entry(f"doc-{i}#c01", importance_score=score) for i, score in enumerate((0.9, 0.6, 0.3))]

        distribution = ScoreDistribution.from_entries(entries)

        assert distribution.minimum == 0.3
        assert distribution.maximum == 0.9
        assert distribution.mean == pytest.approx(0.6)
        assert (distribution.high, distribution.medium, distribution.low) == (1, 1, 1)

    def test_quality_metrics(self) -> None:
        entries = [_entry("doc-a#c01", freshness_score=1.0), _entry("doc-b#c01", freshness_score=0.5)]

        metrics = QualityMetrics.from_entries(entries)

        assert metrics.chunk_count == 2
        assert metrics.avg_freshness == 0.75

    def test_empty_inputs(self) -> None:
        assert ScoreDistribution.from_entries([]) == ScoreDistribution()
        assert QualityMetrics.from_entries([]) == QualityMetrics()
