"""Tests for partitioning and domain rollups."""

from __future__ import annotations

import pytest

from repoindex.index.partition import (
    artifact_name,
    partition_entries,
    partition_statistics,
    summarize_domains,
)
from repoindex.models import PartitionInfo


class TestArtifactName:
    def test_main_and_partitions(self) -> None:
        assert artifact_name("demo") == "demo-index.yaml"
        assert artifact_name("demo", "api") == "demo-index-api.yaml"
        assert artifact_name("demo", "api-high") == "demo-index-api-high.yaml"


class TestPartitionEntries:
    """Test partition_entries function."""

    def test_none_strategy(self, make_entry) -> None:
        entries = [make_entry("doc-a#c01"), make_entry("doc-b#c01", domain="api")]

        partitions = partition_entries(entries, "none")

        assert [(p.name, len(p.entries)) for p in partitions] == [("all", 2)]

    def test_domain_strategy(self, make_entry) -> None:
        entries = [
            make_entry("doc-a#c01", domain="api"),
            make_entry("doc-b#c01", domain="docs"),
            make_entry("doc-c#c01", domain="api"),
        ]

        partitions = partition_entries(entries, "domain")

        assert [(p.name, len(p.entries)) for p in partitions] == [("api", 2), ("docs", 1)]

    def test_importance_strategy_omits_empty_tiers(self, make_entry) -> None:
        entries = [
            make_entry("doc-a#c01", importance_score=0.75),
            make_entry("doc-b#c01", importance_score=0.3),
            make_entry("doc-c#c01", importance_score=0.7),
        ]

        partitions = partition_entries(entries, "importance")

        assert [(p.name, len(p.entries)) for p in partitions] == [("high", 2), ("low", 1)]

    def test_large_domain_is_split_into_tiers(self, make_entry) -> None:
        entries = [make_entry(f"doc-h{i}#c01", domain="api", importance_score=0.8) for i in range(60)]
        entries += [make_entry(f"doc-l{i}#c01", domain="api", importance_score=0.2) for i in range(45)]
        entries.append(make_entry("doc-ui#c01", domain="ui"))

        partitions = partition_entries(entries, "domain")

        assert [(p.name, len(p.entries)) for p in partitions] == [("api-high", 60), ("api-low", 45), ("ui", 1)]

    def test_tier_name_taken_by_domain(self, make_entry) -> None:
        entries = [make_entry(f"doc-h{i}#c01", domain="api", importance_score=0.8) for i in range(101)]
        entries.append(make_entry("doc-x#c01", domain="api-high"))

        partitions = partition_entries(entries, "domain")

        assert [(p.name, len(p.entries)) for p in partitions] == [("api-high", 101), ("api-high-2", 1)]
        assert partitions[1].entries[0].domain == "api-high"

    def test_domain_at_limit_is_not_split(self, make_entry) -> None:
        entries = [make_entry(f"doc-{i}#c01", domain="api") for i in range(100)]
        assert [p.name for p in partition_entries(entries, "domain")] == ["api"]

    def test_unknown_strategy(self, make_entry) -> None:
        with pytest.raises(ValueError):
            partition_entries([make_entry()], "size")


class TestRollups:
    """Test summarize_domains and partition_statistics."""

    def test_summarize_domains(self, make_entry) -> None:
        entries = [
            make_entry("doc-a#c01", domain="api", importance_score=0.8),
            make_entry("doc-b#c01", domain="api", importance_score=0.6),
            make_entry("doc-c#c01", domain="docs", importance_score=0.5),
        ]
        partitions = partition_entries(entries, "domain")

        summaries = summarize_domains(entries, partitions, "demo")

        assert [(s.domain, s.count) for s in summaries] == [("api", 2), ("docs", 1)]
        assert summaries[0].avg_importance == pytest.approx(0.7)
        assert summaries[0].file == "demo-index-api.yaml"

    def test_summarize_without_partitions(self, make_entry) -> None:
        summaries = summarize_domains([make_entry()])
        assert summaries[0].file == ""

    def test_partition_statistics(self) -> None:
        manifest = [
            PartitionInfo(name="api", file="demo-index-api.yaml", count=6),
            PartitionInfo(name="docs", file="demo-index-docs.yaml", count=2),
        ]

        stats = partition_statistics(manifest, total_bytes=4096)

        assert (stats.largest_name, stats.largest_count) == ("api", 6)
        assert (stats.smallest_name, stats.smallest_count) == ("docs", 2)
        assert stats.avg_entries_per_partition == 4.0
        assert stats.total_size_kb == 4
