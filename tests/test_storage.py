"""Tests for writing and loading index artifacts."""

from __future__ import annotations

from pathlib import Path

import pytest

from repoindex.config import AppConfig
from repoindex.index.serializer import IndexFormatError
from repoindex.index.storage import IndexStore, load_index

GENERATED_AT = "2024-06-01T00:00:00.000Z"


def _entries(make_entry) -> list:
    return [
        make_entry("doc-users#c01", domain="api", importance_score=0.8),
        make_entry("doc-users#c02", domain="api", importance_score=0.6, timestamp="2023-01-01T00:00:00.000Z"),
        make_entry("doc-guide#c01", domain="docs", source="docs/guide.md", importance_score=0.4),
    ]


def _by_id(entries) -> list:
    return sorted(entries, key=lambda entry: entry.id)


class TestIndexStore:
    """Test IndexStore.write."""

    def test_single_artifact(self, tmp_path: Path, make_entry, reporter) -> None:
        entries = _entries(make_entry)
        store = IndexStore(tmp_path, "demo", reporter=reporter)

        result = store.write(entries, strategy="none", generated_at=GENERATED_AT)

        assert result.main_path == tmp_path / "demo-index.yaml"
        assert result.manifest == []
        assert sorted(p.name for p in tmp_path.iterdir()) == ["demo-index.yaml"]
        assert reporter.partitions == [("all", result.main_path, 3)]

    def test_partitioned_artifacts(self, tmp_path: Path, make_entry, reporter) -> None:
        entries = _entries(make_entry)
        store = IndexStore(tmp_path, "demo", reporter=reporter)

        result = store.write(entries, strategy="domain", generated_at=GENERATED_AT)

        assert [(info.name, info.file, info.count) for info in result.manifest] == [
            ("api", "demo-index-api.yaml", 2),
            ("docs", "demo-index-docs.yaml", 1),
        ]
        assert sorted(p.name for p in tmp_path.iterdir()) == [
            "demo-index-api.yaml",
            "demo-index-docs.yaml",
            "demo-index.yaml",
        ]
        main_text = result.main_path.read_text(encoding="utf-8")
        assert "total_entries: 3" in main_text
        assert 'partition_strategy: "domain"' in main_text
        assert f'generated_at: "{GENERATED_AT}"' in main_text
        assert [name for name, _, _ in reporter.partitions] == ["api", "docs"]


class TestLoadIndex:
    """Test load_index function."""

    def test_round_trip_single(self, tmp_path: Path, make_entry) -> None:
        entries = _entries(make_entry)
        result = IndexStore(tmp_path, "demo").write(entries, strategy="none", generated_at=GENERATED_AT)

        assert _by_id(load_index(result.main_path)) == _by_id(entries)

    @pytest.mark.parametrize("strategy", ["domain", "importance"])
    def test_round_trip_partitioned(self, tmp_path: Path, make_entry, strategy: str) -> None:
        entries = _entries(make_entry)
        result = IndexStore(tmp_path, "demo").write(entries, strategy=strategy, generated_at=GENERATED_AT)

        assert _by_id(load_index(result.main_path)) == _by_id(entries)

    def test_missing_partition_is_skipped(self, tmp_path: Path, make_entry, caplog) -> None:
        entries = _entries(make_entry)
        result = IndexStore(tmp_path, "demo").write(entries, strategy="domain", generated_at=GENERATED_AT)
        (tmp_path / "demo-index-docs.yaml").unlink()

        loaded = load_index(result.main_path)

        assert [entry.domain for entry in loaded] == ["api", "api"]
        assert "Partition file not found" in caplog.text

    def test_default_path_from_config(self, tmp_path: Path, make_entry) -> None:
        config = AppConfig(root_dir=tmp_path, project_name="demo")
        output_dir = config.resolve_output_dir()
        output_dir.mkdir()
        IndexStore(output_dir, "demo").write(_entries(make_entry), strategy="none", generated_at=GENERATED_AT)

        assert len(load_index(config=config)) == 3

    def test_missing_index(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Index not found"):
            load_index(tmp_path / "missing-index.yaml")

    def test_unrecognized_file(self, tmp_path: Path) -> None:
        path = tmp_path / "demo-index.yaml"
        path.write_text("metadata:\n  project: demo\n", encoding="utf-8")

        with pytest.raises(IndexFormatError):
            load_index(path)

    def test_round_trip_large_domain_tiers(self, tmp_path: Path, make_entry) -> None:
        """A domain over the partition limit is reloaded from its tier files."""
        entries = [make_entry(f"doc-users#c{i:03d}", domain="api", importance_score=(i % 10) / 10) for i in range(120)]
        entries.append(make_entry("doc-guide#c01", domain="docs", source="docs/guide.md"))

        result = IndexStore(tmp_path, "demo").write(entries, strategy="domain", generated_at=GENERATED_AT)

        assert [(info.name, info.file, info.count) for info in result.manifest] == [
            ("api-high", "demo-index-api-high.yaml", 36),
            ("api-medium", "demo-index-api-medium.yaml", 24),
            ("api-low", "demo-index-api-low.yaml", 60),
            ("docs", "demo-index-docs.yaml", 1),
        ]
        assert _by_id(load_index(result.main_path)) == _by_id(entries)

    def test_round_trip_tier_named_like_domain(self, tmp_path: Path, make_entry, caplog) -> None:
        entries = [make_entry(f"doc-users#c{i:03d}", domain="api", importance_score=0.8) for i in range(101)]
        entries.append(make_entry("doc-other#c01", domain="api-high"))

        result = IndexStore(tmp_path, "demo").write(entries, strategy="domain", generated_at=GENERATED_AT)

        assert [info.file for info in result.manifest] == ["demo-index-api-high.yaml", "demo-index-api-high-2.yaml"]
        assert _by_id(load_index(result.main_path)) == _by_id(entries)
        assert "already taken" in caplog.text
