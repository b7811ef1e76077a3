"""Shared fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from repoindex.models import IndexEntry, Provenance


@pytest.fixture
def make_entry() -> Callable[..., IndexEntry]:
    """Factory for index entries with sensible defaults."""

    def factory(entry_id: str = "doc-a#c01", **overrides) -> IndexEntry:
        fields = dict(
            id=entry_id,
            title="Title",
            domain="core",
            source="src/core/a.ts",
            chunk_id=entry_id,
            mini_summary="A summary of the entry.",
            tags=("code", "function"),
            timestamp="2024-01-01T00:00:00.000Z",
            freshness_score=0.9,
            importance_score=0.5,
            provenance=Provenance(source_hash="sha256:" + "0" * 64),
        )
        fields.update(overrides)
        return IndexEntry(**fields)

    return factory


class RecordingReporter:
    """Reporter that keeps every checkpoint it is told about."""

    def __init__(self) -> None:
        self.processed: list[tuple[str, int]] = []
        self.filtered: list[tuple[str, str]] = []
        self.partitions: list[tuple[str, Path, int]] = []

    def file_processed(self, path: str, entry_count: int) -> None:
        self.processed.append((path, entry_count))

    def entry_filtered(self, entry_id: str, reason: str) -> None:
        self.filtered.append((entry_id, reason))

    def partition_written(self, name: str, path: Path, count: int) -> None:
        self.partitions.append((name, path, count))


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()
