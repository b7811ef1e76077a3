"""Repository indexing pipeline."""

from __future__ import annotations

import logging
import os
import time
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from repoindex.config import AppConfig
from repoindex.index.entries import EntryBuilder
from repoindex.index.ranking import prioritize
from repoindex.index.storage import IndexStore
from repoindex.metadata.freshness import GitRevisionHistory, RevisionHistory, assess_freshness
from repoindex.models import IndexEntry, PartitionInfo, SourceUnit
from repoindex.reporting import IndexReporter, LoggingReporter
from repoindex.utils.files import iter_indexable_paths
from repoindex.utils.text import to_iso

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class IndexStats:
    processed: int = 0
    failed: int = 0
    generated: int = 0
    kept: int = 0
    processed_files: list[Path] = field(default_factory=list)
    duplicate_ids: list[str] = field(default_factory=list)


@dataclass(slots=True)
class IndexResult:
    entries: List[IndexEntry]
    main_path: Path
    manifest: List[PartitionInfo] = field(default_factory=list)
    stats: IndexStats = field(default_factory=IndexStats)


class Indexer:
    """Coordinates discovery, entry building, ranking and persistence."""

    def __init__(
        self,
        config: AppConfig,
        *,
        history: Optional[RevisionHistory] = None,
        reporter: Optional[IndexReporter] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.root_dir = Path(os.path.abspath(config.root_dir))
        self.history = history if history is not None else GitRevisionHistory(self.root_dir)
        self.reporter = reporter or LoggingReporter()
        self.clock = clock
        self.builder = EntryBuilder(path_scoped_ids=config.path_scoped_ids, reporter=self.reporter)

    def find_files(self) -> list[Path]:
        """List indexable files under the root, leaving out the output directory."""
        return list(iter_indexable_paths(self.root_dir, skip=[self.config.resolve_output_dir()]))

    def collect(self, paths: List[Path], now: float) -> tuple[List[IndexEntry], IndexStats]:
        """Build entries for ``paths``; a failing file contributes nothing."""
        stats = IndexStats()
        entries: List[IndexEntry] = []
        for path in paths:
            try:
                file_entries = self._index_single(path, now)
            except Exception as exc:
                LOGGER.error("Failed to process %s: %s", path, exc)
                stats.failed += 1
                continue
            stats.processed += 1
            stats.processed_files.append(path)
            entries.extend(file_entries)
            self.reporter.file_processed(self._relative(path), len(file_entries))

        stats.generated = len(entries)
        counts = Counter(entry.id for entry in entries)
        stats.duplicate_ids = sorted(entry_id for entry_id, count in counts.items() if count > 1)
        for entry_id in stats.duplicate_ids:
            LOGGER.warning("Duplicate entry id %s produced by %d chunks", entry_id, counts[entry_id])
        return entries, stats

    def run(self) -> IndexResult:
        """Index the whole tree and write the artifacts to the output directory."""
        now = self.clock()
        paths = self.find_files()
        if not paths:
            LOGGER.warning("No indexable files found under %s", self.root_dir)
        LOGGER.info("Found %d files to index", len(paths))

        entries, stats = self.collect(paths, now)
        kept = prioritize(entries, self.config.max_entries)
        stats.kept = len(kept)

        store = IndexStore(
            self.config.resolve_output_dir(),
            self.config.resolve_project_name(),
            reporter=self.reporter,
        )
        written = store.write(kept, strategy=self.config.partition_by, generated_at=to_iso(now))
        return IndexResult(entries=kept, main_path=written.main_path, manifest=written.manifest, stats=stats)

    def _relative(self, path: Path) -> str:
        return Path(os.path.relpath(path, self.root_dir)).as_posix()

    def _index_single(self, path: Path, now: float) -> List[IndexEntry]:
        text = path.read_text(encoding="utf-8")
        freshness = assess_freshness(path, self.history, now=now)
        unit = SourceUnit(
            path=path,
            relative_path=self._relative(path),
            extension=path.suffix.lower(),
            text=text,
            timestamp=freshness.timestamp,
        )
        return self.builder.build(unit, freshness)
