"""Artifact persistence: write index files and load them back."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from repoindex.config import AppConfig
from repoindex.index.partition import (
    artifact_name,
    partition_entries,
    partition_statistics,
    summarize_domains,
)
from repoindex.index.serializer import IndexFormatError, parse_artifact, render_entries, render_main_index
from repoindex.models import IndexEntry, InlineArtifact, PartitionInfo
from repoindex.reporting import IndexReporter, LoggingReporter

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class WriteResult:
    main_path: Path
    manifest: List[PartitionInfo] = field(default_factory=list)


class IndexStore:
    """Reads and writes the index artifacts of one project in one directory."""

    def __init__(
        self,
        output_dir: Path,
        project_name: str,
        *,
        reporter: Optional[IndexReporter] = None,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.project_name = project_name
        self.reporter = reporter or LoggingReporter()

    def _write(self, name: str, text: str) -> Path:
        path = self.output_dir / name
        path.write_text(text, encoding="utf-8")
        return path

    def write(self, entries: Sequence[IndexEntry], *, strategy: str, generated_at: str) -> WriteResult:
        """Write prioritized ``entries`` as one file or as a manifest plus partitions."""
        if strategy == "none":
            path = self._write(artifact_name(self.project_name), render_entries(entries, self.project_name))
            self.reporter.partition_written("all", path, len(entries))
            return WriteResult(main_path=path)

        partitions = partition_entries(entries, strategy)
        manifest: List[PartitionInfo] = []
        total_bytes = 0
        for partition in partitions:
            name = artifact_name(self.project_name, partition.name)
            text = render_entries(partition.entries, self.project_name)
            path = self._write(name, text)
            total_bytes += len(text.encode("utf-8"))
            manifest.append(PartitionInfo(name=partition.name, file=name, count=len(partition.entries)))
            self.reporter.partition_written(partition.name, path, len(partition.entries))

        main_text = render_main_index(
            project_name=self.project_name,
            strategy=strategy,
            entries=entries,
            partitions=partitions,
            manifest=manifest,
            domains=summarize_domains(entries, partitions, self.project_name),
            statistics=partition_statistics(manifest, total_bytes),
            generated_at=generated_at,
        )
        return WriteResult(main_path=self._write(artifact_name(self.project_name), main_text), manifest=manifest)


def load_index(index_path: Optional[Path] = None, *, config: Optional[AppConfig] = None) -> List[IndexEntry]:
    """Load every entry of an index, following the partition manifest if present.

    Without ``index_path`` the main artifact location is derived from ``config``
    (or the defaults for the current directory).

    Partition files are resolved next to the main artifact. A missing
    partition is skipped with a warning; a malformed one aborts the load.
    """
    index_path = Path(index_path) if index_path is not None else (config or AppConfig()).main_index_path()
    if not index_path.exists():
        raise FileNotFoundError(f"Index not found: {index_path}. Run 'repoindex generate' to create it.")

    artifact = parse_artifact(index_path.read_text(encoding="utf-8"))
    if isinstance(artifact, InlineArtifact):
        return list(artifact.entries)

    entries: List[IndexEntry] = []
    for info in artifact.partitions:
        partition_path = index_path.parent / info.file
        if not partition_path.exists():
            LOGGER.warning("Partition file not found: %s", partition_path)
            continue
        partition = parse_artifact(partition_path.read_text(encoding="utf-8"))
        if not isinstance(partition, InlineArtifact):
            raise IndexFormatError(f"Partition {partition_path} does not contain entries")
        entries.extend(partition.entries)
    return entries
