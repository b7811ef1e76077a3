"""Core repoindex data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple, Union

ENTRY_VERSION = "v1"
ENTRY_STATUS = "active"


@dataclass(slots=True)
class SourceUnit:
    """One discovered file, alive only while it is being processed."""

    path: Path
    relative_path: str
    extension: str
    text: str
    timestamp: str


@dataclass(slots=True)
class Chunk:
    """Contiguous span of a file produced by a chunker."""

    text: str
    title: Optional[str]
    kind: str
    level: int
    start_line: int
    end_line: int


@dataclass(frozen=True, slots=True)
class Provenance:
    source_hash: str
    author: Optional[str] = None


@dataclass(frozen=True, slots=True)
class IndexEntry:
    """Unit stored in the index."""

    id: str
    title: str
    domain: str
    source: str
    chunk_id: str
    mini_summary: str
    tags: Tuple[str, ...]
    timestamp: str
    freshness_score: float
    importance_score: float = 0.0
    version: str = ENTRY_VERSION
    status: str = ENTRY_STATUS
    provenance: Provenance = field(default_factory=lambda: Provenance(source_hash=""))


@dataclass(frozen=True, slots=True)
class PartitionInfo:
    """Manifest line for one emitted partition artifact."""

    name: str
    file: str
    count: int


@dataclass(frozen=True, slots=True)
class InlineArtifact:
    entries: Tuple[IndexEntry, ...]


@dataclass(frozen=True, slots=True)
class ManifestArtifact:
    partitions: Tuple[PartitionInfo, ...]


IndexArtifact = Union[InlineArtifact, ManifestArtifact]
