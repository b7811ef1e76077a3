"""Grouping of the final entry set into output partitions."""

from __future__ import annotations

import logging
import statistics
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Set

from repoindex.index.ranking import TIERS, importance_tier
from repoindex.models import IndexEntry, PartitionInfo

LOGGER = logging.getLogger(__name__)

MAX_ENTRIES_PER_PARTITION = 100


@dataclass(slots=True)
class Partition:
    name: str
    entries: List[IndexEntry] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DomainSummary:
    domain: str
    count: int
    avg_importance: float
    file: str = ""


@dataclass(slots=True)
class PartitionStatistics:
    largest_name: str = ""
    largest_count: int = 0
    smallest_name: str = ""
    smallest_count: int = 0
    avg_entries_per_partition: float = 0.0
    total_size_kb: int = 0


def artifact_name(project_name: str, partition_name: str | None = None) -> str:
    if partition_name is None:
        return f"{project_name}-index.yaml"
    return f"{project_name}-index-{partition_name}.yaml"


def split_by_importance(entries: Sequence[IndexEntry], prefix: str | None = None) -> List[Partition]:
    """Split entries into high/medium/low tiers, omitting empty tiers."""
    tiers: Dict[str, Partition] = {
        tier: Partition(f"{prefix}-{tier}" if prefix else tier) for tier in TIERS
    }
    for entry in entries:
        tiers[importance_tier(entry.importance_score)].entries.append(entry)
    return [partition for partition in tiers.values() if partition.entries]


def partition_entries(entries: Sequence[IndexEntry], strategy: str) -> List[Partition]:
    """Group prioritized entries by ``strategy`` (``domain``, ``importance`` or ``none``).

    Domain partitions above :data:`MAX_ENTRIES_PER_PARTITION` entries are
    replaced by their importance tiers (``<domain>-high`` and so on). When a
    tier name matches a real domain, the later partition gets a numeric suffix.
    """
    if strategy == "none":
        return [Partition("all", list(entries))]
    if strategy == "importance":
        return split_by_importance(entries)
    if strategy != "domain":
        raise ValueError(f"Unknown partition strategy: {strategy}")

    by_domain: Dict[str, Partition] = {}
    for entry in entries:
        by_domain.setdefault(entry.domain, Partition(entry.domain)).entries.append(entry)

    partitions: List[Partition] = []
    for name, partition in by_domain.items():
        if len(partition.entries) > MAX_ENTRIES_PER_PARTITION:
            partitions.extend(split_by_importance(partition.entries, prefix=name))
        else:
            partitions.append(partition)
    return _dedupe_names(partitions)


def _dedupe_names(partitions: List[Partition]) -> List[Partition]:
    seen: Set[str] = set()
    for partition in partitions:
        name = partition.name
        suffix = 2
        while name in seen:
            name = f"{partition.name}-{suffix}"
            suffix += 1
        if name != partition.name:
            LOGGER.warning("Partition name %s is already taken, writing it as %s", partition.name, name)
            partition.name = name
        seen.add(name)
    return partitions


def summarize_domains(
    entries: Sequence[IndexEntry],
    partitions: Sequence[Partition] = (),
    project_name: str | None = None,
) -> List[DomainSummary]:
    """Roll entries up per domain (count and mean importance), in first-seen order.

    When partitions are given, each domain also points at the first artifact
    holding one of its entries.
    """
    scores: Dict[str, List[float]] = {}
    for entry in entries:
        scores.setdefault(entry.domain, []).append(entry.importance_score)

    files: Dict[str, str] = {}
    if project_name is not None:
        for partition in partitions:
            for entry in partition.entries:
                files.setdefault(entry.domain, artifact_name(project_name, partition.name))

    return [
        DomainSummary(
            domain=domain,
            count=len(values),
            avg_importance=statistics.fmean(values),
            file=files.get(domain, ""),
        )
        for domain, values in scores.items()
    ]


def partition_statistics(manifest: Sequence[PartitionInfo], total_bytes: int = 0) -> PartitionStatistics:
    if not manifest:
        return PartitionStatistics()
    largest = max(manifest, key=lambda info: info.count)
    smallest = min(manifest, key=lambda info: info.count)
    return PartitionStatistics(
        largest_name=largest.name,
        largest_count=largest.count,
        smallest_name=smallest.name,
        smallest_count=smallest.count,
        avg_entries_per_partition=round(sum(info.count for info in manifest) / len(manifest), 2),
        total_size_kb=round(total_bytes / 1024),
    )
