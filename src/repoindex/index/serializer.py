"""Restricted YAML-like index format: writer and parser.

The format is deliberately narrow so it can be emitted and read back without
a YAML library: one ``key: value`` pair per line in a fixed key order,
JSON-escaped double-quoted strings, bracketed string arrays and a single
inline brace object for provenance.
"""

from __future__ import annotations

import json
import logging
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional, Sequence

from repoindex.index.partition import (
    DomainSummary,
    Partition,
    PartitionStatistics,
)
from repoindex.models import (
    ENTRY_STATUS,
    ENTRY_VERSION,
    IndexArtifact,
    IndexEntry,
    InlineArtifact,
    ManifestArtifact,
    PartitionInfo,
    Provenance,
)

LOGGER = logging.getLogger(__name__)

ENTRY_KEYS = (
    "id",
    "title",
    "domain",
    "source",
    "chunk_id",
    "mini_summary",
    "tags",
    "timestamp",
    "version",
    "status",
    "freshness_score",
    "importance_score",
    "provenance",
)
REQUIRED_KEYS = ("id", "title", "domain", "source")
SUMMARY_LIMIT = 50
SUMMARY_TAG_LIMIT = 3


class IndexFormatError(ValueError):
    """Raised when index text does not follow the expected format."""


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _array(values: Iterable[str]) -> str:
    return "[" + ", ".join(_quote(value) for value in values) + "]"


def _header(project_name: str, label: str) -> List[str]:
    return [
        f"# {project_name} - {label}",
        "# Generated automatically - do not edit manually",
        "# Regenerate with: repoindex generate",
        "",
    ]


def render_entry(entry: IndexEntry, indent: int = 2) -> List[str]:
    pad = " " * indent
    provenance = f"source_hash: {_quote(entry.provenance.source_hash)}"
    if entry.provenance.author:
        provenance = f"author: {_quote(entry.provenance.author)}, {provenance}"
    return [
        f"{pad}- id: {_quote(entry.id)}",
        f"{pad}  title: {_quote(entry.title)}",
        f"{pad}  domain: {_quote(entry.domain)}",
        f"{pad}  source: {_quote(entry.source)}",
        f"{pad}  chunk_id: {_quote(entry.chunk_id)}",
        f"{pad}  mini_summary: {_quote(entry.mini_summary)}",
        f"{pad}  tags: {_array(entry.tags)}",
        f"{pad}  timestamp: {_quote(entry.timestamp)}",
        f"{pad}  version: {_quote(entry.version)}",
        f"{pad}  status: {_quote(entry.status)}",
        f"{pad}  freshness_score: {float(entry.freshness_score)!r}",
        f"{pad}  importance_score: {float(entry.importance_score)!r}",
        f"{pad}  provenance: {{{provenance}}}",
    ]


def render_entries(entries: Sequence[IndexEntry], project_name: str) -> str:
    """Render an entry list, ordered by domain then newest timestamp first."""
    ordered = sorted(entries, key=lambda entry: entry.timestamp, reverse=True)
    ordered.sort(key=lambda entry: entry.domain)
    lines = _header(project_name, "Repository Index")
    lines.append("entries:")
    for entry in ordered:
        lines.extend(render_entry(entry))
    return "\n".join(lines) + "\n"


def render_main_index(
    *,
    project_name: str,
    strategy: str,
    entries: Sequence[IndexEntry],
    partitions: Sequence[Partition],
    manifest: Sequence[PartitionInfo],
    domains: Sequence[DomainSummary],
    statistics: PartitionStatistics,
    generated_at: str,
) -> str:
    """Render the manifest artifact that points at every partition file.

    ``entries`` must already be prioritized: the summary view lists the first
    :data:`SUMMARY_LIMIT` of them.
    """
    membership: Dict[IndexEntry, str] = {}
    for partition in partitions:
        for entry in partition.entries:
            membership.setdefault(entry, partition.name)

    lines = _header(project_name, "Repository Index (Main)")
    lines.extend(
        [
            "metadata:",
            f"  project: {_quote(project_name)}",
            f"  total_entries: {len(entries)}",
            f"  partition_count: {len(manifest)}",
            f"  generated_at: {_quote(generated_at)}",
            f"  partition_strategy: {_quote(strategy)}",
            "",
            "statistics:",
            f"  largest_partition: {{name: {_quote(statistics.largest_name)}, entries: {statistics.largest_count}}}",
            f"  smallest_partition: {{name: {_quote(statistics.smallest_name)}, entries: {statistics.smallest_count}}}",
            f"  avg_entries_per_partition: {statistics.avg_entries_per_partition}",
            f"  total_size_kb: {statistics.total_size_kb}",
            "",
            "partitions:",
        ]
    )
    for info in manifest:
        lines.append(f"  - name: {_quote(info.name)}")
        lines.append(f"    file: {_quote(info.file)}")
        lines.append(f"    entry_count: {info.count}")

    lines.extend(["", "domain_index:"])
    for summary in domains:
        lines.append(
            f"  {summary.domain}: {{file: {_quote(summary.file)}, count: {summary.count}, "
            f"avg_importance: {summary.avg_importance:.2f}}}"
        )

    lines.extend(["", f"# Top {SUMMARY_LIMIT} most important entries (summary)", "summary_entries:"])
    for entry in entries[:SUMMARY_LIMIT]:
        lines.extend(
            [
                f"  - id: {_quote(entry.id)}",
                f"    title: {_quote(entry.title)}",
                f"    domain: {_quote(entry.domain)}",
                f"    importance_score: {entry.importance_score:.2f}",
                f"    source: {_quote(PurePosixPath(entry.source).name)}",
                f"    top_tags: {_array(entry.tags[:SUMMARY_TAG_LIMIT])}",
                f"    partition: {_quote(membership.get(entry, ''))}",
            ]
        )
    return "\n".join(lines) + "\n"


def _sections(text: str) -> Dict[str, List[str]]:
    """Group indented lines under their top-level ``name:`` heading."""
    sections: Dict[str, List[str]] = {}
    current: Optional[str] = None
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if not line[0].isspace():
            name, sep, rest = stripped.partition(":")
            current = name if sep and not rest.strip() else None
            if current is not None:
                sections[current] = []
            continue
        if current is not None:
            sections[current].append(stripped)
    return sections


def _split_items(content: str) -> List[str]:
    """Split on commas that are outside quotes, honouring backslash escapes."""
    items: List[str] = []
    buffer: List[str] = []
    quote: Optional[str] = None
    escaped = False
    for char in content:
        if escaped:
            buffer.append(char)
            escaped = False
        elif quote:
            buffer.append(char)
            if char == "\\":
                escaped = True
            elif char == quote:
                quote = None
        elif char in "\"'":
            quote = char
            buffer.append(char)
        elif char == ",":
            items.append("".join(buffer).strip())
            buffer = []
        else:
            buffer.append(char)
    if quote:
        raise IndexFormatError(f"Unterminated quote in {content!r}")
    tail = "".join(buffer).strip()
    if tail or items:
        items.append(tail)
    return items


def parse_scalar(value: str) -> str:
    value = value.strip()
    if value.startswith('"'):
        try:
            parsed = json.loads(value)
        except ValueError as exc:
            raise IndexFormatError(f"Malformed quoted value: {value}") from exc
        if not isinstance(parsed, str):
            raise IndexFormatError(f"Expected a string, got {value}")
        return parsed
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1].replace("\\'", "'")
    return value


def parse_array(value: str) -> List[str]:
    value = value.strip()
    if not (value.startswith("[") and value.endswith("]")):
        raise IndexFormatError(f"Expected a bracketed array, got {value}")
    return [parse_scalar(item) for item in _split_items(value[1:-1]) if item]


def parse_inline_object(value: str) -> Dict[str, str]:
    value = value.strip()
    if not (value.startswith("{") and value.endswith("}")):
        raise IndexFormatError(f"Expected an inline object, got {value}")
    result: Dict[str, str] = {}
    for item in _split_items(value[1:-1]):
        if not item:
            continue
        key, sep, raw = item.partition(":")
        if not sep:
            raise IndexFormatError(f"Malformed object member: {item}")
        result[key.strip()] = parse_scalar(raw)
    return result


def _parse_score(raw: Optional[str], key: str) -> float:
    if raw is None:
        return 0.0
    try:
        return float(raw)
    except ValueError as exc:
        raise IndexFormatError(f"Invalid {key}: {raw}") from exc


def _records(lines: Sequence[str]) -> List[Dict[str, str]]:
    """Collect ``- key: value`` list items into raw field dictionaries."""
    records: List[Dict[str, str]] = []
    for line in lines:
        if line.startswith("- "):
            records.append({})
            line = line[2:].strip()
        if not records:
            raise IndexFormatError(f"Unexpected line outside a list item: {line}")
        key, sep, value = line.partition(":")
        if not sep:
            raise IndexFormatError(f"Expected 'key: value', got {line}")
        records[-1][key.strip()] = value.strip()
    return records


def _build_entry(fields: Dict[str, str]) -> IndexEntry:
    values = {key: parse_scalar(fields[key]) for key in REQUIRED_KEYS if key in fields}
    missing = [key for key in REQUIRED_KEYS if not values.get(key)]
    if missing:
        raise IndexFormatError(
            f"Invalid entry: missing required fields {', '.join(missing)} "
            f"(id: {values.get('id')}, title: {values.get('title')})"
        )

    unknown = set(fields) - set(ENTRY_KEYS)
    if unknown:
        LOGGER.debug("Ignoring unknown entry keys: %s", ", ".join(sorted(unknown)))

    provenance = parse_inline_object(fields["provenance"]) if "provenance" in fields else {}
    entry_id = values["id"]
    return IndexEntry(
        id=entry_id,
        title=values["title"],
        domain=values["domain"],
        source=values["source"],
        chunk_id=parse_scalar(fields["chunk_id"]) if "chunk_id" in fields else entry_id,
        mini_summary=parse_scalar(fields.get("mini_summary", '""')),
        tags=tuple(parse_array(fields["tags"])) if "tags" in fields else (),
        timestamp=parse_scalar(fields.get("timestamp", '""')),
        version=parse_scalar(fields.get("version", _quote(ENTRY_VERSION))),
        status=parse_scalar(fields.get("status", _quote(ENTRY_STATUS))),
        freshness_score=_parse_score(fields.get("freshness_score"), "freshness_score"),
        importance_score=_parse_score(fields.get("importance_score"), "importance_score"),
        provenance=Provenance(
            source_hash=provenance.get("source_hash", ""),
            author=provenance.get("author"),
        ),
    )


def _build_partition_info(fields: Dict[str, str]) -> PartitionInfo:
    if "file" not in fields:
        raise IndexFormatError(f"Partition without a file reference: {fields}")
    try:
        count = int(fields.get("entry_count", "0"))
    except ValueError as exc:
        raise IndexFormatError(f"Invalid entry_count: {fields['entry_count']}") from exc
    return PartitionInfo(
        name=parse_scalar(fields.get("name", '""')),
        file=parse_scalar(fields["file"]),
        count=count,
    )


def parse_artifact(text: str) -> IndexArtifact:
    """Classify and parse artifact text as a manifest or an inline entry list."""
    sections = _sections(text)
    if "partitions" in sections:
        return ManifestArtifact(
            tuple(_build_partition_info(fields) for fields in _records(sections["partitions"]))
        )
    if "entries" in sections:
        return InlineArtifact(tuple(_build_entry(fields) for fields in _records(sections["entries"])))
    raise IndexFormatError("Invalid index format: no 'entries:' or 'partitions:' section found")
