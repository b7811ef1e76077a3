"""Turn a source file into scored index entries."""

from __future__ import annotations

import hashlib
import re
from pathlib import PurePosixPath
from typing import Dict, List, Optional

from repoindex.chunking.code import DECLARATION_KINDS, chunk_code
from repoindex.chunking.markdown import DEFAULT_TITLE, chunk_markdown
from repoindex.index.scoring import score_entry
from repoindex.metadata.domain import extract_domain
from repoindex.metadata.freshness import MIN_FRESHNESS, FileFreshness
from repoindex.metadata.tags import extract_tags
from repoindex.models import Chunk, IndexEntry, Provenance, SourceUnit
from repoindex.reporting import IndexReporter, LoggingReporter
from repoindex.utils.files import (
    CONFIG_EXTENSIONS,
    DOC_EXTENSIONS,
    IMPORTANT_CONFIGS,
    SOURCE_CODE_EXTENSIONS,
    compute_fingerprint,
)
from repoindex.utils.text import (
    estimate_tokens,
    extract_frontmatter,
    generate_mini_summary,
    improve_title,
    truncate_summary,
)

MIN_ENTRY_TOKENS = 50
MAX_ENTRY_TOKENS = 900
MIN_SUMMARY_TOKENS = 15
MAX_CHUNKS_PER_FILE: Dict[str, int] = {
    ".md": 10,
    ".mdx": 10,
    ".ts": 5,
    ".tsx": 5,
    ".js": 5,
    ".jsx": 5,
    ".json": 1,
    ".yaml": 1,
    ".yml": 1,
}
_UNSAFE_ID_CHARS = re.compile(r"[^a-zA-Z0-9\-_]")


def make_entry_id(relative_path: str, ordinal: int, *, path_scoped: bool = False) -> str:
    """Build ``doc-<stem>#cNN`` for the ``ordinal``-th (0-based) chunk of a file.

    The default form only looks at the file's basename, so equal basenames in
    different directories collide. ``path_scoped`` appends a short hash of the
    relative path to keep ids unique across the tree.
    """
    posix_path = relative_path.replace("\\", "/")
    stem = _UNSAFE_ID_CHARS.sub("-", PurePosixPath(posix_path).stem).lower()
    if path_scoped:
        stem = f"{stem}-{hashlib.sha1(posix_path.encode('utf-8')).hexdigest()[:8]}"
    return f"doc-{stem}#c{ordinal + 1:02d}"


def _prioritize_declarations(chunks: List[Chunk], limit: int) -> List[Chunk]:
    if len(chunks) <= limit:
        return chunks
    declarations = [chunk for chunk in chunks if chunk.kind in DECLARATION_KINDS]
    others = [chunk for chunk in chunks if chunk.kind not in DECLARATION_KINDS]
    return (declarations + others)[:limit]


class EntryBuilder:
    """Chunk a source unit by kind and build one entry per surviving chunk."""

    def __init__(self, *, path_scoped_ids: bool = False, reporter: Optional[IndexReporter] = None) -> None:
        self.path_scoped_ids = path_scoped_ids
        self.reporter = reporter or LoggingReporter()

    def build(self, unit: SourceUnit, freshness: FileFreshness) -> List[IndexEntry]:
        extension = unit.extension.lower()
        if freshness.score < MIN_FRESHNESS:
            self.reporter.entry_filtered(
                make_entry_id(unit.relative_path, 0, path_scoped=self.path_scoped_ids),
                f"freshness {freshness.score:.2f} below {MIN_FRESHNESS}",
            )
            return []

        if extension in DOC_EXTENSIONS:
            return self._build_document(unit, freshness)
        if extension in SOURCE_CODE_EXTENSIONS:
            return self._build_code(unit, freshness)
        if extension in CONFIG_EXTENSIONS:
            return self._build_config(unit, freshness)
        return []

    def _entry_id(self, unit: SourceUnit, ordinal: int) -> str:
        return make_entry_id(unit.relative_path, ordinal, path_scoped=self.path_scoped_ids)

    def _within_window(self, entry_id: str, chunk: Chunk) -> bool:
        tokens = estimate_tokens(chunk.text)
        if MIN_ENTRY_TOKENS <= tokens <= MAX_ENTRY_TOKENS:
            return True
        self.reporter.entry_filtered(
            entry_id, f"{tokens} tokens outside [{MIN_ENTRY_TOKENS}, {MAX_ENTRY_TOKENS}]"
        )
        return False

    def _build_document(self, unit: SourceUnit, freshness: FileFreshness) -> List[IndexEntry]:
        frontmatter, body = extract_frontmatter(unit.text)
        if not body.strip():
            return []

        chunks = chunk_markdown(body)[: MAX_CHUNKS_PER_FILE[unit.extension.lower()]]
        domain = extract_domain(unit.relative_path)
        entries: List[IndexEntry] = []
        for ordinal, chunk in enumerate(chunks):
            entry_id = self._entry_id(unit, ordinal)
            if not self._within_window(entry_id, chunk):
                continue

            chunk_title = chunk.title or DEFAULT_TITLE
            summary = generate_mini_summary(chunk.text, chunk_title)
            if estimate_tokens(summary) < MIN_SUMMARY_TOKENS:
                extended = generate_mini_summary(f"{chunk.text} {chunk_title}", chunk_title)
                if estimate_tokens(extended) >= MIN_SUMMARY_TOKENS:
                    summary = extended
                else:
                    summary = f"{chunk_title} ({unit.path.name}): {summary}"
            summary = truncate_summary(summary)

            title = improve_title(
                chunk.title, chunk.text, unit.relative_path, summary, fallback=frontmatter.get("title")
            )
            entry = IndexEntry(
                id=entry_id,
                title=title,
                domain=domain,
                source=unit.relative_path,
                chunk_id=entry_id,
                mini_summary=summary,
                tags=tuple(extract_tags(f"{chunk.text} {unit.relative_path}", unit.relative_path)),
                timestamp=freshness.timestamp,
                freshness_score=freshness.score,
                provenance=Provenance(
                    source_hash=compute_fingerprint(chunk.text),
                    author=frontmatter.get("author") or None,
                ),
            )
            entries.append(score_entry(entry, unit.relative_path, chunk.text))
        return entries

    def _build_code(self, unit: SourceUnit, freshness: FileFreshness) -> List[IndexEntry]:
        file_name = unit.path.name
        chunks = _prioritize_declarations(
            chunk_code(unit.text, file_name), MAX_CHUNKS_PER_FILE[unit.extension.lower()]
        )
        domain = extract_domain(unit.relative_path)
        file_tags = set(extract_tags(f"{unit.text} {unit.relative_path}", unit.relative_path))
        entries: List[IndexEntry] = []
        for ordinal, chunk in enumerate(chunks):
            entry_id = self._entry_id(unit, ordinal)
            if not self._within_window(entry_id, chunk):
                continue

            chunk_title = chunk.title or file_name
            if chunk_title.startswith(f"{chunk.kind} "):
                title = chunk_title
            else:
                title = f"{chunk.kind}: {chunk_title}"
            summary = generate_mini_summary(chunk.text, title)
            if estimate_tokens(summary) < MIN_SUMMARY_TOKENS:
                summary = f"{chunk.kind} {chunk_title} in {file_name}"

            entry = IndexEntry(
                id=entry_id,
                title=title,
                domain=domain,
                source=unit.relative_path,
                chunk_id=entry_id,
                mini_summary=truncate_summary(summary),
                tags=tuple(sorted(file_tags | {"code", chunk.kind})),
                timestamp=freshness.timestamp,
                freshness_score=freshness.score,
                provenance=Provenance(source_hash=compute_fingerprint(chunk.text)),
            )
            entries.append(score_entry(entry, unit.relative_path, chunk.text))
        return entries

    def _build_config(self, unit: SourceUnit, freshness: FileFreshness) -> List[IndexEntry]:
        file_name = unit.path.name
        if file_name not in IMPORTANT_CONFIGS:
            return []

        entry_id = self._entry_id(unit, 0)
        tags = set(extract_tags(f"{unit.text} {unit.relative_path}", unit.relative_path))
        entry = IndexEntry(
            id=entry_id,
            title=file_name,
            domain=extract_domain(unit.relative_path),
            source=unit.relative_path,
            chunk_id=entry_id,
            mini_summary=f"Configuration file: {file_name}",
            tags=tuple(sorted(tags | {"config"})),
            timestamp=freshness.timestamp,
            freshness_score=freshness.score,
            provenance=Provenance(source_hash=compute_fingerprint(unit.text)),
        )
        return [score_entry(entry, unit.relative_path, unit.text)]
