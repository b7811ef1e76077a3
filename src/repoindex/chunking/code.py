"""Declaration-based chunking for JavaScript/TypeScript sources.

Boundaries are found with line-local patterns and a running brace-depth
counter, not a grammar: a declaration only opens a new chunk when the brace
depth before its line is zero, so anything nested inside a body stays with
its parent.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

from repoindex.models import Chunk
from repoindex.utils.text import estimate_tokens

DECLARATION_KINDS = ("function", "class", "interface", "type")

BOUNDARY_PATTERNS = (
    ("function", re.compile(r"^(?:export\s+)?(?:async\s+)?function\s+(\w+)")),
    ("class", re.compile(r"^(?:export\s+)?class\s+(\w+)")),
    ("interface", re.compile(r"^(?:export\s+)?interface\s+(\w+)")),
    ("type", re.compile(r"^(?:export\s+)?type\s+(\w+)")),
)
EXPORT_PATTERN = re.compile(r"^export\s+(?:const|let|var)\s+(\w+)")


def _match_boundary(stripped: str, in_body: bool) -> Optional[Tuple[str, str]]:
    for kind, pattern in BOUNDARY_PATTERNS:
        match = pattern.match(stripped)
        if match:
            return kind, match.group(1)
    if not in_body:
        match = EXPORT_PATTERN.match(stripped)
        if match:
            return "export", match.group(1)
    return None


def _find_split(lines: Sequence[str], min_prefix_tokens: int) -> int:
    """Return the earliest index after a blank/comment line whose prefix is big enough, or 0."""
    for idx in range(1, len(lines)):
        previous = lines[idx - 1].strip()
        if previous and not previous.startswith("//"):
            continue
        if estimate_tokens("\n".join(lines[:idx])) >= min_prefix_tokens:
            return idx
    return 0


def chunk_code(
    text: str,
    file_name: str,
    *,
    min_tokens: int = 50,
    max_tokens: int = 800,
    split_min_tokens: int = 150,
) -> List[Chunk]:
    """Split source text into function/class/interface/type/export chunks.

    Content before the first declaration is titled with ``file_name``.
    Chunks under ``min_tokens`` are dropped when a boundary closes them.
    """
    lines = text.split("\n")
    chunks: List[Chunk] = []

    current: List[str] = []
    title = file_name
    kind = "export"
    start_line = 0
    depth = 0
    in_body = False

    def flush(end_line: int) -> None:
        if current:
            body = "\n".join(current)
            if estimate_tokens(body) >= min_tokens:
                chunks.append(Chunk(body, title, kind, 0, start_line, end_line))

    for i, line in enumerate(lines):
        boundary = _match_boundary(line.strip(), in_body) if depth == 0 else None
        depth += line.count("{") - line.count("}")

        if boundary:
            flush(i - 1)
            kind, name = boundary
            current = [line]
            title = f"{kind} {name}"
            start_line = i
            in_body = kind in ("function", "class") and depth > 0
            continue

        if not current:
            current = [line]
            title = file_name
            kind = "export"
            start_line = i
            continue

        current.append(line)
        if estimate_tokens("\n".join(current)) > max_tokens:
            split_at = _find_split(current, split_min_tokens)
            if split_at:
                chunks.append(
                    Chunk("\n".join(current[:split_at]), title, kind, 0, start_line, start_line + split_at - 1)
                )
                current = current[split_at:]
                start_line = i - (len(current) - 1)

        if depth == 0:
            in_body = False

    flush(len(lines) - 1)
    return chunks
