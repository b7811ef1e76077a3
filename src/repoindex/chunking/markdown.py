"""Header-based chunking for Markdown documents.

Sections are delimited by ATX headers (``#`` to ``######``). Sections below
``min_tokens`` are folded into their predecessor instead of becoming near-empty
chunks, and runaway sections above ``max_tokens`` are packed into sentence
runs while they are still being accumulated.
"""

from __future__ import annotations

import re
from typing import List, Optional

from repoindex.models import Chunk
from repoindex.utils.text import estimate_tokens, split_sentences

DEFAULT_TITLE = "Document"
SECTION_KIND = "section"

_HEADER_RE = re.compile(r"^(#{1,6})\s+(.+)$")


def _append(chunk: Chunk, text: str, end_line: int) -> None:
    chunk.text = f"{chunk.text}\n\n{text}"
    chunk.end_line = end_line


def chunk_markdown(text: str, *, min_tokens: int = 150, max_tokens: int = 800) -> List[Chunk]:
    """Split a Markdown body (front matter already removed) into sections.

    A leading section too small to stand alone has no predecessor to merge
    into, so it is held back and prepended to the first emitted chunk at the
    end. A document never yields zero chunks when it has any text.
    """
    lines = text.split("\n")
    chunks: List[Chunk] = []
    held: Optional[Chunk] = None

    current: List[str] = []
    title: Optional[str] = None
    level = 0
    start_line = 0

    def close(end_line: int) -> None:
        nonlocal held
        body = "\n".join(current).strip()
        if not body:
            return
        if estimate_tokens(body) >= min_tokens:
            chunks.append(Chunk(body, title or DEFAULT_TITLE, SECTION_KIND, level, start_line, end_line))
        elif chunks:
            _append(chunks[-1], body, end_line)
        elif held is None:
            held = Chunk(body, title or DEFAULT_TITLE, SECTION_KIND, level, start_line, end_line)
        else:
            _append(held, body, end_line)

    for i, line in enumerate(lines):
        header = _HEADER_RE.match(line)
        if header:
            if current:
                close(i - 1)
            current = [line]
            title = header.group(2).strip()
            level = len(header.group(1))
            start_line = i
            continue

        current.append(line)
        body = "\n".join(current).strip()
        if estimate_tokens(body) <= max_tokens:
            continue

        packed: List[str] = []
        for sentence in split_sentences(body):
            candidate = " ".join(packed + [sentence])
            if estimate_tokens(candidate) > max_tokens and packed:
                chunks.append(
                    Chunk(" ".join(packed), title or DEFAULT_TITLE, SECTION_KIND, level, start_line, i)
                )
                start_line = i
                packed = [sentence]
            else:
                packed.append(sentence)
        current = packed

    end_line = len(lines) - 1
    body = "\n".join(current).strip()
    if body:
        if estimate_tokens(body) >= min_tokens or (not chunks and held is None):
            chunks.append(Chunk(body, title or DEFAULT_TITLE, SECTION_KIND, level, start_line, end_line))
        elif chunks:
            _append(chunks[-1], body, end_line)
        else:
            _append(held, body, end_line)
            chunks.append(held)
            held = None

    if held is not None:
        if chunks:
            first = chunks[0]
            first.text = f"{held.text}\n\n{first.text}"
            first.start_line = held.start_line
        else:
            chunks.append(held)

    return chunks
