"""Text helpers: token estimates, front matter, summaries and titles."""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Dict, List, Optional, Tuple

MAX_MINI_SUMMARY_LENGTH = 200
GENERIC_TITLES = {"Introduction", "Untitled", "Document"}

_FRONTMATTER_RE = re.compile(r"^---\s*\n([\s\S]*?)\n---\s*\n([\s\S]*)$")
_HEADER_LINE_RE = re.compile(r"^(#{1,6})\s+(.+)$", re.MULTILINE)
_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")
_SUMMARY_SPLIT_RE = re.compile(r"[.!?]+\s+")
_LEADING_LABEL_RE = re.compile(r"^(Introduction|Overview|Summary|Abstract):?\s*", re.IGNORECASE)


def estimate_tokens(text: str) -> int:
    """Approximate the size of ``text`` in tokens (four characters per token)."""
    return math.ceil(len(text) / 4)


def split_sentences(text: str) -> List[str]:
    """Split on ``.``, ``!`` or ``?`` followed by whitespace, keeping the punctuation."""
    return [part for part in _SENTENCE_BOUNDARY_RE.split(text) if part]


def extract_frontmatter(content: str) -> Tuple[Dict[str, str], str]:
    """Separate a ``---`` fenced ``key: value`` block from the document body."""
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return {}, content

    frontmatter: Dict[str, str] = {}
    for line in match.group(1).split("\n"):
        key, sep, value = line.partition(":")
        if sep and key.strip():
            frontmatter[key.strip()] = re.sub(r"^[\"']|[\"']$", "", value.strip())
    return frontmatter, match.group(2)


def strip_markup(text: str) -> str:
    """Remove the Markdown syntax that would pollute a plain-text summary."""
    text = re.sub(r"```[\s\S]*?```", "", text)
    text = re.sub(r"^#{1,6}\s+", "", text, flags=re.MULTILINE)
    text = re.sub(r"\[([^\]]+)\]\([^)]+\)", r"\1", text)
    text = re.sub(r"`([^`]+)`", r"\1", text)
    text = re.sub(r"\*\*([^*]+)\*\*", r"\1", text)
    text = re.sub(r"\*([^*]+)\*", r"\1", text)
    return text.strip()


def generate_mini_summary(text: str, title: str) -> str:
    """Build a short summary from the first two meaningful sentences of ``text``."""
    clean = strip_markup(text)
    sentences = [s for s in _SUMMARY_SPLIT_RE.split(clean) if len(s) >= 20]
    if not sentences:
        return f"{title}: {clean[:100]}..."

    summary = ". ".join(sentences[:2])
    words = summary.split()
    if len(words) > 50:
        return " ".join(words[:50]) + "..."
    return summary + ("..." if len(sentences) > 2 else "")


def truncate_summary(summary: str, limit: int = MAX_MINI_SUMMARY_LENGTH) -> str:
    if len(summary) <= limit:
        return summary
    return summary[: limit - 3] + "..."


def improve_title(
    title: Optional[str],
    text: str,
    relative_path: str,
    mini_summary: Optional[str] = None,
    fallback: Optional[str] = None,
) -> str:
    """Replace a missing or generic chunk title with something more descriptive."""
    if title and title not in GENERIC_TITLES:
        return title

    header = _HEADER_LINE_RE.search(text)
    if header:
        header_title = header.group(2).strip()
        if header_title and header_title != "Introduction":
            return header_title

    if mini_summary and len(mini_summary) > 20:
        phrase = " ".join(mini_summary.split()[:10])
        phrase = _LEADING_LABEL_RE.sub("", phrase).strip()
        if 10 < len(phrase) < 60:
            return phrase

    if fallback:
        return fallback

    stem = PurePosixPath(relative_path.replace("\\", "/")).stem
    return stem or "Document"


def to_iso(timestamp: float) -> str:
    """Render a Unix timestamp as ISO-8601 UTC with millisecond precision."""
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
