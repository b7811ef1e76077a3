"""Importance scoring.

The score is a fixed sum of capped, independent signals; it is the only
ranking signal of the index, so existing consumers can compare scores across
runs as long as this formula does not change.
"""

from __future__ import annotations

import dataclasses
from pathlib import PurePosixPath

from repoindex.chunking.code import DECLARATION_KINDS
from repoindex.models import IndexEntry
from repoindex.utils.text import estimate_tokens

FRESHNESS_WEIGHT = 0.3

IMPORTANT_DOMAINS = frozenset({"specs", "architecture", "core"})
MEDIUM_DOMAINS = frozenset({"tickets", "ui", "railway"})
CRITICAL_TAGS = frozenset({"architecture", "specs", "api", "state-server", "core"})
IMPORTANT_TAGS = frozenset({"websocket", "chatbot", "server"})
SIZE_BONUS_TOKENS = 100


def filename_weight(file_path: str) -> float:
    name = PurePosixPath(file_path.replace("\\", "/")).name.lower()
    if name == "readme.md" or "index" in name:
        return 0.25
    if "spec" in name or "architecture" in name:
        return 0.20
    return 0.05


def domain_weight(domain: str) -> float:
    if domain in IMPORTANT_DOMAINS:
        return 0.15
    if domain in MEDIUM_DOMAINS:
        return 0.10
    return 0.05


def content_type_weight(entry: IndexEntry) -> float:
    if entry.source.endswith((".md", ".mdx")):
        return 0.15
    if any(tag in DECLARATION_KINDS for tag in entry.tags):
        return 0.12
    return 0.05


def tag_weight(entry: IndexEntry) -> float:
    if any(tag in CRITICAL_TAGS for tag in entry.tags):
        return 0.10
    if any(tag in IMPORTANT_TAGS for tag in entry.tags):
        return 0.05
    return 0.0


def importance_score(entry: IndexEntry, file_path: str, chunk_text: str) -> float:
    score = FRESHNESS_WEIGHT * entry.freshness_score
    score += filename_weight(file_path)
    score += domain_weight(entry.domain)
    score += content_type_weight(entry)
    score += tag_weight(entry)
    if estimate_tokens(chunk_text) > SIZE_BONUS_TOKENS:
        score += 0.05
    return min(1.0, max(0.0, score))


def score_entry(entry: IndexEntry, file_path: str, chunk_text: str) -> IndexEntry:
    """Return a copy of ``entry`` carrying its importance score."""
    score = round(importance_score(entry, file_path, chunk_text), 4)
    return dataclasses.replace(entry, importance_score=score)
