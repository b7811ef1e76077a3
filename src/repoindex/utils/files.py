"""Utility helpers for working with files."""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path
from typing import Collection, Iterator

LOGGER = logging.getLogger(__name__)

DOC_EXTENSIONS = frozenset({".md", ".mdx"})
SOURCE_CODE_EXTENSIONS = frozenset({".ts", ".tsx", ".js", ".jsx"})
CONFIG_EXTENSIONS = frozenset({".json", ".yaml", ".yml"})
INDEXABLE_EXTENSIONS = DOC_EXTENSIONS | SOURCE_CODE_EXTENSIONS | CONFIG_EXTENSIONS

EXCLUDE_DIRS = frozenset(
    {"node_modules", "dist", "build", ".git", ".next", "coverage", ".turbo", ".cache", "tmp", "temp"}
)
EXCLUDE_FILES = frozenset({"package-lock.json", "yarn.lock", "pnpm-lock.yaml", ".env", ".env.local"})
IMPORTANT_CONFIGS = frozenset({"package.json", "tsconfig.json", "docker-compose.yml", "railway.json"})


def iter_indexable_paths(root: Path, *, skip: Collection[Path] = ()) -> Iterator[Path]:
    """Yield indexable files under ``root`` in sorted order.

    Hidden and excluded directories are not descended into, nor is any
    directory listed in ``skip`` (typically the index output directory).
    Symlinked directories are not followed. Unreadable directories are
    logged and skipped.
    """
    skipped = {Path(os.path.abspath(p)) for p in skip}
    yield from _walk(Path(root), skipped)


def _walk(directory: Path, skipped: set[Path]) -> Iterator[Path]:
    try:
        children = sorted(directory.iterdir(), key=lambda child: child.name)
    except OSError as exc:
        LOGGER.warning("Could not read directory %s: %s", directory, exc)
        return

    for child in children:
        if child.is_dir():
            if child.name in EXCLUDE_DIRS or child.name.startswith("."):
                continue
            if child.is_symlink():
                LOGGER.debug("Skipping symlinked directory %s", child)
                continue
            if Path(os.path.abspath(child)) in skipped:
                continue
            yield from _walk(child, skipped)
        elif child.is_file():
            if child.name in EXCLUDE_FILES:
                continue
            extension = child.suffix.lower()
            if extension in CONFIG_EXTENSIONS and child.name not in IMPORTANT_CONFIGS:
                continue
            if extension in INDEXABLE_EXTENSIONS:
                yield child


def compute_fingerprint(text: str) -> str:
    """Compute the SHA256 fingerprint of chunk text, prefixed with the algorithm."""
    return "sha256:" + hashlib.sha256(text.encode("utf-8")).hexdigest()
