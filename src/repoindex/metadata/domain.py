"""Domain classification from a file's relative path."""

from __future__ import annotations

from typing import List

FALLBACK_DOMAIN = "core"

SOURCE_ROOTS = ("src", "packages", "lib", "organs", "apps", "components")
DOCS_ROOT = "docs"
DOCS_NON_DOMAINS = frozenset({"index", "images", "assets", "static"})
TEST_MARKERS = frozenset({"tests", "test", "__tests__", "e2e", "evaluations"})
COMMON_DOMAINS = (
    "api",
    "routes",
    "components",
    "hooks",
    "utils",
    "services",
    "models",
    "types",
    "config",
    "scripts",
)
SKIP_FOLDERS = frozenset({"node_modules", ".git", "dist", "build", ".next", ".nuxt", "coverage"})


def _segments(path: str) -> List[str]:
    return [part for part in path.replace("\\", "/").split("/") if part]


def extract_domain(path: str) -> str:
    """Classify ``path`` into a coarse domain; the first rule that applies wins."""
    parts = _segments(path)

    for i, part in enumerate(parts[:-1]):
        if part in SOURCE_ROOTS and "." not in parts[i + 1]:
            return parts[i + 1]

    if DOCS_ROOT in parts:
        docs_index = parts.index(DOCS_ROOT)
        # Only a directory below docs names a domain, never the file itself
        if docs_index + 1 < len(parts) - 1 and parts[docs_index + 1] not in DOCS_NON_DOMAINS:
            return parts[docs_index + 1]
        return DOCS_ROOT

    if any(part in TEST_MARKERS for part in parts[:-1]):
        return "testing"

    for part in parts:
        if part.lower() in COMMON_DOMAINS:
            return part.lower()

    for part in reversed(parts):
        if part not in SKIP_FOLDERS and "." not in part:
            return part

    return parts[0] if parts else FALLBACK_DOMAIN
