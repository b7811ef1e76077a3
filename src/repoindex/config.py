"""Application configuration defaults."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 600
DEFAULT_PARTITION_STRATEGY = "domain"
PARTITION_STRATEGIES = ("domain", "importance", "none")


def detect_output_dir(root_dir: Path) -> Path:
    """Pick the output directory for a tree: ``docs/index`` if ``docs`` exists."""
    if (root_dir / "docs").exists():
        return root_dir / "docs" / "index"
    return root_dir / "index"


def detect_project_name(root_dir: Path) -> str:
    """Derive the project name from ``package.json``, falling back to the folder name."""
    package_json = root_dir / "package.json"
    if package_json.exists():
        try:
            name = json.loads(package_json.read_text(encoding="utf-8")).get("name")
        except (OSError, ValueError, AttributeError) as exc:
            LOGGER.debug("Could not read project name from %s: %s", package_json, exc)
            name = None
        if name:
            # Drop any npm scope such as "@acme/"
            name = re.sub(r"^@[^/]+/", "", name)
            return re.sub(r"[^a-z0-9-]", "-", name, flags=re.IGNORECASE)

    return root_dir.name or "index"


@dataclass(slots=True)
class AppConfig:
    root_dir: Path | None = None
    output_dir: Path | None = None
    project_name: str | None = None
    max_entries: int = DEFAULT_MAX_ENTRIES
    partition_by: str = DEFAULT_PARTITION_STRATEGY
    path_scoped_ids: bool = False

    def __post_init__(self) -> None:
        if self.root_dir is None:
            self.root_dir = Path.cwd()
        self.root_dir = Path(self.root_dir)
        if self.max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {self.max_entries}")
        if self.partition_by not in PARTITION_STRATEGIES:
            raise ValueError(
                f"Unknown partition strategy {self.partition_by!r}, "
                f"expected one of {', '.join(PARTITION_STRATEGIES)}"
            )

    def resolve_output_dir(self) -> Path:
        if self.output_dir is None:
            self.output_dir = detect_output_dir(self.root_dir)
        if Path(self.output_dir).is_absolute():
            return Path(self.output_dir)
        return self.root_dir / self.output_dir

    def resolve_project_name(self) -> str:
        if self.project_name is None:
            self.project_name = detect_project_name(self.root_dir)
        return self.project_name

    def main_index_path(self) -> Path:
        return self.resolve_output_dir() / f"{self.resolve_project_name()}-index.yaml"
