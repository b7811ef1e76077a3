"""Freshness scoring from the last recorded revision of a file.

The revision history is an external collaborator. :class:`GitRevisionHistory`
asks ``git log`` for the last commit touching a path; anything implementing
:class:`RevisionHistory` can stand in for it (tests use fixed timestamps).
"""

from __future__ import annotations

import logging
import math
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from repoindex.utils.text import to_iso

LOGGER = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60
DECAY_MIDPOINT_DAYS = 45.0
DECAY_STEEPNESS_DAYS = 9.0
NEUTRAL_FRESHNESS = 0.5
MIN_FRESHNESS = 0.2


class RevisionHistoryError(RuntimeError):
    """The revision-history query could not be completed."""


@dataclass(frozen=True, slots=True)
class Revision:
    unix_time: float
    iso_time: str


class RevisionHistory(Protocol):
    def last_revision(self, path: Path) -> Optional[Revision]:
        """Return the last recorded change of ``path``, or None when it has none."""


class GitRevisionHistory:
    """Read last-commit times from a git working tree."""

    def __init__(self, root_dir: Path, *, executable: str = "git") -> None:
        self.root_dir = Path(root_dir)
        self.executable = executable

    def last_revision(self, path: Path) -> Optional[Revision]:
        try:
            result = subprocess.run(
                [self.executable, "log", "-1", "--format=%ct", "--", str(path)],
                cwd=self.root_dir,
                capture_output=True,
                text=True,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError) as exc:
            raise RevisionHistoryError(f"git log failed for {path}: {exc}") from exc

        output = result.stdout.strip()
        if not output:
            return None
        try:
            commit_time = int(output)
        except ValueError as exc:
            raise RevisionHistoryError(f"Unexpected git log output for {path}: {output!r}") from exc
        return Revision(unix_time=float(commit_time), iso_time=to_iso(commit_time))


@dataclass(frozen=True, slots=True)
class FileFreshness:
    timestamp: str
    score: float


def freshness_score(days: float) -> float:
    """Logistic decay: about 1 for fresh files, 0.5 at 45 days, towards 0 after."""
    try:
        score = 1.0 / (1.0 + math.exp((days - DECAY_MIDPOINT_DAYS) / DECAY_STEEPNESS_DAYS))
    except OverflowError:
        score = 0.0
    return max(0.0, min(1.0, score))


def _filesystem_time(path: Path, now: float) -> float:
    try:
        return path.stat().st_mtime
    except OSError:
        return now


def assess_freshness(path: Path, history: RevisionHistory, *, now: float) -> FileFreshness:
    """Compute the timestamp and freshness score of ``path`` as of ``now``.

    Files without recorded history fall back to their modification time (or
    ``now``). A failing history query yields the neutral score instead.
    """
    try:
        revision = history.last_revision(path)
    except RevisionHistoryError as exc:
        LOGGER.debug("Revision history unavailable for %s: %s", path, exc)
        return FileFreshness(timestamp=to_iso(_filesystem_time(path, now)), score=NEUTRAL_FRESHNESS)

    if revision is None:
        changed_at = _filesystem_time(path, now)
        timestamp = to_iso(changed_at)
    else:
        changed_at = revision.unix_time
        timestamp = revision.iso_time

    days = (now - changed_at) / SECONDS_PER_DAY
    return FileFreshness(timestamp=timestamp, score=round(freshness_score(days), 4))
