"""Progress observers for the indexing pipeline."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

LOGGER = logging.getLogger(__name__)


class IndexReporter(Protocol):
    """Checkpoints the pipeline announces while it runs."""

    def file_processed(self, path: str, entry_count: int) -> None: ...

    def entry_filtered(self, entry_id: str, reason: str) -> None: ...

    def partition_written(self, name: str, path: Path, count: int) -> None: ...


class LoggingReporter:
    """Default reporter: narrate checkpoints through the standard logger."""

    def file_processed(self, path: str, entry_count: int) -> None:
        LOGGER.debug("Processed %s (%d entries)", path, entry_count)

    def entry_filtered(self, entry_id: str, reason: str) -> None:
        LOGGER.debug("Filtered %s: %s", entry_id, reason)

    def partition_written(self, name: str, path: Path, count: int) -> None:
        LOGGER.info("Wrote partition %s to %s (%d entries)", name, path, count)
