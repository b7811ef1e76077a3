"""FastAPI application exposing a repository index over HTTP."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, List

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from repoindex.config import DEFAULT_MAX_ENTRIES, DEFAULT_PARTITION_STRATEGY, AppConfig
from repoindex.index.indexer import Indexer
from repoindex.index.partition import summarize_domains
from repoindex.index.serializer import IndexFormatError
from repoindex.index.storage import load_index
from repoindex.models import IndexEntry

LOGGER = logging.getLogger(__name__)

MAX_LIMIT = 500

app = FastAPI(title="repoindex API", version="0.1.0")


class GeneratePayload(BaseModel):
    root: str | None = None
    output_dir: str | None = None
    project_name: str | None = None
    max_entries: int = DEFAULT_MAX_ENTRIES
    partition_by: str = DEFAULT_PARTITION_STRATEGY
    path_scoped_ids: bool = False


def _resolve_index_path(index: Path | None) -> Path:
    if index is not None:
        return index
    return AppConfig(root_dir=Path.cwd()).main_index_path()


def _ensure_output_dir(output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)


def _load(index: Path | None) -> List[IndexEntry]:
    resolved = _resolve_index_path(index)
    try:
        return load_index(resolved)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except IndexFormatError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def _entry_payload(entry: IndexEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "title": entry.title,
        "domain": entry.domain,
        "source": entry.source,
        "chunk_id": entry.chunk_id,
        "mini_summary": entry.mini_summary,
        "tags": list(entry.tags),
        "timestamp": entry.timestamp,
        "version": entry.version,
        "status": entry.status,
        "freshness_score": entry.freshness_score,
        "importance_score": entry.importance_score,
        "provenance": {"source_hash": entry.provenance.source_hash, "author": entry.provenance.author},
    }


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.get("/entries")
async def list_entries(
    index: Path | None = None,
    domain: str | None = None,
    tag: str | None = None,
    limit: int = 50,
) -> dict[str, Any]:
    """List index entries in priority order, optionally filtered."""
    entries = _load(index)
    if domain:
        entries = [entry for entry in entries if entry.domain == domain]
    if tag:
        entries = [entry for entry in entries if tag in entry.tags]

    limit = max(1, min(limit, MAX_LIMIT))
    return {"total": len(entries), "entries": [_entry_payload(entry) for entry in entries[:limit]]}


@app.get("/domains")
async def list_domains(index: Path | None = None) -> dict[str, Any]:
    """Per-domain entry counts and mean importance."""
    entries = _load(index)
    return {
        "domains": [
            {"domain": summary.domain, "count": summary.count, "avg_importance": round(summary.avg_importance, 4)}
            for summary in summarize_domains(entries)
        ]
    }


def _run_generate_job(config: AppConfig) -> dict[str, Any]:
    result = Indexer(config).run()
    return {
        "main_path": str(result.main_path),
        "partitions": [{"name": info.name, "file": info.file, "count": info.count} for info in result.manifest],
        "processed": result.stats.processed,
        "failed": result.stats.failed,
        "generated": result.stats.generated,
        "kept": result.stats.kept,
        "duplicate_ids": result.stats.duplicate_ids,
    }


@app.post("/generate")
async def generate_index(payload: GeneratePayload) -> dict[str, Any]:
    root = Path(payload.root).expanduser() if payload.root else Path.cwd()
    if not root.is_dir():
        raise HTTPException(status_code=404, detail=f"Directory not found: {root}")

    try:
        config = AppConfig(
            root_dir=root,
            output_dir=Path(payload.output_dir) if payload.output_dir else None,
            project_name=payload.project_name,
            max_entries=payload.max_entries,
            partition_by=payload.partition_by,
            path_scoped_ids=payload.path_scoped_ids,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    _ensure_output_dir(config.resolve_output_dir())
    try:
        stats = await asyncio.to_thread(_run_generate_job, config)
    except Exception as exc:  # pragma: no cover - defensive
        LOGGER.exception("Index generation failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return {"status": "ok", "stats": stats}
