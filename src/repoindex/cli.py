"""Command line interface for repoindex."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from repoindex.config import DEFAULT_MAX_ENTRIES, DEFAULT_PARTITION_STRATEGY, AppConfig
from repoindex.index.indexer import Indexer
from repoindex.index.ranking import QualityMetrics, ScoreDistribution
from repoindex.index.serializer import IndexFormatError
from repoindex.index.storage import load_index

console = Console()
app = typer.Typer(help="repoindex - chunked, ranked index of a code repository")

PROGRESS_EVERY = 10


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _ensure_output_dir(output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)


class ConsoleReporter:
    """Narrate indexing progress on the rich console."""

    def __init__(self, console: Console, every: int = PROGRESS_EVERY) -> None:
        self.console = console
        self.every = every
        self.files = 0
        self.filtered = 0

    def file_processed(self, path: str, entry_count: int) -> None:
        self.files += 1
        if self.files % self.every == 0:
            self.console.print(f"  Processed {self.files} files...")

    def entry_filtered(self, entry_id: str, reason: str) -> None:
        self.filtered += 1

    def partition_written(self, name: str, path: Path, count: int) -> None:
        self.console.print(f"  [green]{path.name}[/green] ({count} entries)")


@app.command()
def generate(
    root: Path = typer.Argument(Path("."), help="Repository root to index.", resolve_path=True),
    max_entries: int = typer.Option(DEFAULT_MAX_ENTRIES, "--max-entries", help="Maximum number of entries"),
    partition_by: str = typer.Option(
        DEFAULT_PARTITION_STRATEGY, "--partition-by", help="Partition strategy: domain, importance or none"
    ),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", help="Directory for the index files"),
    project_name: Optional[str] = typer.Option(None, "--project-name", help="Project name for artifact files"),
    path_scoped_ids: bool = typer.Option(
        False, "--path-scoped-ids", help="Include a hash of the relative path in entry ids"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index a repository tree and write the index artifacts."""
    _setup_logging(verbose)
    try:
        config = AppConfig(
            root_dir=root,
            output_dir=output_dir,
            project_name=project_name,
            max_entries=max_entries,
            partition_by=partition_by,
            path_scoped_ids=path_scoped_ids,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    resolved_output = config.resolve_output_dir()
    _ensure_output_dir(resolved_output)

    reporter = ConsoleReporter(console)
    indexer = Indexer(config, reporter=reporter)
    console.print(f"Indexing [bold]{config.root_dir}[/bold] into [bold]{resolved_output}[/bold]...")
    result = indexer.run()

    stats = result.stats
    console.print(
        f"Processed: {stats.processed}, failed: {stats.failed}, "
        f"entries: {stats.generated}, kept: {stats.kept}, filtered: {reporter.filtered}"
    )
    if stats.duplicate_ids:
        console.print(
            f"[yellow]{len(stats.duplicate_ids)} duplicate ids; rerun with --path-scoped-ids "
            "to make them unique.[/yellow]"
        )

    metrics = QualityMetrics.from_entries(result.entries)
    distribution = ScoreDistribution.from_entries(result.entries)
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("Entries", str(metrics.chunk_count))
    table.add_row("Avg summary tokens", str(metrics.avg_summary_tokens))
    table.add_row("Avg freshness", f"{metrics.avg_freshness:.2f}")
    table.add_row("Importance min / max", f"{distribution.minimum:.2f} / {distribution.maximum:.2f}")
    table.add_row("Importance mean / median", f"{distribution.mean:.2f} / {distribution.median:.2f}")
    table.add_row("High / medium / low", f"{distribution.high} / {distribution.medium} / {distribution.low}")
    console.print(table)
    console.print(f"Index written to [bold]{result.main_path}[/bold]")


@app.command()
def show(
    index: Optional[Path] = typer.Option(None, "--index", help="Main index file"),
    domain: Optional[str] = typer.Option(None, help="Only show entries of this domain"),
    tag: Optional[str] = typer.Option(None, help="Only show entries carrying this tag"),
    top_k: int = typer.Option(20, help="Number of entries to display"),
) -> None:
    """Display the entries of an existing index."""
    try:
        entries = load_index(index, config=AppConfig())
    except (FileNotFoundError, IndexFormatError) as exc:
        raise typer.BadParameter(str(exc)) from exc

    if domain:
        entries = [entry for entry in entries if entry.domain == domain]
    if tag:
        entries = [entry for entry in entries if tag in entry.tags]
    if not entries:
        console.print("[yellow]No matching entries.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Importance")
    table.add_column("Domain")
    table.add_column("Id")
    table.add_column("Title")
    table.add_column("Summary")

    for entry in entries[:top_k]:
        table.add_row(
            f"{entry.importance_score:.4f}", entry.domain, entry.id, entry.title, entry.mini_summary[:120]
        )

    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
) -> None:
    """Start the HTTP API over the index in the current directory."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - defensive
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    from repoindex.web.app import app as web_app

    index_path = AppConfig().main_index_path()
    if not index_path.exists():
        console.print("[yellow]Warning: index not found, run 'repoindex generate' first.[/yellow]")

    console.print(f"Starting API on http://{host}:{port} (index: {index_path})")
    uvicorn.run(web_app, host=host, port=port, reload=False, log_level="info")
