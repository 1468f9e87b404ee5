"""
Command-line interface for corpus-tfidf.

Uses Typer to provide a CLI with options for the main configuration
settings. Fatal errors are printed with rich and exit with status 1.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from .config import load_config
from .errors import CorpusTfidfError
from .runner import run_pipeline

app = typer.Typer(add_completion=False)
console = Console()


@app.callback()
def main() -> None:
    """Rank a document's terms by TF-IDF against a cached corpus."""


@app.command()
def run(
    manifest: Path = typer.Option(
        Path("source_files.txt"), "--manifest", "-m", exists=True, readable=True
    ),
    target: str = typer.Option(
        ...,
        "--target",
        "-t",
        help="Target document as '<kind>: <locator>', e.g. 'rendered-article-url: Kinematics'.",
    ),
    output: Path = typer.Option(Path("out"), "--output", "-o"),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    progress: bool = typer.Option(True, "--progress/--no-progress"),
    cache_dir: Path | None = typer.Option(None, "--cache-dir", help="Cache directory."),
    max_age_hours: float | None = typer.Option(
        None, "--max-age-hours", help="Refetch cached sources older than this."
    ),
    workers: int | None = typer.Option(None, "--workers", help="Threads used for scoring."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_file: bool | None = typer.Option(
        None, "--log-file/--no-log-file", help="Enable or disable file logging."
    ),
):
    """Load the manifest corpus and rank the target's terms.

    Args:
        manifest: File with one '<kind>: <locator>' source per line
        target: Document whose vocabulary is scored
        output: Directory for the results file and run log
        config: Optional path to YAML config file
        progress: Whether to show progress bars
        cache_dir: Override the cache directory
        max_age_hours: Override the cache maximum age
        workers: Override the scoring worker count
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Enable/disable file logging
    """
    cfg = load_config(str(config) if config else None)

    # Override with CLI options
    if cache_dir is not None:
        cfg.cache.dir = str(cache_dir)
    if max_age_hours is not None:
        cfg.cache.max_age_hours = max_age_hours
    if workers is not None:
        cfg.scoring.workers = workers
    if log_level:
        cfg.logging.level = log_level
    if log_file is not None:
        cfg.logging.file = log_file

    try:
        result = run_pipeline(manifest, target, output, cfg, show_progress=progress, console=console)
    except CorpusTfidfError as exc:
        console.print(f"[bold red]Error[/bold red]: {exc}")
        raise typer.Exit(code=1) from exc

    for entry in result.ranking[:10]:
        console.print(f"{entry.term:>20}: {entry.score: 2.5f}")
    console.print(f"Results written: {result.results_path}")


if __name__ == "__main__":
    app()
