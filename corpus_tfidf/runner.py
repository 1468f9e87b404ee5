"""
Main pipeline orchestration for corpus-tfidf.

This module coordinates the entire workflow:
1. Resolve the target document through the cache
2. Load every manifest entry concurrently (cache-aside)
3. Tokenize the target and the corpus
4. Score target terms with TF-IDF
5. Write the ranked results file

Supports both progress bar and quiet modes. Per-entry failures are reported
and the ranking is still produced; manifest and invariant errors abort.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
import re
import threading
from urllib.parse import urlparse

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)

from .cache import CacheIndex, FileCacheStore
from .config import AppConfig
from .errors import CorpusTfidfError, ManifestError, StorageError
from .fetch.fetcher import ContentFetcher
from .loader import CorpusLoader, parse_manifest, read_manifest
from .logging_utils import log_event, setup_logging
from .observers import (
    CacheIndexObserver,
    CompositeObserver,
    LoggingObserver,
    ProgressObserver,
    RichProgressObserver,
)
from .scoring import ScoringEngine, tokenize, write_results
from .source import CachedSource
from .types import EntryFailure, ScoreEntry, SourceEntry, SourceKind


@dataclass
class FetchStats(ProgressObserver):
    """Statistics collected while resolving sources.

    Attributes:
        cache_hits: Number served from cache
        fetches: Number fetched from origin
        failed: Number of entries that degraded to an empty document
        storage_failures: Number of cache writes that failed
    """
    cache_hits: int = 0
    fetches: int = 0
    failed: int = 0
    storage_failures: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def cache_hit(self, identifier: str, length: int) -> None:
        with self._lock:
            self.cache_hits += 1

    def fetched(self, identifier: str, length: int) -> None:
        with self._lock:
            self.fetches += 1

    def storage_failed(self, identifier: str, error: StorageError) -> None:
        with self._lock:
            self.storage_failures += 1

    def entry_failed(self, identifier: str, error: CorpusTfidfError) -> None:
        with self._lock:
            self.failed += 1


@dataclass
class RunResult:
    """Outcome of one pipeline run.

    Attributes:
        results_path: File holding the formatted ranking
        ranking: Scored terms, highest first
        failures: Manifest entries that could not be resolved
        stats: Cache and fetch counters
    """
    results_path: Path
    ranking: list[ScoreEntry]
    failures: list[EntryFailure]
    stats: FetchStats


def parse_target(target: str) -> SourceEntry:
    """Parse a single `<kind>: <locator>` target line.

    Raises:
        ManifestError: If the line is blank or malformed
    """
    entries = parse_manifest([target])
    if not entries:
        raise ManifestError("Target must be given as '<kind>: <locator>'", line=target)
    return entries[0]


def target_name(entry: SourceEntry) -> str:
    """Short, filesystem-safe name for the results file of a target."""
    locator = entry.locator
    if entry.kind == SourceKind.LOCAL_FILE.value:
        name = Path(locator).stem
    elif locator.startswith(("http://", "https://")):
        parsed = urlparse(locator)
        segment = parsed.path.rstrip("/").rsplit("/", 1)[-1]
        name = Path(segment).stem if segment else parsed.netloc
    else:
        name = locator
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("._")
    return name or "target"


def load_seen(path: Path, logger: logging.Logger | None = None) -> frozenset[str]:
    """Read the seen-articles ledger; a missing or unreadable file is empty."""
    if not path.exists():
        return frozenset()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        log_event(
            logger,
            "Seen-articles ledger unreadable",
            level=logging.WARNING,
            event="seen_ledger_unreadable",
            path=str(path),
            error=str(exc),
        )
        return frozenset()
    if not isinstance(data, list):
        return frozenset()
    return frozenset(str(item) for item in data)


def save_seen(path: Path, seen: frozenset[str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(sorted(seen), f, indent=2, ensure_ascii=False)


def run_pipeline(
    manifest_path: Path,
    target: str,
    output_dir: Path,
    cfg: AppConfig,
    show_progress: bool = True,
    console: Console | None = None,
    fetcher: ContentFetcher | None = None,
) -> RunResult:
    """Run the complete load-and-score pipeline.

    Args:
        manifest_path: Manifest listing the corpus sources
        target: Target document as a `<kind>: <locator>` line
        output_dir: Directory for the results and log files
        cfg: Application configuration
        show_progress: Whether to display progress bars
        console: Rich console for output (creates default if None)
        fetcher: Content fetcher override (built from cfg if None)

    Returns:
        RunResult with the results path, ranking and failed entries

    Raises:
        ManifestError: If the manifest or the target line is malformed
        ResolutionError: If the target document cannot be resolved
        DegenerateCorpusError: If scoring bookkeeping is inconsistent
    """
    console = console or Console()
    output_dir.mkdir(parents=True, exist_ok=True)
    logger = setup_logging(cfg.logging, output_dir)

    target_entry = parse_target(target)
    entries = read_manifest(manifest_path)

    cache_root = Path(cfg.cache.dir)
    store = FileCacheStore(cache_root, encoding=cfg.fetch.encoding)
    index = CacheIndex(cache_root, enabled=cfg.cache.write_index, filename=cfg.cache.index_filename)
    seen_path = cache_root / cfg.cache.seen_filename
    seen = load_seen(seen_path, logger)

    stats = FetchStats()
    observers: list[ProgressObserver] = [LoggingObserver(logger), CacheIndexObserver(index), stats]
    progress: Progress | None = None
    rich_observer: RichProgressObserver | None = None
    if show_progress:
        progress = Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=console,
        )
        rich_observer = RichProgressObserver(progress)
        observers.append(rich_observer)
    observer = CompositeObserver(*observers)

    source = CachedSource(
        store,
        fetcher or ContentFetcher(cfg.fetch, cfg.extract),
        max_age=cfg.cache.max_age,
        observer=observer,
    )
    loader = CorpusLoader(source, concurrency=cfg.fetch.concurrency, observer=observer)
    engine = ScoringEngine(workers=cfg.scoring.workers, observer=observer)

    log_event(
        logger,
        "Pipeline start",
        event="pipeline_start",
        manifest=str(manifest_path),
        target=str(target_entry),
        entries=len(entries),
        output=str(output_dir),
    )

    if progress is not None:
        progress.start()
    try:
        target_text = source.resolve(target_entry)
        if rich_observer is not None:
            rich_observer.load_task = progress.add_task("Load corpus", total=len(entries))
        report = loader.load_entries_report(entries, seen=seen)
        corpus = [tokenize(document) for document in report.documents]
        ranking = engine.score(tokenize(target_text), corpus)
    finally:
        if progress is not None:
            progress.stop()

    results_path = write_results(output_dir / f"{target_name(target_entry)}{cfg.output.results_suffix}", ranking)

    if report.seen != seen:
        try:
            save_seen(seen_path, report.seen)
        except OSError as exc:
            error = StorageError(f"Failed to write seen-articles ledger {seen_path}: {exc}", identifier=str(seen_path))
            observer.storage_failed(str(seen_path), error)

    _render_load_summary(stats, report.failures, len(entries), console)
    log_event(
        logger,
        "Pipeline complete",
        event="pipeline_complete",
        output=str(results_path),
        terms=len(ranking),
        failed=len(report.failures),
    )
    return RunResult(results_path=results_path, ranking=ranking, failures=report.failures, stats=stats)


def _render_load_summary(stats: FetchStats, failures: list[EntryFailure], total: int, console: Console) -> None:
    """Display load statistics and every failed entry to the console."""
    console.print(
        "[bold]Load summary[/bold]: "
        f"total={total}, cache_hits={stats.cache_hits}, fetches={stats.fetches}, "
        f"failed={len(failures)}, cache_write_failures={stats.storage_failures}"
    )
    for failure in failures:
        console.print(f"  [red]{failure.reason}[/red] {failure.entry}: {failure.error.error}")
