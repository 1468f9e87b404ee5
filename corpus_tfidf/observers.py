"""
Progress and notification observers.

Every stage reports through one ProgressObserver interface: CachedSource
emits cache_hit / fetched / storage_failed, CorpusLoader emits entry_failed
and ScoringEngine emits scoring_progress. Front-ends subscribe by
implementing the methods they care about.
"""

from __future__ import annotations

import logging
import threading

from rich.progress import Progress, TaskID

from .cache import CacheIndex
from .errors import CorpusTfidfError, StorageError
from .logging_utils import log_event


class ProgressObserver:
    """Base observer; every notification is a no-op by default."""

    def cache_hit(self, identifier: str, length: int) -> None:
        pass

    def fetched(self, identifier: str, length: int) -> None:
        pass

    def storage_failed(self, identifier: str, error: StorageError) -> None:
        pass

    def entry_failed(self, identifier: str, error: CorpusTfidfError) -> None:
        pass

    def scoring_progress(self, term: str, completed: int, total: int) -> None:
        pass


NULL_OBSERVER = ProgressObserver()


class CompositeObserver(ProgressObserver):
    """Forwards every notification to each wrapped observer in order."""

    def __init__(self, *observers: ProgressObserver):
        self.observers = [obs for obs in observers if obs is not None]

    def cache_hit(self, identifier: str, length: int) -> None:
        for obs in self.observers:
            obs.cache_hit(identifier, length)

    def fetched(self, identifier: str, length: int) -> None:
        for obs in self.observers:
            obs.fetched(identifier, length)

    def storage_failed(self, identifier: str, error: StorageError) -> None:
        for obs in self.observers:
            obs.storage_failed(identifier, error)

    def entry_failed(self, identifier: str, error: CorpusTfidfError) -> None:
        for obs in self.observers:
            obs.entry_failed(identifier, error)

    def scoring_progress(self, term: str, completed: int, total: int) -> None:
        for obs in self.observers:
            obs.scoring_progress(term, completed, total)


class LoggingObserver(ProgressObserver):
    """Writes notifications as structured log events.

    Scoring progress is logged at DEBUG level since it fires once per term.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def cache_hit(self, identifier: str, length: int) -> None:
        log_event(
            self.logger,
            f"Retrieved {length} bytes from cache",
            event="cache_hit",
            identifier=identifier,
            length=length,
        )

    def fetched(self, identifier: str, length: int) -> None:
        log_event(
            self.logger,
            f"Fetched {length} bytes from source",
            event="fetched",
            identifier=identifier,
            length=length,
        )

    def storage_failed(self, identifier: str, error: StorageError) -> None:
        log_event(
            self.logger,
            "Cache write failed",
            level=logging.WARNING,
            event="storage_failed",
            identifier=identifier,
            error=str(error),
        )

    def entry_failed(self, identifier: str, error: CorpusTfidfError) -> None:
        log_event(
            self.logger,
            f"Entry failed: {identifier}",
            level=logging.WARNING,
            event="entry_failed",
            identifier=identifier,
            reason=getattr(error, "reason", type(error).__name__),
            error=str(error),
        )

    def scoring_progress(self, term: str, completed: int, total: int) -> None:
        log_event(
            self.logger,
            "Term scored",
            level=logging.DEBUG,
            event="scoring_progress",
            term=term,
            completed=completed,
            total=total,
        )


class CacheIndexObserver(ProgressObserver):
    """Records cache hits, fetches and failures in the JSONL cache index."""

    def __init__(self, index: CacheIndex):
        self.index = index

    def cache_hit(self, identifier: str, length: int) -> None:
        self.index.append({"event": "cache_hit", "identifier": identifier, "length": length})

    def fetched(self, identifier: str, length: int) -> None:
        self.index.append({"event": "fetched", "identifier": identifier, "length": length})

    def storage_failed(self, identifier: str, error: StorageError) -> None:
        self.index.append({"event": "storage_failed", "identifier": identifier, "error": str(error)})

    def entry_failed(self, identifier: str, error: CorpusTfidfError) -> None:
        self.index.append(
            {
                "event": "entry_failed",
                "identifier": identifier,
                "reason": getattr(error, "reason", type(error).__name__),
                "error": str(error),
            }
        )


class RichProgressObserver(ProgressObserver):
    """Drives rich progress bars for corpus loading and term scoring.

    Loading advances once per resolved or failed entry. The scoring task is
    created lazily on the first progress event, since the term count is only
    known once the target has been tokenized.
    """

    def __init__(self, progress: Progress, load_task: TaskID | None = None):
        self.progress = progress
        self.load_task = load_task
        self.score_task: TaskID | None = None
        self._lock = threading.Lock()

    def cache_hit(self, identifier: str, length: int) -> None:
        self._advance_load()

    def fetched(self, identifier: str, length: int) -> None:
        self._advance_load()

    def entry_failed(self, identifier: str, error: CorpusTfidfError) -> None:
        self._advance_load()

    def scoring_progress(self, term: str, completed: int, total: int) -> None:
        with self._lock:
            if self.score_task is None:
                self.score_task = self.progress.add_task("Score terms", total=total)
            self.progress.update(self.score_task, completed=completed)

    def _advance_load(self) -> None:
        if self.load_task is None:
            return
        with self._lock:
            self.progress.advance(self.load_task, 1)
