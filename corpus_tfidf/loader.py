"""
Corpus loading from a source manifest.

A manifest has one `<kind>: <locator>` entry per line; blank lines are
skipped. Entries are resolved concurrently through a CachedSource and the
texts are put back in manifest order. An entry that fails to resolve becomes
an empty document so one broken URL cannot abort the run; a malformed line
aborts the load before anything is fetched.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from contextvars import copy_context
from pathlib import Path
import re
from typing import Iterable, Sequence

from .errors import ManifestError, ResolutionError
from .logging_utils import get_logger, log_event
from .observers import NULL_OBSERVER, ProgressObserver
from .source import CachedSource
from .types import EntryFailure, LoadReport, SourceEntry, SourceKind


_SEPARATOR_RE = re.compile(r":\s+")

logger = get_logger("loader")


def parse_manifest(lines: Iterable[str]) -> list[SourceEntry]:
    """Parse manifest lines into entries.

    Args:
        lines: Raw manifest lines, with or without trailing newlines

    Returns:
        One SourceEntry per non-blank line, in order

    Raises:
        ManifestError: If a non-blank line has no `: ` separated locator
    """
    entries: list[SourceEntry] = []
    for line_number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line:
            continue
        parts = _SEPARATOR_RE.split(line, maxsplit=1)
        if len(parts) < 2 or not parts[0] or not parts[1].strip():
            raise ManifestError(
                f"Line {line_number}: expected '<kind>: <locator>', got {line!r}",
                line_number=line_number,
                line=line,
            )
        entries.append(SourceEntry(kind=parts[0].strip(), locator=parts[1].strip()))
    return entries


def read_manifest(path: Path) -> list[SourceEntry]:
    """Read and parse a manifest file."""
    with open(path, "r", encoding="utf-8") as f:
        return parse_manifest(f)


class CorpusLoader:
    """Loads the texts of every manifest entry.

    Attributes:
        source: Cache-aside resolver shared by all entries
        concurrency: Maximum number of entries resolved at once
        observer: Receives entry_failed notifications
    """

    def __init__(
        self,
        source: CachedSource,
        concurrency: int = 8,
        observer: ProgressObserver | None = None,
    ):
        self.source = source
        self.concurrency = max(1, int(concurrency))
        self.observer = observer or NULL_OBSERVER

    def load(self, lines: Iterable[str]) -> list[str]:
        """Parse manifest lines and return one text per entry."""
        return self.load_report(lines).documents

    def load_file(self, path: Path, seen: frozenset[str] = frozenset()) -> LoadReport:
        return self.load_entries_report(read_manifest(path), seen=seen)

    def load_report(self, lines: Iterable[str], seen: frozenset[str] = frozenset()) -> LoadReport:
        """Parse manifest lines and load them, keeping failures and seen articles.

        Raises:
            ManifestError: If any line is malformed; nothing is fetched
        """
        return self.load_entries_report(parse_manifest(lines), seen=seen)

    def load_entries(self, entries: Sequence[SourceEntry]) -> list[str]:
        return self.load_entries_report(entries).documents

    def load_entries_report(
        self,
        entries: Sequence[SourceEntry],
        seen: frozenset[str] = frozenset(),
    ) -> LoadReport:
        """Resolve entries concurrently and reassemble them in order.

        Args:
            entries: Parsed manifest entries
            seen: Identifiers of rendered articles already seen by earlier runs

        Returns:
            LoadReport whose seen set adds the rendered articles resolved here
        """
        documents: list[str] = [""] * len(entries)
        failed: dict[int, EntryFailure] = {}
        resolved: set[int] = set()

        if entries:
            log_event(logger, "Corpus load start", event="load_start", entries=len(entries))
            workers = min(self.concurrency, len(entries))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                future_map = {}
                for idx, entry in enumerate(entries):
                    # Copy current context into worker thread.
                    ctx = copy_context()
                    future = executor.submit(ctx.run, self.source.resolve, entry)
                    future_map[future] = idx

                for future in as_completed(future_map):
                    idx = future_map[future]
                    entry = entries[idx]
                    try:
                        documents[idx] = future.result()
                        resolved.add(idx)
                    except ResolutionError as exc:
                        failed[idx] = EntryFailure(entry=entry, error=exc)
                        self.observer.entry_failed(entry.identifier, exc)

        new_seen = {
            entries[idx].identifier
            for idx in resolved
            if entries[idx].kind == SourceKind.RENDERED_ARTICLE_URL.value
        }
        report = LoadReport(
            documents=documents,
            failures=[failed[idx] for idx in sorted(failed)],
            seen=frozenset(seen) | new_seen,
        )
        log_event(
            logger,
            "Corpus load complete",
            event="load_complete",
            entries=len(entries),
            failed=len(report.failures),
        )
        return report
