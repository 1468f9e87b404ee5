"""
Exception hierarchy for corpus loading and scoring.

Failures fall into three groups:
- Fatal input errors (ManifestError) that abort a load before any fetch
- Per-entry errors (FetchError subclasses, ResolutionError, StorageError)
  that degrade a single corpus document and never abort the batch
- Invariant violations (DegenerateCorpusError) raised during scoring
"""

from __future__ import annotations

__all__ = [
    "CorpusTfidfError",
    "ManifestError",
    "FetchError",
    "SourceNotFoundError",
    "SourceUnreachableError",
    "MalformedContentError",
    "UnsupportedKindError",
    "ResolutionError",
    "StorageError",
    "DegenerateCorpusError",
]


class CorpusTfidfError(RuntimeError):
    """Base exception for all corpus-tfidf failures."""


class ManifestError(CorpusTfidfError):
    """Raised when a manifest line cannot be split into kind and locator."""

    def __init__(self, message: str, *, line_number: int | None = None, line: str | None = None) -> None:
        super().__init__(message)
        self.line_number = line_number
        self.line = line


class FetchError(CorpusTfidfError):
    """Raised when a source cannot produce fresh text."""

    reason = "fetch_failed"

    def __init__(self, message: str, *, locator: str | None = None) -> None:
        super().__init__(message)
        self.locator = locator


class SourceNotFoundError(FetchError):
    """Local file is missing or unreadable."""

    reason = "not_found"


class SourceUnreachableError(FetchError):
    """Transport failed to return bytes for a URL."""

    reason = "unreachable"

    def __init__(self, message: str, *, locator: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message, locator=locator)
        self.status_code = status_code


class MalformedContentError(FetchError):
    """Bytes were retrieved but could not be decoded into text."""

    reason = "malformed"


class UnsupportedKindError(FetchError):
    """The manifest names a kind no fetcher handles."""

    reason = "unsupported_kind"

    def __init__(self, kind: str) -> None:
        super().__init__(f"Unsupported source kind: {kind!r}")
        self.kind = kind


class ResolutionError(CorpusTfidfError):
    """Raised by CachedSource when neither cache nor origin yields text."""

    def __init__(self, identifier: str, error: FetchError) -> None:
        super().__init__(f"{identifier}: {error}")
        self.identifier = identifier
        self.error = error

    @property
    def reason(self) -> str:
        return self.error.reason


class StorageError(CorpusTfidfError):
    """Raised when a cache record cannot be written."""

    def __init__(self, message: str, *, identifier: str | None = None) -> None:
        super().__init__(message)
        self.identifier = identifier


class DegenerateCorpusError(CorpusTfidfError):
    """Raised when a target term has a zero frequency sum across the corpus.

    The target is always part of the corpus, so this indicates broken
    bookkeeping rather than bad input.
    """

    def __init__(self, term: str) -> None:
        super().__init__(f"Term {term!r} has zero frequency across the corpus")
        self.term = term
