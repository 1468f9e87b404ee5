"""
Core data types for corpus-tfidf.

This module defines the structures passed between pipeline stages:
- SourceKind: The closed set of manifest kinds
- LocalFile, PlainTextURL, JSONArrayURL, RenderedArticleURL: Source variants
- SourceEntry: A raw (kind, locator) pair parsed from the manifest
- EntryFailure, LoadReport: Outcome of loading a corpus
- ScoreEntry: One ranked term
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union, assert_never

from .errors import ResolutionError, UnsupportedKindError


class SourceKind(str, Enum):
    """Manifest kind strings, matched exactly."""

    LOCAL_FILE = "local-file"
    PLAIN_TEXT_URL = "plain-text-url"
    JSON_ARRAY_URL = "json-array-url"
    RENDERED_ARTICLE_URL = "rendered-article-url"


@dataclass(frozen=True)
class LocalFile:
    """Text file on the local filesystem."""

    path: str


@dataclass(frozen=True)
class PlainTextURL:
    """URL whose body is plain text."""

    url: str


@dataclass(frozen=True)
class JSONArrayURL:
    """URL whose body is a JSON array of strings."""

    url: str


@dataclass(frozen=True)
class RenderedArticleURL:
    """HTML article reduced to readable text.

    The locator is either a full http(s) URL or a Wikipedia article title.
    """

    locator: str


Source = Union[LocalFile, PlainTextURL, JSONArrayURL, RenderedArticleURL]


@dataclass(frozen=True)
class SourceEntry:
    """A (kind, locator) pair as written in the manifest.

    Attributes:
        kind: Kind string; validated only when converted with to_source()
        locator: Path, URL or article title
    """

    kind: str
    locator: str

    @property
    def identifier(self) -> str:
        """Stable cache key. Kinds never contain ':' so pairs cannot collide."""
        return f"{self.kind}:{self.locator}"

    def to_source(self) -> Source:
        """Convert to a typed source variant.

        Raises:
            UnsupportedKindError: If kind is not a SourceKind value
        """
        try:
            kind = SourceKind(self.kind)
        except ValueError:
            raise UnsupportedKindError(self.kind) from None
        if kind is SourceKind.LOCAL_FILE:
            return LocalFile(self.locator)
        if kind is SourceKind.PLAIN_TEXT_URL:
            return PlainTextURL(self.locator)
        if kind is SourceKind.JSON_ARRAY_URL:
            return JSONArrayURL(self.locator)
        if kind is SourceKind.RENDERED_ARTICLE_URL:
            return RenderedArticleURL(self.locator)
        assert_never(kind)

    def __str__(self) -> str:
        return f"{self.kind}: {self.locator}"


@dataclass
class EntryFailure:
    """A manifest entry that degraded to an empty document."""

    entry: SourceEntry
    error: ResolutionError

    @property
    def reason(self) -> str:
        return self.error.reason


@dataclass
class LoadReport:
    """Result of loading a manifest.

    Attributes:
        documents: One text per non-blank manifest line, in manifest order;
                   failed entries contribute an empty string
        failures: Entries that could not be resolved, with their errors
        seen: Identifiers of rendered articles seen so far, including the
              ones passed in to the load
    """

    documents: list[str] = field(default_factory=list)
    failures: list[EntryFailure] = field(default_factory=list)
    seen: frozenset[str] = frozenset()


@dataclass(frozen=True)
class ScoreEntry:
    """A term and its TF-IDF score."""

    term: str
    score: float
