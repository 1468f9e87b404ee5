"""
Cache-aside resolution of manifest entries.

CachedSource checks the cache store first and serves a record that is younger
than the maximum age. On a miss or a stale record it fetches from origin,
writes the text back and returns it. A failed write is reported but does not
fail resolution, because the fetched text is still valid for this run.
"""

from __future__ import annotations

from datetime import timedelta

from .cache import CacheStore
from .errors import FetchError, ResolutionError, StorageError
from .fetch.fetcher import ContentFetcher
from .logging_utils import get_logger
from .observers import NULL_OBSERVER, ProgressObserver
from .types import SourceEntry


DEFAULT_MAX_AGE = timedelta(days=1)

logger = get_logger("source")


class CachedSource:
    """Resolves entries through a cache store and a content fetcher.

    Attributes:
        store: Cache store holding previously fetched text
        fetcher: Fetcher used on a cache miss
        max_age: Default maximum record age
        observer: Receives cache_hit, fetched and storage_failed notifications
    """

    def __init__(
        self,
        store: CacheStore,
        fetcher: ContentFetcher,
        max_age: timedelta = DEFAULT_MAX_AGE,
        observer: ProgressObserver | None = None,
    ):
        self.store = store
        self.fetcher = fetcher
        self.max_age = max_age
        self.observer = observer or NULL_OBSERVER

    def resolve(self, entry: SourceEntry, max_age: timedelta | None = None) -> str:
        """Return the text for entry, from cache when fresh enough.

        Args:
            entry: Manifest entry to resolve
            max_age: Overrides the instance default for this call

        Returns:
            The cached or freshly fetched text

        Raises:
            ResolutionError: If the cache misses and the fetch fails
        """
        identifier = entry.identifier
        limit = self.max_age if max_age is None else max_age

        cached = self._read_fresh(identifier, limit)
        if cached is not None:
            self.observer.cache_hit(identifier, len(cached))
            return cached

        try:
            text = self.fetcher.fetch_entry(entry)
        except FetchError as exc:
            raise ResolutionError(identifier, exc) from exc

        try:
            self.store.write(identifier, text)
        except StorageError as exc:
            logger.warning("Could not cache %s: %s", identifier, exc)
            self.observer.storage_failed(identifier, exc)

        self.observer.fetched(identifier, len(text))
        return text

    def _read_fresh(self, identifier: str, limit: timedelta) -> str | None:
        if not self.store.exists(identifier):
            return None
        age = self.store.age_of(identifier)
        if age is None or age >= limit:
            return None
        return self.store.read(identifier)
