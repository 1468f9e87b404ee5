"""
On-disk cache for resolved source text.

This module provides:
1. FileCacheStore: One file per identifier, mtime as the staleness clock
2. CacheIndex: JSONL log of cache hits, fetches and failures for debugging

Records are written to a temporary file and renamed over the target, so a
concurrent reader sees either the previous text or the new one.
"""

from __future__ import annotations

from contextlib import suppress
from datetime import datetime, timedelta, timezone
import hashlib
import json
import os
from pathlib import Path
import tempfile
import threading
import time
from typing import Any, Protocol
from urllib.parse import quote

from .errors import StorageError
from .logging_utils import get_logger


logger = get_logger("cache")

_MAX_NAME_LENGTH = 200
_PREFIX_LENGTH = 150


class CacheStore(Protocol):
    """Durable identifier -> text store."""

    def exists(self, identifier: str) -> bool: ...

    def age_of(self, identifier: str) -> timedelta | None: ...

    def read(self, identifier: str) -> str | None: ...

    def write(self, identifier: str, text: str) -> None: ...


def escape_identifier(identifier: str) -> str:
    """Turn an identifier into a filesystem- and shell-friendly file name.

    Every character outside [A-Za-z0-9_.-~] is percent-escaped, then '%' is
    replaced by '+'. A literal '+' escapes to '+2B', so the mapping stays
    one-to-one. Over-long names keep a prefix and gain a SHA256 suffix.

    Example:
        >>> escape_identifier("plain-text-url:http://x/a.txt")
        'plain-text-url+3Ahttp+3A+2F+2Fx+2Fa.txt'
    """
    name = quote(identifier, safe="").replace("%", "+")
    if len(name) > _MAX_NAME_LENGTH:
        digest = hashlib.sha256(identifier.encode("utf-8")).hexdigest()[:16]
        name = f"{name[:_PREFIX_LENGTH]}-{digest}"
    return name


class FileCacheStore:
    """Stores each record as a plain text file under a cache root.

    Attributes:
        root: Directory holding the cache files
        encoding: Text encoding of the files
    """

    def __init__(self, root: Path, encoding: str = "utf-8"):
        self.root = Path(root)
        self.encoding = encoding
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, identifier: str) -> Path:
        return self.root / escape_identifier(identifier)

    def exists(self, identifier: str) -> bool:
        return self.path_for(identifier).is_file()

    def age_of(self, identifier: str) -> timedelta | None:
        """Time since the record was last written, or None if absent."""
        try:
            mtime = self.path_for(identifier).stat().st_mtime
        except OSError:
            return None
        return timedelta(seconds=max(0.0, time.time() - mtime))

    def read(self, identifier: str) -> str | None:
        """Return the cached text, or None when it cannot be read."""
        path = self.path_for(identifier)
        try:
            return path.read_text(encoding=self.encoding)
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Cache read failed for %s: %s", path, exc)
            return None

    def write(self, identifier: str, text: str) -> None:
        """Replace the record for identifier.

        Raises:
            StorageError: If the cache root or the record cannot be written
        """
        path = self.path_for(identifier)
        with self._lock_for(identifier):
            tmp_name: str | None = None
            try:
                self.root.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=".tmp-", suffix=".part")
                with os.fdopen(fd, "w", encoding=self.encoding) as handle:
                    handle.write(text)
                os.replace(tmp_name, path)
                tmp_name = None
            except OSError as exc:
                raise StorageError(
                    f"Failed to write cache record {path}: {exc}", identifier=identifier
                ) from exc
            finally:
                if tmp_name is not None:
                    with suppress(OSError):
                        os.unlink(tmp_name)

    def _lock_for(self, identifier: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(identifier)
            if lock is None:
                lock = self._locks[identifier] = threading.Lock()
            return lock


class CacheIndex:
    """Tracks cache operations in a JSONL index file.

    Each cache operation (hit, fetch, failure) is logged as a JSON line
    with timestamp, identifier and byte length or error info.

    Attributes:
        cache_dir: Directory where cache files and index are stored
        enabled: Whether index writing is enabled
        path: Full path to the index file
    """

    def __init__(self, cache_dir: Path, enabled: bool = True, filename: str = "index.jsonl"):
        self.cache_dir = Path(cache_dir)
        self.enabled = enabled
        self.path = self.cache_dir / filename
        self._lock = threading.Lock()

    def append(self, payload: dict[str, Any]) -> None:
        """Append an entry to the cache index.

        Adds a timestamp if not present and writes the entry as a JSON line.

        Args:
            payload: Dictionary containing cache operation details including
                     identifier, event, length, error, etc.
        """
        if not self.enabled:
            return
        payload = dict(payload)
        payload.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        line = json.dumps(payload, ensure_ascii=True)
        with self._lock:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(line)
                handle.write("\n")
