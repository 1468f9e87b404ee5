"""
Content fetching for every source variant.

ContentFetcher turns a source into fresh text. It never touches the cache;
CachedSource decides when a fetch is needed. Network access goes through an
injectable transport so tests can run without sockets.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, assert_never
from urllib.parse import quote

from ..config import ExtractConfig, FetchConfig
from ..errors import MalformedContentError, SourceNotFoundError, SourceUnreachableError
from ..types import JSONArrayURL, LocalFile, PlainTextURL, RenderedArticleURL, Source, SourceEntry
from .extractor import extract_text
from .transport import Transport, build_transport


def parse_json_array(payload: str) -> str:
    """Decode a JSON array and join its elements with newlines.

    Raises:
        MalformedContentError: If payload is not valid JSON or not an array
    """
    try:
        items = json.loads(payload)
    except ValueError as exc:
        raise MalformedContentError(f"Invalid JSON: {exc}") from exc
    if not isinstance(items, list):
        raise MalformedContentError(f"Expected a JSON array, got {type(items).__name__}")
    return "\n".join(item if isinstance(item, str) else str(item) for item in items)


def article_url(locator: str, base_url: str) -> str:
    """Return locator as-is if it is a URL, else the article URL for a title."""
    if locator.startswith(("http://", "https://")):
        return locator
    title = locator.strip().replace(" ", "_")
    return f"{base_url.rstrip('/')}/{quote(title, safe='')}"


class ContentFetcher:
    """Fetches text for local files, plain-text URLs, JSON arrays and articles.

    Attributes:
        fetch_cfg: Encoding and transport settings
        extract_cfg: Extractor chain and article base URL
    """

    def __init__(
        self,
        fetch_cfg: FetchConfig | None = None,
        extract_cfg: ExtractConfig | None = None,
        transport: Transport | None = None,
        extractor: Callable[[str, str, list[str]], str | None] = extract_text,
    ):
        self.fetch_cfg = fetch_cfg or FetchConfig()
        self.extract_cfg = extract_cfg or ExtractConfig()
        self._transport = transport or build_transport(self.fetch_cfg)
        self._extractor = extractor

    def fetch_entry(self, entry: SourceEntry) -> str:
        """Fetch the text behind a manifest entry.

        Raises:
            UnsupportedKindError: If the entry kind is not recognized
            FetchError: If the source cannot be fetched or decoded
        """
        return self.fetch(entry.to_source())

    def fetch(self, source: Source) -> str:
        if isinstance(source, LocalFile):
            return self._read_file(source.path)
        if isinstance(source, PlainTextURL):
            return self._decode(self._get_bytes(source.url), source.url)
        if isinstance(source, JSONArrayURL):
            text = self._decode(self._get_bytes(source.url), source.url)
            try:
                return parse_json_array(text)
            except MalformedContentError as exc:
                exc.locator = source.url
                raise
        if isinstance(source, RenderedArticleURL):
            return self._fetch_article(source.locator)
        assert_never(source)

    def _read_file(self, path: str) -> str:
        try:
            return Path(path).read_text(encoding=self.fetch_cfg.encoding)
        except UnicodeDecodeError as exc:
            raise MalformedContentError(f"Cannot decode {path}: {exc}", locator=path) from exc
        except (OSError, ValueError) as exc:
            # ValueError: path with an embedded NUL byte.
            raise SourceNotFoundError(f"Cannot read {path}: {exc}", locator=path) from exc

    def _get_bytes(self, url: str) -> bytes:
        result = self._transport(url)
        if not result.ok:
            raise SourceUnreachableError(
                f"Failed to fetch {url}: {result.error}",
                locator=url,
                status_code=result.status_code,
            )
        return result.content

    def _decode(self, content: bytes, url: str) -> str:
        try:
            return content.decode(self.fetch_cfg.encoding, errors="replace")
        except LookupError as exc:
            raise MalformedContentError(f"Unknown encoding for {url}: {exc}", locator=url) from exc

    def _fetch_article(self, locator: str) -> str:
        url = article_url(locator, self.extract_cfg.article_base_url)
        html = self._decode(self._get_bytes(url), url)
        try:
            text = self._extractor(html, self.extract_cfg.primary, self.extract_cfg.fallback)
        except Exception as exc:  # noqa: BLE001
            raise MalformedContentError(
                f"Extraction failed for {url}: {type(exc).__name__}: {exc}", locator=url
            ) from exc
        if not text:
            raise MalformedContentError(f"No readable text extracted from {url}", locator=url)
        return text
