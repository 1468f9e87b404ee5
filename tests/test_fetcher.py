"""Tests for the content fetcher and its transport."""

from __future__ import annotations

import httpx
import pytest

from corpus_tfidf.config import ExtractConfig, FetchConfig
from corpus_tfidf.errors import (
    MalformedContentError,
    SourceNotFoundError,
    SourceUnreachableError,
    UnsupportedKindError,
)
from corpus_tfidf.fetch import fetcher as fetcher_module
from corpus_tfidf.fetch import transport as transport_module
from corpus_tfidf.fetch.extractor import extract_text
from corpus_tfidf.fetch.fetcher import ContentFetcher, article_url, parse_json_array
from corpus_tfidf.fetch.transport import FetchResult, fetch_url
from corpus_tfidf.types import (
    JSONArrayURL,
    LocalFile,
    PlainTextURL,
    RenderedArticleURL,
    SourceEntry,
)


class _FakeTransport:
    """Serves canned bodies keyed by URL and records requested URLs."""

    def __init__(self, bodies: dict[str, bytes]):
        self.bodies = bodies
        self.calls: list[str] = []

    def __call__(self, url: str) -> FetchResult:
        self.calls.append(url)
        if url not in self.bodies:
            return FetchResult(url=url, status_code=None, content=None, error="ConnectError: refused")
        return FetchResult(url=url, status_code=200, content=self.bodies[url], error=None)


def test_local_file(tmp_path):
    path = tmp_path / "doc.txt"
    path.write_text("Alice was beginning", encoding="utf-8")
    fetcher = ContentFetcher(transport=_FakeTransport({}))

    assert fetcher.fetch(LocalFile(str(path))) == "Alice was beginning"


def test_local_file_missing(tmp_path):
    fetcher = ContentFetcher(transport=_FakeTransport({}))
    with pytest.raises(SourceNotFoundError):
        fetcher.fetch(LocalFile(str(tmp_path / "missing.txt")))


def test_plain_text_url():
    transport = _FakeTransport({"http://x/a.txt": "café".encode("utf-8")})
    fetcher = ContentFetcher(transport=transport)

    assert fetcher.fetch(PlainTextURL("http://x/a.txt")) == "café"
    assert transport.calls == ["http://x/a.txt"]


def test_plain_text_url_unreachable():
    fetcher = ContentFetcher(transport=_FakeTransport({}))
    with pytest.raises(SourceUnreachableError) as excinfo:
        fetcher.fetch(PlainTextURL("http://x/missing.txt"))
    assert excinfo.value.locator == "http://x/missing.txt"
    assert excinfo.value.reason == "unreachable"


def test_json_array_url_joins_with_newlines():
    transport = _FakeTransport({"http://x/a.json": b'["first line", "second line"]'})
    fetcher = ContentFetcher(transport=transport)

    assert fetcher.fetch(JSONArrayURL("http://x/a.json")) == "first line\nsecond line"


@pytest.mark.parametrize("payload", [b"not json", b'{"a": 1}'])
def test_json_array_url_malformed(payload):
    fetcher = ContentFetcher(transport=_FakeTransport({"http://x/a.json": payload}))
    with pytest.raises(MalformedContentError) as excinfo:
        fetcher.fetch(JSONArrayURL("http://x/a.json"))
    assert excinfo.value.locator == "http://x/a.json"


def test_parse_json_array_stringifies_non_strings():
    assert parse_json_array('["a", 1, true]') == "a\n1\nTrue"


def test_article_url_from_title():
    assert article_url("Kinematics", "https://en.wikipedia.org/wiki") == "https://en.wikipedia.org/wiki/Kinematics"
    assert article_url("Newton's laws", "https://en.wikipedia.org/wiki/") == (
        "https://en.wikipedia.org/wiki/Newton%27s_laws"
    )
    assert article_url("https://example.com/post", "https://en.wikipedia.org/wiki") == "https://example.com/post"


def test_rendered_article_uses_extractor_chain():
    html = b"<html><body><p>Kinematics describes motion.</p></body></html>"
    transport = _FakeTransport({"https://en.wikipedia.org/wiki/Kinematics": html})
    seen_args = []

    def fake_extractor(body, primary, fallback):
        seen_args.append((primary, list(fallback)))
        return "Kinematics describes motion."

    fetcher = ContentFetcher(extract_cfg=ExtractConfig(), transport=transport, extractor=fake_extractor)

    assert fetcher.fetch(RenderedArticleURL("Kinematics")) == "Kinematics describes motion."
    assert seen_args == [("trafilatura", ["readability", "bs4"])]


def test_rendered_article_empty_extraction_is_malformed():
    transport = _FakeTransport({"https://example.com/a": b"<html></html>"})
    fetcher = ContentFetcher(transport=transport, extractor=lambda html, p, f: None)
    with pytest.raises(MalformedContentError):
        fetcher.fetch(RenderedArticleURL("https://example.com/a"))


def test_unsupported_kind():
    fetcher = ContentFetcher(transport=_FakeTransport({}))
    with pytest.raises(UnsupportedKindError) as excinfo:
        fetcher.fetch_entry(SourceEntry(kind="ftp", locator="ftp://x/a.txt"))
    assert excinfo.value.kind == "ftp"
    assert excinfo.value.reason == "unsupported_kind"


def test_fetch_entry_dispatches_by_kind():
    transport = _FakeTransport({"http://x/a.json": b'["a", "b"]'})
    fetcher = ContentFetcher(transport=transport)
    assert fetcher.fetch_entry(SourceEntry(kind="json-array-url", locator="http://x/a.json")) == "a\nb"


def test_default_transport_built_from_config(monkeypatch):
    calls = []

    def fake_fetch_url(url, timeout, retries, user_agent, trust_env):
        calls.append((url, timeout, retries, trust_env))
        return FetchResult(url=url, status_code=200, content=b"ok", error=None)

    monkeypatch.setattr(transport_module, "fetch_url", fake_fetch_url)
    cfg = FetchConfig(timeout_seconds=3.0, retries=0, trust_env=False)
    fetcher = fetcher_module.ContentFetcher(fetch_cfg=cfg)

    assert fetcher.fetch(PlainTextURL("http://x/a.txt")) == "ok"
    assert calls == [("http://x/a.txt", 3.0, 0, False)]


def test_fetch_url_retries_http_errors(monkeypatch):
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request.url)
        if len(attempts) == 1:
            return httpx.Response(503)
        return httpx.Response(200, content=b"body")

    real_client = httpx.Client

    def client_factory(**kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(**kwargs)

    monkeypatch.setattr(transport_module.httpx, "Client", client_factory)
    monkeypatch.setattr(transport_module.time, "sleep", lambda _s: None)

    result = fetch_url("http://x/a.txt", timeout=1.0, retries=1, user_agent="test", trust_env=False)

    assert result.ok
    assert result.content == b"body"
    assert len(attempts) == 2


def test_fetch_url_reports_last_error(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    real_client = httpx.Client

    def client_factory(**kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(**kwargs)

    monkeypatch.setattr(transport_module.httpx, "Client", client_factory)
    monkeypatch.setattr(transport_module.time, "sleep", lambda _s: None)

    result = fetch_url("http://x/a.txt", timeout=1.0, retries=2, user_agent="test", trust_env=False)

    assert not result.ok
    assert result.status_code == 404
    assert "404" in result.error


def test_extract_text_falls_back_to_bs4():
    html = "<html><body><script>var x;</script><p>Plain words here.</p></body></html>"
    assert extract_text(html, "unknown", ["bs4"]) == "Plain words here."


def test_local_file_with_nul_byte_is_not_found():
    fetcher = ContentFetcher(transport=_FakeTransport({}))
    with pytest.raises(SourceNotFoundError):
        fetcher.fetch(LocalFile("bad\x00name.txt"))


def test_fetch_url_invalid_url_fails_without_retry(monkeypatch):
    def no_sleep(_seconds):
        raise AssertionError("invalid URLs must not be retried")

    monkeypatch.setattr(transport_module.time, "sleep", no_sleep)

    result = fetch_url("http://[::1", timeout=1.0, retries=2, user_agent="test", trust_env=False)

    assert not result.ok
    assert result.status_code is None
    assert result.error.startswith("InvalidURL")


@pytest.mark.parametrize(
    "kind, expected",
    [
        ("local-file", LocalFile("loc")),
        ("plain-text-url", PlainTextURL("loc")),
        ("json-array-url", JSONArrayURL("loc")),
        ("rendered-article-url", RenderedArticleURL("loc")),
    ],
)
def test_every_kind_converts_to_its_variant(kind, expected):
    assert SourceEntry(kind=kind, locator="loc").to_source() == expected
