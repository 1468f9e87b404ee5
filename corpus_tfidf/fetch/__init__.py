"""
Source fetching and text extraction.

This package handles HTTP transport, readable-text extraction,
and the per-variant fetch dispatch.
"""

from .extractor import extract_text
from .fetcher import ContentFetcher, article_url, parse_json_array
from .transport import FetchResult, Transport, build_transport, fetch_url

__all__ = [
    "ContentFetcher",
    "FetchResult",
    "Transport",
    "article_url",
    "build_transport",
    "extract_text",
    "fetch_url",
    "parse_json_array",
]
