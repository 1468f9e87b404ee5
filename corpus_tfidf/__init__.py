"""
corpus-tfidf - rank a document's vocabulary against a cached corpus.

This package loads a manifest of local files, plain-text URLs, JSON-array
documents and rendered articles through an on-disk cache, then scores a
target document's terms with TF-IDF.

Main entry point is the CLI via `corpus-tfidf run` command.

Example:
    $ corpus-tfidf run -m source_files.txt -t "rendered-article-url: Kinematics"
"""

__all__ = [
    "__version__",
    "CachedSource",
    "ContentFetcher",
    "CorpusLoader",
    "FileCacheStore",
    "ScoringEngine",
    "SourceEntry",
    "parse_manifest",
    "tokenize",
]
__version__ = "0.1.0"

from .cache import FileCacheStore
from .fetch.fetcher import ContentFetcher
from .loader import CorpusLoader, parse_manifest
from .scoring import ScoringEngine, tokenize
from .source import CachedSource
from .types import SourceEntry
