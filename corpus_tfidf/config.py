"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FetchConfig: HTTP transport and loader concurrency
- ExtractConfig: Readable-text extraction for rendered articles
- CacheConfig: Cache directory and maximum record age
- ScoringConfig: TF-IDF worker pool
- OutputConfig: Results file naming
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

import yaml


@dataclass
class FetchConfig:
    """Configuration for content fetching.

    Attributes:
        timeout_seconds: HTTP request timeout
        retries: Number of retry attempts for failed requests
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
        concurrency: Number of manifest entries resolved at once
        encoding: Text encoding for local files and plain-text bodies
    """

    timeout_seconds: float = 20.0
    retries: int = 2
    trust_env: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )
    concurrency: int = 8
    encoding: str = "utf-8"


@dataclass
class ExtractConfig:
    """Configuration for rendered-article text extraction.

    Attributes:
        primary: Primary extraction method ("trafilatura", "readability", or "bs4")
        fallback: List of fallback methods to try if primary fails
        article_base_url: Prefix used when a locator is an article title
    """

    primary: str = "trafilatura"
    fallback: list[str] = field(default_factory=lambda: ["readability", "bs4"])
    article_base_url: str = "https://en.wikipedia.org/wiki"


@dataclass
class CacheConfig:
    """Configuration for the on-disk cache.

    Attributes:
        dir: Directory holding one file per cached source
        max_age_hours: Records older than this are fetched again
        write_index: Whether to write cache index JSONL file
        index_filename: Name of the cache index file
        seen_filename: Name of the seen-articles ledger in the cache directory
    """

    dir: str = ".cache/corpus_tfidf"
    max_age_hours: float = 24.0
    write_index: bool = True
    index_filename: str = "index.jsonl"
    seen_filename: str = "seen_articles.json"

    @property
    def max_age(self) -> timedelta:
        return timedelta(hours=self.max_age_hours)


@dataclass
class ScoringConfig:
    """Configuration for TF-IDF scoring.

    Attributes:
        workers: Number of threads scoring terms in parallel
    """

    workers: int = 4


@dataclass
class OutputConfig:
    """Configuration for output generation.

    Attributes:
        results_suffix: Appended to the target name to form the results filename
    """

    results_suffix: str = "-results.txt"


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the main log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = True
    format: str = "jsonl"
    filename: str = "run.jsonl"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = _asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update({k: v for k, v in value.items() if k in data[key]})
        else:
            data[key] = value
    return _fromdict(data)


def _asdict(cfg: AppConfig) -> dict[str, Any]:
    """Convert AppConfig to nested dictionary."""
    return {
        "fetch": {
            "timeout_seconds": cfg.fetch.timeout_seconds,
            "retries": cfg.fetch.retries,
            "trust_env": cfg.fetch.trust_env,
            "user_agent": cfg.fetch.user_agent,
            "concurrency": cfg.fetch.concurrency,
            "encoding": cfg.fetch.encoding,
        },
        "extract": {
            "primary": cfg.extract.primary,
            "fallback": list(cfg.extract.fallback),
            "article_base_url": cfg.extract.article_base_url,
        },
        "cache": {
            "dir": cfg.cache.dir,
            "max_age_hours": cfg.cache.max_age_hours,
            "write_index": cfg.cache.write_index,
            "index_filename": cfg.cache.index_filename,
            "seen_filename": cfg.cache.seen_filename,
        },
        "scoring": {
            "workers": cfg.scoring.workers,
        },
        "output": {
            "results_suffix": cfg.output.results_suffix,
        },
        "logging": {
            "level": cfg.logging.level,
            "console": cfg.logging.console,
            "file": cfg.logging.file,
            "format": cfg.logging.format,
            "filename": cfg.logging.filename,
        },
    }


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        fetch=FetchConfig(**data["fetch"]),
        extract=ExtractConfig(**data["extract"]),
        cache=CacheConfig(**data["cache"]),
        scoring=ScoringConfig(**data["scoring"]),
        output=OutputConfig(**data["output"]),
        logging=LoggingConfig(**data["logging"]),
    )
