"""Tests for logging setup and structured events."""

from __future__ import annotations

import json
import logging

from rich.logging import RichHandler

from corpus_tfidf.config import LoggingConfig
from corpus_tfidf.logging_utils import get_logger, log_event, setup_logging


def _close(logger: logging.Logger) -> None:
    for handler in logger.handlers:
        handler.flush()
        handler.close()
    logger.handlers = []


def test_setup_logging_console_and_file(tmp_path):
    logger = setup_logging(LoggingConfig(level="DEBUG"), tmp_path)
    try:
        assert logger.name == "corpus_tfidf"
        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        assert any(isinstance(h, RichHandler) for h in logger.handlers)
        assert any(isinstance(h, logging.FileHandler) for h in logger.handlers)
    finally:
        _close(logger)


def test_log_event_writes_jsonl_with_fields(tmp_path):
    logger = setup_logging(LoggingConfig(console=False), tmp_path)
    log_event(logger, "Cache hit", event="cache_hit", identifier="local-file:a", length=3)
    _close(logger)

    lines = (tmp_path / "run.jsonl").read_text(encoding="utf-8").strip().split("\n")
    assert len(lines) == 1
    payload = json.loads(lines[0])
    assert payload["message"] == "Cache hit"
    assert payload["event"] == "cache_hit"
    assert payload["identifier"] == "local-file:a"
    assert payload["length"] == 3
    assert payload["level"] == "INFO"


def test_plain_format_and_no_output_dir(tmp_path):
    logger = setup_logging(LoggingConfig(console=False, format="plain"), tmp_path)
    logger.warning("plain message")
    _close(logger)
    assert "WARNING plain message" in (tmp_path / "run.jsonl").read_text(encoding="utf-8")

    logger = setup_logging(LoggingConfig(console=False), None)
    assert logger.handlers == []


def test_log_event_ignores_missing_logger():
    log_event(None, "nothing happens", event="noop")


def test_child_loggers_share_namespace():
    assert get_logger().name == "corpus_tfidf"
    assert get_logger("cache").name == "corpus_tfidf.cache"
