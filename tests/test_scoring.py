"""Tests for tokenization and TF-IDF scoring."""

from __future__ import annotations

import math
import threading

import pytest

from corpus_tfidf.errors import DegenerateCorpusError
from corpus_tfidf.observers import ProgressObserver
from corpus_tfidf.scoring import (
    ScoringEngine,
    document_frequency_sum,
    format_results,
    inverse_document_frequency,
    term_frequencies,
    term_frequency,
    tokenize,
    write_results,
)
from corpus_tfidf.types import ScoreEntry


class _ProgressRecorder(ProgressObserver):
    def __init__(self):
        self.events: list[tuple[str, int, int]] = []
        self._lock = threading.Lock()

    def scoring_progress(self, term, completed, total):
        with self._lock:
            self.events.append((term, completed, total))


def test_tokenize_lowercases_and_drops_empty_tokens():
    assert tokenize("  Alice's Adventures, in WONDERLAND!  ") == ["alice", "s", "adventures", "in", "wonderland"]
    assert tokenize("") == []


def test_term_frequencies_keep_first_encounter_order():
    assert list(term_frequencies(["b", "a", "b", "c"]).items()) == [("b", 2), ("a", 1), ("c", 1)]


def test_round_trip_example():
    target = ["a", "a", "b"]
    corpus = [target, ["b", "c"]]

    assert term_frequency("a", target) == 2
    assert document_frequency_sum("a", corpus) == 2
    assert inverse_document_frequency("a", corpus) == 0.0

    ranking = ScoringEngine(workers=2).score(target, [["b", "c"]])
    scores = {entry.term: entry.score for entry in ranking}
    assert scores["a"] == 2 * math.log(2 / 2) == 0.0
    assert scores["b"] == pytest.approx(1 * math.log(2 / 2))


def test_frequency_sum_counts_occurrences_not_documents():
    corpus = [["x", "x", "x"], ["x"], ["y"]]
    assert document_frequency_sum("x", corpus) == 4
    assert inverse_document_frequency("x", corpus) == pytest.approx(math.log(3 / 4))


def test_zero_frequency_sum_is_degenerate():
    with pytest.raises(DegenerateCorpusError) as excinfo:
        inverse_document_frequency("zebra", [["a"], ["b"]])
    assert excinfo.value.term == "zebra"


def test_rarer_term_scores_higher():
    corpus = [tokenize("cat dog"), tokenize("dog dog")]
    ranking = ScoringEngine().score(tokenize("cat cat dog"), corpus)
    scores = {entry.term: entry.score for entry in ranking}

    assert scores["cat"] > scores["dog"]
    assert [entry.term for entry in ranking] == ["cat", "dog"]
    assert scores["cat"] == pytest.approx(2 * math.log(3 / 3))
    assert scores["dog"] == pytest.approx(1 * math.log(3 / 4))


def test_empty_target_scores_nothing():
    assert ScoringEngine().score([], [["a"]]) == []


def test_ties_keep_first_encounter_order():
    target = ["delta", "alpha", "charlie", "bravo"]
    ranking = ScoringEngine(workers=4).score(target, [["echo"]])
    assert [entry.term for entry in ranking] == ["delta", "alpha", "charlie", "bravo"]


def test_scoring_is_deterministic():
    target = tokenize("the quick brown fox jumps over the lazy dog the end")
    corpus = [tokenize("the fox"), tokenize("a lazy afternoon"), tokenize("quick quick")]
    engine = ScoringEngine(workers=8)

    assert engine.score(target, corpus) == engine.score(target, corpus)


def test_progress_reported_once_per_term():
    recorder = _ProgressRecorder()
    target = tokenize("one two two three three three")
    ScoringEngine(workers=3, observer=recorder).score(target, [tokenize("one")])

    assert sorted(term for term, _, _ in recorder.events) == ["one", "three", "two"]
    assert [completed for _, completed, _ in recorder.events] == [1, 2, 3]
    assert {total for _, _, total in recorder.events} == {3}


def test_corpus_is_not_mutated():
    corpus = [["a"], ["b"]]
    ScoringEngine().score(["a"], corpus)
    assert corpus == [["a"], ["b"]]


def test_format_results_keeps_five_decimals(tmp_path):
    entries = [ScoreEntry("cat", 1.234567891), ScoreEntry("dog", -0.5)]
    assert format_results(entries) == [
        "                 cat:  1.23457",
        "                 dog: -0.50000",
    ]

    path = write_results(tmp_path / "out" / "target-results.txt", entries)
    assert path.read_text(encoding="utf-8").splitlines() == format_results(entries)
