"""
TF-IDF scoring of a target document against a corpus.

The score of a term t in target T against corpus C (T appended to C) is

    tf(t, T) * ln(|C| / sum(count(t, d) for d in C))

The denominator sums raw per-document counts instead of counting documents
that contain t. Terms are scored in parallel; the final ranking is sorted by
descending score with ties kept in first-encounter order of the target.
"""

from __future__ import annotations

from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
import math
from pathlib import Path
import re
from typing import Iterable, Sequence

from .errors import DegenerateCorpusError
from .logging_utils import get_logger, log_event
from .observers import NULL_OBSERVER, ProgressObserver
from .types import ScoreEntry


_WORD_SPLIT_RE = re.compile(r"\W+")

logger = get_logger("scoring")


def tokenize(text: str) -> list[str]:
    """Split text on non-word runs and lowercase the tokens."""
    return [token.lower() for token in _WORD_SPLIT_RE.split(text) if token]


def term_frequency(term: str, document: Sequence[str]) -> int:
    return sum(1 for word in document if word == term)


def term_frequencies(document: Iterable[str]) -> dict[str, int]:
    """Count every term, keyed in first-encounter order."""
    counts: dict[str, int] = {}
    for word in document:
        counts[word] = counts.get(word, 0) + 1
    return counts


def document_frequency_sum(term: str, corpus: Sequence[Sequence[str]]) -> int:
    """Sum of the term's occurrence counts over every corpus document."""
    return sum(term_frequency(term, document) for document in corpus)


def inverse_document_frequency(term: str, corpus: Sequence[Sequence[str]]) -> float:
    """ln(len(corpus) / document_frequency_sum(term, corpus)).

    Raises:
        DegenerateCorpusError: If the term never occurs in the corpus
    """
    return _idf(term, len(corpus), document_frequency_sum(term, corpus))


def _idf(term: str, corpus_size: int, frequency_sum: int) -> float:
    if frequency_sum == 0:
        raise DegenerateCorpusError(term)
    return math.log(corpus_size / frequency_sum)


class ScoringEngine:
    """Scores every distinct term of a target document.

    Attributes:
        workers: Number of threads scoring terms in parallel
        observer: Receives one scoring_progress notification per term
    """

    def __init__(self, workers: int = 4, observer: ProgressObserver | None = None):
        self.workers = max(1, int(workers))
        self.observer = observer or NULL_OBSERVER

    def score(self, target: Sequence[str], corpus: Sequence[Sequence[str]]) -> list[ScoreEntry]:
        """Rank the target's terms by TF-IDF.

        Args:
            target: Tokens of the document being scored
            corpus: Other documents; the target is appended once internally

        Returns:
            ScoreEntry list, highest score first, ties in first-encounter order

        Raises:
            DegenerateCorpusError: If a target term is missing from the corpus
        """
        frequencies = term_frequencies(target)
        if not frequencies:
            return []

        full_corpus = [Counter(document) for document in corpus]
        full_corpus.append(Counter(target))
        corpus_size = len(full_corpus)
        terms = list(frequencies)
        total = len(terms)

        log_event(
            logger,
            "Scoring start",
            event="scoring_start",
            terms=total,
            documents=corpus_size,
        )

        def _score_term(term: str) -> float:
            frequency_sum = sum(counts[term] for counts in full_corpus)
            return frequencies[term] * _idf(term, corpus_size, frequency_sum)

        scores: list[float] = [0.0] * total
        completed = 0
        with ThreadPoolExecutor(max_workers=min(self.workers, total)) as executor:
            future_map = {executor.submit(_score_term, term): idx for idx, term in enumerate(terms)}
            for future in as_completed(future_map):
                idx = future_map[future]
                scores[idx] = future.result()
                completed += 1
                self.observer.scoring_progress(terms[idx], completed, total)

        ranked = [ScoreEntry(term=term, score=value) for term, value in zip(terms, scores)]
        # sorted() is stable, so equal scores keep first-encounter order.
        ranked = sorted(ranked, key=lambda entry: -entry.score)
        log_event(logger, "Scoring complete", event="scoring_complete", terms=total)
        return ranked


def format_results(entries: Iterable[ScoreEntry]) -> list[str]:
    """Format entries as right-aligned terms with five-decimal scores."""
    return [f"{entry.term:>20}: {entry.score: 2.5f}" for entry in entries]


def write_results(path: Path, entries: Iterable[ScoreEntry]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for line in format_results(entries):
            f.write(line)
            f.write("\n")
    return path
