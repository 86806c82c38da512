"""Term-frequency and TF-IDF cosine similarity over short texts."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from math import log, sqrt

from sdk_assist.text.tokenizer import tokenize
from sdk_assist.types import Match, NoMatch


@dataclass(slots=True, frozen=True)
class Exemplar:
    """A labelled text that queries are compared against."""

    id: str
    text: str


def cosine_similarity(left: Mapping[str, float], right: Mapping[str, float]) -> float:
    dot = sum(weight * right.get(term, 0.0) for term, weight in left.items())
    left_norm = sqrt(sum(weight * weight for weight in left.values()))
    right_norm = sqrt(sum(weight * weight for weight in right.values()))
    if left_norm == 0.0 or right_norm == 0.0:
        return 0.0
    return dot / (left_norm * right_norm)


def semantic_terms(text: str) -> list[str]:
    return tokenize(text, semantic=True)


class SimilarityMatcher:
    """Cosine similarity in plain term-frequency mode, or TF-IDF once trained."""

    def __init__(self) -> None:
        self._idf: dict[str, float] = {}
        self._document_count = 0

    @property
    def trained(self) -> bool:
        return self._document_count > 0

    def train_idf(self, corpus: Sequence[str]) -> None:
        """Compute `idf = ln(N / (df + 1)) + 1` for every term of the corpus."""
        document_frequency: Counter[str] = Counter()
        for document in corpus:
            document_frequency.update(set(semantic_terms(document)))

        self._document_count = len(corpus)
        self._idf = {
            term: log(self._document_count / (df + 1)) + 1
            for term, df in document_frequency.items()
        }

    def idf(self, term: str) -> float:
        return self._idf.get(term, 1.0)

    def vectorize(self, text: str) -> dict[str, float]:
        counts = Counter(semantic_terms(text))
        if not self.trained:
            return {term: float(count) for term, count in counts.items()}
        return {term: count * self.idf(term) for term, count in counts.items()}

    def similarity(self, left: str, right: str) -> float:
        return cosine_similarity(self.vectorize(left), self.vectorize(right))

    def find_best_match(
        self,
        query: str,
        targets: Iterable[Exemplar],
        threshold: float = 0.2,
    ) -> Match[Exemplar] | NoMatch:
        query_vector = self.vectorize(query)
        best: Exemplar | None = None
        best_score = -1.0
        best_vector: dict[str, float] = {}
        for target in targets:
            vector = self.vectorize(target.text)
            score = cosine_similarity(query_vector, vector)
            if score > best_score:
                best, best_score, best_vector = target, score, vector

        if best is None or best_score < threshold:
            return NoMatch(best_score=max(best_score, 0.0))
        return Match(
            target=best,
            score=best_score,
            matched_terms=[term for term in query_vector if term in best_vector],
        )

    def find_top_matches(
        self,
        query: str,
        targets: Iterable[Exemplar],
        k: int = 5,
        threshold: float = 0.1,
    ) -> list[Match[Exemplar]]:
        query_vector = self.vectorize(query)
        matches: list[Match[Exemplar]] = []
        for target in targets:
            vector = self.vectorize(target.text)
            score = cosine_similarity(query_vector, vector)
            if score >= threshold:
                matches.append(
                    Match(
                        target=target,
                        score=score,
                        matched_terms=[term for term in query_vector if term in vector],
                    )
                )
        matches.sort(key=lambda match: match.score, reverse=True)
        return matches[:k]
