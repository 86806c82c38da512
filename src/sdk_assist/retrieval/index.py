"""Field-weighted inverted index over `IndexedDocument` records."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from sdk_assist.text.tokenizer import tokenize
from sdk_assist.types import IndexedDocument, IndexHit

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class _Posting:
    position: int
    field: str
    weighted_tf: float


@dataclass(slots=True, frozen=True)
class IndexStats:
    document_count: int
    term_count: int
    posting_count: int
    avg_doc_length: float


class InvertedIndex:
    """Sparse term index scored by field-weighted term frequency.

    `build()` may be called once. Each configured field of each document is
    tokenized, raw term counts are accumulated, and a posting carrying
    `count * field_weight` is stored per (term, document, field). `search()`
    tokenizes the query the same way and sums the postings of matched query
    terms only, so unmatched document terms never dilute a score.
    """

    def __init__(
        self,
        field_weights: Mapping[str, float],
        *,
        tokenizer: Callable[[str], list[str]] = tokenize,
    ) -> None:
        if not field_weights:
            raise ValueError("field_weights must not be empty")
        self.field_weights = dict(field_weights)
        self._tokenize = tokenizer
        self._postings: dict[str, list[_Posting]] = {}
        self._documents: list[IndexedDocument] = []
        self._positions: dict[str, int] = {}
        self._total_tokens = 0
        self._built = False

    @property
    def built(self) -> bool:
        return self._built

    def build(self, documents: Sequence[IndexedDocument]) -> None:
        if self._built:
            raise RuntimeError("InvertedIndex is immutable once built; create a new instance")

        for position, document in enumerate(documents):
            self._documents.append(document)
            self._positions[document.doc_id] = position
            for field, weight in self.field_weights.items():
                text = document.fields.get(field)
                if not text:
                    continue
                tokens = self._tokenize(text)
                self._total_tokens += len(tokens)
                for term, count in Counter(tokens).items():
                    self._postings.setdefault(term, []).append(
                        _Posting(position=position, field=field, weighted_tf=count * weight)
                    )

        self._built = True
        logger.debug(
            "built index with %d documents and %d terms",
            len(self._documents),
            len(self._postings),
        )

    def search(self, query: str, limit: int = 10) -> list[IndexHit]:
        if limit <= 0:
            return []

        scores: dict[int, float] = {}
        matched: dict[int, list[str]] = {}
        # a term repeated in the query adds its postings once per occurrence
        for term in self._tokenize(query):
            for posting in self._postings.get(term, ()):
                scores[posting.position] = scores.get(posting.position, 0.0) + posting.weighted_tf
                terms = matched.setdefault(posting.position, [])
                if term not in terms:
                    terms.append(term)

        # Build order breaks ties; sorted() is stable.
        ranked = sorted(sorted(scores), key=lambda position: scores[position], reverse=True)
        return [
            self._hit(position, scores[position], matched[position])
            for position in ranked[:limit]
        ]

    def exact_match(self, term: str, field: str | None = None) -> list[str]:
        """Return ids of documents with a field whose whole text equals `term`."""
        wanted = term.lower()
        doc_ids: list[str] = []
        for document in self._documents:
            for name, text in document.fields.items():
                if field is not None and name != field:
                    continue
                if text.lower() == wanted:
                    doc_ids.append(document.doc_id)
                    break
        return doc_ids

    def prefix_search(self, prefix: str, limit: int = 10) -> list[IndexHit]:
        wanted = prefix.lower()
        if not wanted or limit <= 0:
            return []

        scores: dict[int, float] = {}
        for term, postings in self._postings.items():
            if not term.startswith(wanted):
                continue
            for posting in postings:
                scores[posting.position] = scores.get(posting.position, 0.0) + posting.weighted_tf

        ranked = sorted(sorted(scores), key=lambda position: scores[position], reverse=True)
        return [self._hit(position, scores[position], [prefix]) for position in ranked[:limit]]

    def document(self, doc_id: str) -> IndexedDocument | None:
        position = self._positions.get(doc_id)
        if position is None:
            return None
        return self._documents[position]

    def stats(self) -> IndexStats:
        count = len(self._documents)
        return IndexStats(
            document_count=count,
            term_count=len(self._postings),
            posting_count=sum(len(postings) for postings in self._postings.values()),
            avg_doc_length=self._total_tokens / count if count else 0.0,
        )

    def __len__(self) -> int:
        return len(self._documents)

    def _hit(self, position: int, score: float, terms: list[str]) -> IndexHit:
        document = self._documents[position]
        metadata: dict[str, Any] = dict(document.metadata)
        return IndexHit(doc_id=document.doc_id, score=score, matched_terms=list(terms), metadata=metadata)
