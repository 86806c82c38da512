"""Shared text normalization for indexing, matching and correction."""

from __future__ import annotations

import re

_LATIN_RUN = re.compile(r"[A-Za-z][A-Za-z0-9]*")
_CJK_RUN = re.compile(r"[\u4e00-\u9fa5]+")
_LOWER_UPPER = re.compile(r"([a-z])([A-Z])")
_ACRONYM_WORD = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"[\s\-_.,;:!?]+")

STOP_WORDS: frozenset[str] = frozenset(
    {
        # Chinese function words
        "的", "是", "在", "了", "和", "与", "或", "一个", "这个", "那个",
        "如何", "怎么", "怎样", "什么", "为什么", "哪个", "哪些", "可以", "能够",
        # English function words
        "the", "a", "an", "is", "are", "to", "for", "of", "in", "on",
        "how", "what", "why", "which", "when", "where",
        "can", "could", "would", "should", "do", "does", "did",
        "be", "been", "being",
    }
)


def split_identifier(text: str) -> str:
    """Insert word boundaries inside camel-case identifiers and lower-case.

    `sendMessage` becomes `send message`; `HTTPServer` becomes `http server`.
    """
    spaced = _LOWER_UPPER.sub(r"\1 \2", text)
    spaced = _ACRONYM_WORD.sub(r"\1 \2", spaced)
    return spaced.lower()


def split_words(text: str) -> list[str]:
    """Split on whitespace and punctuation, keeping every non-empty piece."""
    return [part for part in _WORD_BOUNDARY.split(text.lower()) if part]


def tokenize(text: str, *, semantic: bool = False) -> list[str]:
    """Convert text to tokens in emission order, duplicates preserved.

    Three families are always produced together:

    1. Latin runs (`[a-z][a-z0-9]*` after lower-casing), each followed by its
       identifier-split parts when the run is a compound identifier.
    2. CJK runs, emitted whole, then as single characters, then as adjacent
       bigrams. A two-character run is its own only bigram, so bigrams start
       at three characters.
    3. Identifier splitting (see `split_identifier`), folded into family 1.

    With `semantic=True` the fixed stop-word set is removed. Index search and
    spell correction always call with the default so literal terms survive.
    """

    tokens: list[str] = []
    for run in _LATIN_RUN.findall(text):
        tokens.append(run.lower())
        parts = split_identifier(run).split()
        if len(parts) > 1:
            tokens.extend(parts)

    for segment in _CJK_RUN.findall(text):
        tokens.append(segment)
        if len(segment) > 1:
            tokens.extend(segment)
        if len(segment) > 2:
            tokens.extend(segment[i : i + 2] for i in range(len(segment) - 1))

    if semantic:
        return [token for token in tokens if token not in STOP_WORDS]
    return tokens


def contains_cjk(text: str) -> bool:
    return _CJK_RUN.search(text) is not None
