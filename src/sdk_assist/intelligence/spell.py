"""Dictionary-based spelling correction with Levenshtein distance."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from sdk_assist.config import SpellConfig
from sdk_assist.text.tokenizer import split_identifier, split_words
from sdk_assist.types import CorrectionResult, QueryCorrection

logger = logging.getLogger(__name__)

SEED_TERMS: tuple[str, ...] = (
    # messaging
    "message", "messages", "chat", "chatting", "send", "receive", "recall",
    "text", "image", "voice", "video", "file", "location", "custom",
    "body", "content", "extension", "attribute", "timestamp",
    # conversations
    "conversation", "conversations", "conv", "session", "thread",
    "unread", "read", "receipt", "pin", "pinned", "mute", "muted",
    # users
    "user", "users", "profile", "avatar", "nickname", "contact", "contacts",
    "friend", "friends", "block", "blocked", "presence", "status",
    # groups and chatrooms
    "group", "groups", "chatroom", "chatrooms", "room", "member", "members",
    "owner", "admin", "admins", "manager", "invite", "join", "leave", "kick",
    "announcement", "description", "name",
    # connection
    "login", "logout", "connect", "disconnect", "connection", "token",
    "appkey", "initialize", "init", "client", "options", "config",
    # push
    "push", "notification", "notifications", "apns", "fcm", "badge",
    "sound", "alert", "silent", "display",
    # callbacks
    "callback", "delegate", "listener", "handler", "event", "events",
    "observer", "protocol",
    # errors
    "error", "errors", "code", "exception", "fail", "failed", "failure",
    "success", "result", "response",
    # UI kit components
    "easechatuikit", "easecalluikit", "easechatroomuikit", "easeimkit",
    "chatuikit", "calluikit", "uikit", "kit",
    # UI elements
    "cell", "cells", "view", "views", "controller", "controllers",
    "bubble", "bubbles", "avatars", "button", "buttons",
    "label", "labels", "imageview", "container",
    "list", "listview", "tableview", "collectionview",
    "menu", "menus", "action", "actions", "actionsheet",
    "input", "inputbar", "toolbar", "navbar", "titlebar",
    # appearance
    "appearance", "style", "styles", "theme", "themes", "color", "colors",
    "font", "fonts", "size", "radius", "corner", "background", "foreground",
    "primary", "secondary", "hue", "tint",
    # layout
    "layout", "frame", "bounds", "constraint", "constraints",
    "width", "height", "margin", "padding", "inset", "offset",
    # identifier parts
    "entity", "model", "data", "provider", "service",
    "register", "factory", "builder", "adapter", "driver",
    "default", "base", "abstract", "detail", "preview", "render",
    "get", "set", "add", "remove", "delete", "update", "create",
    "load", "reload", "refresh", "fetch", "save", "clear",
    "show", "hide", "present", "dismiss", "pop",
    "unregister", "configure", "setup",
    "handle", "process", "parse", "convert", "transform",
    # Swift keywords
    "override", "func", "class", "struct", "enum",
    "public", "private", "open", "internal", "static", "lazy",
    "optional", "required", "convenience",
    # pinyin
    "xiaoxi", "fasong", "jieshou", "huihua", "qunzu", "liaotianshi",
    "touxiang", "nicheng", "yonghu", "denglu", "tuichu", "lianjie",
    "cuowu", "tuisong", "tongzhi", "yangshi", "zhuti", "yanse",
)

WORD_FREQUENCY: Mapping[str, int] = {
    "message": 100,
    "conversation": 90,
    "chat": 85,
    "user": 80,
    "group": 75,
    "cell": 70,
    "view": 70,
    "controller": 65,
    "bubble": 60,
    "avatar": 60,
    "callback": 55,
    "delegate": 55,
    "appearance": 50,
    "custom": 50,
    "error": 45,
    "send": 45,
    "receive": 45,
}


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


class SpellCorrector:
    """Corrects individual query words against a growable domain dictionary.

    The dictionary starts from a fixed seed and grows as shards are loaded
    (`add_words`, `add_identifier`). Each search engine owns its own instance.
    """

    def __init__(
        self,
        config: SpellConfig | None = None,
        *,
        seed: Iterable[str] = SEED_TERMS,
        frequencies: Mapping[str, int] = WORD_FREQUENCY,
    ) -> None:
        self.config = config or SpellConfig()
        # insertion-ordered: equal-score candidates resolve in seed order
        self._dictionary: dict[str, None] = dict.fromkeys(word.lower() for word in seed)
        self._frequency: dict[str, int] = dict(frequencies)

    def add_words(self, words: Iterable[str]) -> None:
        for word in words:
            if word and len(word) >= self.config.min_word_length:
                self._dictionary.setdefault(word.lower(), None)

    def add_identifier(self, identifier: str) -> None:
        self.add_words(split_identifier(identifier).split())

    def is_known_word(self, word: str) -> bool:
        return word.lower() in self._dictionary

    @property
    def dictionary_size(self) -> int:
        return len(self._dictionary)

    def correct(self, word: str) -> CorrectionResult:
        lowered = word.lower()
        if lowered in self._dictionary or len(word) < self.config.min_word_length:
            return CorrectionResult(original=word, corrected=word, is_corrected=False, confidence=1.0)

        max_distance = self.config.max_edit_distance
        candidates: list[tuple[str, int, float]] = []
        for entry in self._dictionary:
            length_delta = abs(len(entry) - len(lowered))
            if length_delta > max_distance:
                continue
            distance = levenshtein(lowered, entry)
            if distance > max_distance:
                continue
            score = (
                (max_distance - distance) * 10
                + self._frequency.get(entry, 0)
                - 0.1 * length_delta
            )
            candidates.append((entry, distance, score))

        if not candidates:
            return CorrectionResult(original=word, corrected=word, is_corrected=False, confidence=0.5)

        candidates.sort(key=lambda candidate: candidate[2], reverse=True)
        best, distance, _ = candidates[0]
        suggestions = [entry for entry, _, _ in candidates[1 : 1 + self.config.max_suggestions]]
        return CorrectionResult(
            original=word,
            corrected=best,
            is_corrected=True,
            confidence=self._confidence(lowered, best, distance),
            suggestions=suggestions,
        )

    def correct_query(self, query: str) -> QueryCorrection:
        corrections = [self.correct(token) for token in split_words(query)]
        corrected_query = " ".join(correction.corrected for correction in corrections)
        changed = [correction for correction in corrections if correction.is_corrected]

        summary = None
        if changed:
            parts = ", ".join(f'"{c.original}" → "{c.corrected}"' for c in changed)
            summary = f"已自动纠正: {parts}"
            logger.debug("corrected query %r to %r", query, corrected_query)

        return QueryCorrection(
            original_query=query,
            corrected_query=corrected_query,
            has_corrected=bool(changed),
            corrections=corrections,
            summary=summary,
        )

    def similar_words(self, word: str, max_results: int = 5) -> list[str]:
        lowered = word.lower()
        max_distance = self.config.max_edit_distance
        scored: list[tuple[int, str]] = []
        for entry in self._dictionary:
            if abs(len(entry) - len(lowered)) > max_distance:
                continue
            distance = levenshtein(lowered, entry)
            if distance <= max_distance:
                scored.append((distance, entry))
        scored.sort(key=lambda item: item[0])
        return [entry for _, entry in scored[:max_results]]

    def _confidence(self, original: str, corrected: str, distance: int) -> float:
        longest = max(len(original), len(corrected))
        base = 1 - distance / longest
        length_ratio = min(len(original), len(corrected)) / longest
        first_char = 0.1 if original[:1] == corrected[:1] else 0.0
        frequency = 0.05 if corrected in self._frequency else 0.0
        return min(base * 0.6 + length_ratio * 0.2 + first_char + frequency, self.config.max_confidence)
