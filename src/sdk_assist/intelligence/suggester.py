"""Follow-up suggestions for too-few, too-many or zero search results."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol

from sdk_assist.types import SearchSuggestion

MIN_RESULTS_FOR_SUGGESTION = 3
MAX_RESULTS_FOR_CLARIFY = 20
MAX_SUGGESTIONS = 5

POPULAR_TERMS: Mapping[str, int] = {
    "message": 100,
    "conversation": 95,
    "chat": 90,
    "group": 85,
    "user": 80,
    "avatar": 75,
    "bubble": 70,
    "cell": 70,
    "controller": 65,
    "view": 60,
    "send": 55,
    "receive": 50,
    "callback": 50,
    "delegate": 50,
    "appearance": 45,
    "custom": 45,
    "style": 40,
    "theme": 40,
}

CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("消息相关", ("message", "msg", "text", "bubble", "send", "receive")),
    ("会话相关", ("conversation", "conv", "chat", "thread")),
    ("联系人相关", ("contact", "user", "friend", "profile", "avatar")),
    ("群组相关", ("group", "member", "owner", "admin")),
    ("UI组件", ("cell", "view", "controller", "button", "label")),
    ("样式配置", ("appearance", "style", "theme", "color", "font")),
)
OTHER_CATEGORY = "其他"

RELATED_NAMES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Message", ("MessageCell", "MessageEntity", "CustomMessageCell")),
    ("Conversation", ("ConversationCell", "ConversationListController", "ConversationEntity")),
    ("Contact", ("ContactCell", "ContactListController", "ContactEntity")),
    ("Group", ("GroupDetailController", "GroupMemberCell", "GroupEntity")),
    ("Chat", ("ChatBarrageCell", "ChatroomView", "ChatClient")),
)


class NamedResult(Protocol):
    """Anything with a display name; search results of every engine qualify."""

    @property
    def name(self) -> str: ...


class SearchSuggester:
    def __init__(self, popular_terms: Mapping[str, int] = POPULAR_TERMS) -> None:
        self._popular: dict[str, int] = dict(popular_terms)

    def generate_suggestions(
        self,
        query: str,
        results: Sequence[NamedResult],
        corrected_query: str | None = None,
        expanded_terms: Sequence[str] = (),
    ) -> SearchSuggestion | None:
        """Pick a suggestion for the result count, or `None` when it looks right.

        Zero results suggest popular terms, up to three suggest related
        names, and twenty or more propose narrowing by category.
        """
        count = len(results)
        if count == 0:
            return SearchSuggestion(
                kind="popular",
                message="未找到匹配结果，您可能想搜索：",
                alternatives=self._popular_matches(query, corrected_query),
            )
        if count <= MIN_RESULTS_FOR_SUGGESTION:
            related = self._related_names(results)
            if related:
                return SearchSuggestion(
                    kind="related",
                    message=f"找到 {count} 个结果，您可能还想搜索：",
                    alternatives=related,
                )
            return None
        if count >= MAX_RESULTS_FOR_CLARIFY:
            categories = categorize(results)
            examples = _category_examples(results)
            return SearchSuggestion(
                kind="clarify",
                message=f"找到 {count}+ 个结果，建议按类别缩小范围：",
                alternatives=[
                    f"{category} ({size} 个，如: {', '.join(examples[category][:2])})"
                    for category, size in categories
                ],
                categories=categories,
            )
        return None

    def update_popular_term(self, term: str, weight: int = 1) -> None:
        key = term.lower()
        self._popular[key] = self._popular.get(key, 0) + weight

    def top_searches(self, limit: int = 10) -> list[str]:
        ranked = sorted(self._popular.items(), key=lambda item: item[1], reverse=True)
        return [term for term, _ in ranked[:limit]]

    def _popular_matches(self, query: str, corrected_query: str | None) -> list[str]:
        lowered = query.lower()
        corrected = corrected_query.lower() if corrected_query else None
        scored: list[tuple[str, float]] = []
        for term, frequency in self._popular.items():
            score = 0.0
            if term in lowered or (lowered and lowered in term):
                score += 100
            if lowered[:1] == term[:1]:
                score += 20
            if corrected == term:
                score += 50
            score += frequency / 10
            scored.append((term, score))
        scored.sort(key=lambda item: item[1], reverse=True)
        return [term for term, _ in scored[:MAX_SUGGESTIONS]]

    def _related_names(self, results: Sequence[NamedResult]) -> list[str]:
        present = {result.name for result in results}
        related: dict[str, None] = {}
        for result in results:
            for marker, names in RELATED_NAMES:
                if marker in result.name:
                    related.update(dict.fromkeys(names))
            if "Cell" in result.name:
                base = result.name.replace("Cell", "")
                related.update(dict.fromkeys((f"{base}Controller", f"{base}View")))

        suggestions = [name for name in related if name not in present]
        if len(suggestions) < MIN_RESULTS_FOR_SUGGESTION:
            for term in self.top_searches(MAX_SUGGESTIONS):
                if term not in suggestions:
                    suggestions.append(term)
        return suggestions[:MAX_SUGGESTIONS]


def category_of(name: str) -> str:
    lowered = name.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return OTHER_CATEGORY


def categorize(results: Sequence[NamedResult]) -> list[tuple[str, int]]:
    counts: dict[str, int] = {}
    for result in results:
        category = category_of(result.name)
        counts[category] = counts.get(category, 0) + 1
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def _category_examples(results: Sequence[NamedResult]) -> dict[str, list[str]]:
    examples: dict[str, list[str]] = {}
    for result in results:
        examples.setdefault(category_of(result.name), []).append(result.name)
    return examples
