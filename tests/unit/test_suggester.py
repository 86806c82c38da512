from dataclasses import dataclass

from sdk_assist.intelligence.suggester import SearchSuggester, categorize, category_of


@dataclass
class Named:
    name: str


def test_zero_results_suggest_popular_terms() -> None:
    suggestion = SearchSuggester().generate_suggestions("mesage", [], corrected_query="message")

    assert suggestion is not None
    assert suggestion.kind == "popular"
    assert suggestion.alternatives[0] == "message"
    assert len(suggestion.alternatives) == 5


def test_few_results_suggest_related_names() -> None:
    suggestion = SearchSuggester().generate_suggestions("cell", [Named("MessageCell")])

    assert suggestion is not None
    assert suggestion.kind == "related"
    assert "MessageEntity" in suggestion.alternatives
    assert "MessageCell" not in suggestion.alternatives


def test_many_results_propose_categories() -> None:
    results = [Named(f"MessageCell{index}") for index in range(20)] + [Named("GroupEntity")] * 5
    suggestion = SearchSuggester().generate_suggestions("cell", results)

    assert suggestion is not None
    assert suggestion.kind == "clarify"
    assert suggestion.categories == [("消息相关", 20), ("群组相关", 5)]
    assert suggestion.alternatives[0].startswith("消息相关 (20 个")


def test_moderate_result_count_needs_no_suggestion() -> None:
    results = [Named(f"View{index}") for index in range(10)]
    assert SearchSuggester().generate_suggestions("view", results) is None


def test_popular_terms_track_usage() -> None:
    suggester = SearchSuggester()
    suggester.update_popular_term("Barrage", 200)
    assert suggester.top_searches(1) == ["barrage"]


def test_categories() -> None:
    assert category_of("ConversationCell") == "会话相关"
    assert category_of("Foo") == "其他"
    assert categorize([Named("Foo"), Named("Bar"), Named("GroupEntity")]) == [("其他", 2), ("群组相关", 1)]
