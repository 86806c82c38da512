from pathlib import Path

from sdk_assist.config import SearchConfig
from sdk_assist.retrieval.source_search import SourceSearchEngine


def test_class_query_ranks_defining_file_first(data_dir: Path) -> None:
    engine = SourceSearchEngine(data_dir / "sources")
    response = engine.search("MessageCell")

    paths = [result.path for result in response.results]
    assert paths == [
        "Sources/Chat/MessageCell.swift",
        "Sources/Chat/CustomMessageCell.swift",
        "Sources/Room/GiftBarrageCell.swift",
    ]
    top = response.results[0]
    assert top.matched_symbols == ["MessageCell", "MessageCell.updateBubble"]
    assert top.component == "EaseChatUIKit"
    assert top.tags == ["ios", "EaseChatUIKit"]
    assert top.description == "来自 EaseChatUIKit 的源文件"
    assert top.name == "MessageCell.swift"
    assert response.loaded_shards == ["EaseChatUIKit", "EaseChatroomUIKit"]
    assert "消息" in response.expanded_terms


def test_results_spread_over_components_are_ambiguous(data_dir: Path) -> None:
    response = SourceSearchEngine(data_dir / "sources").search("MessageCell")

    assert response.ambiguity.has_ambiguity
    assert response.ambiguity.kind == "component"
    assert response.ambiguity.options[0].value == "EaseChatUIKit"


def test_component_filter_limits_shards(data_dir: Path) -> None:
    engine = SourceSearchEngine(data_dir / "sources")
    response = engine.search("ConversationListController", component="EaseChatUIKit")

    assert response.loaded_shards == ["EaseChatUIKit"]
    assert response.results[0].path == "Sources/Conversation/ConversationListController.swift"
    assert not response.ambiguity.has_ambiguity


def test_limit_truncates_results(data_dir: Path) -> None:
    response = SourceSearchEngine(data_dir / "sources").search("MessageCell", limit=1)
    assert len(response.results) == 1


def test_default_limit_comes_from_search_config(data_dir: Path) -> None:
    engine = SourceSearchEngine(data_dir / "sources", search_config=SearchConfig(default_limit=2))

    assert len(engine.search("MessageCell").results) == 2
    assert len(engine.search("MessageCell", limit=3).results) == 3


def test_unmatched_query_returns_empty(data_dir: Path) -> None:
    response = SourceSearchEngine(data_dir / "sources").search("zzzqqq")

    assert response.results == []
    assert not response.ambiguity.has_ambiguity
    assert response.expanded_terms == []


def test_find_class_and_members(data_dir: Path) -> None:
    engine = SourceSearchEngine(data_dir / "sources")

    symbol = engine.find_class("MessageCell")
    assert symbol is not None
    assert symbol.file == "Sources/Chat/MessageCell.swift"
    assert symbol.line == 12

    assert engine.find_class("MissingCell") is None
    assert [member.name for member in engine.find_class_members("MessageCell")] == [
        "MessageCell.updateBubble"
    ]


def test_component_listing(data_dir: Path) -> None:
    engine = SourceSearchEngine(data_dir / "sources")

    assert engine.components() == ["EaseChatUIKit", "EaseChatroomUIKit"]
    assert engine.component_stats()["EaseChatUIKit"] == {"files": 3, "symbols": 4, "size_bytes": 0}


def test_read_source_and_line_ranges(data_dir: Path) -> None:
    engine = SourceSearchEngine(data_dir / "sources")

    content = engine.read_source("Sources/Chat/MessageCell.swift")
    assert content is not None
    assert content.splitlines()[2] == "open class MessageCell: UITableViewCell {"

    assert engine.get_file_lines("Sources/Chat/MessageCell.swift", 3, 4) == (
        "open class MessageCell: UITableViewCell {\n    func updateBubble() {"
    )
    # ranges are clamped to the file
    assert engine.get_file_lines("Sources/Chat/MessageCell.swift", 6, 100) == "    }\n}"


def test_read_source_stays_inside_sources_dir(data_dir: Path) -> None:
    engine = SourceSearchEngine(data_dir / "sources")

    assert engine.read_source("../docs/manifest.json") is None
    assert engine.read_source("Sources/Chat/Missing.swift") is None
    assert engine.get_file_lines("Sources/Chat/Missing.swift", 1, 2) is None
