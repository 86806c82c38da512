from pathlib import Path

import pytest

from sdk_assist.config import SearchConfig
from sdk_assist.errors import ConfigurationError
from sdk_assist.retrieval.config_search import ConfigSearchEngine


def test_list_config_options(data_dir: Path) -> None:
    engine = ConfigSearchEngine(data_dir / "configs")

    options = engine.list_config_options()
    assert {name: len(props) for name, props in options.items()} == {
        "EaseChatUIKit": 3,
        "EaseChatroomUIKit": 1,
    }
    assert list(engine.list_config_options("EaseChatroomUIKit")) == ["EaseChatroomUIKit"]
    assert engine.list_config_options("Missing") == {}


def test_extension_points_filter_by_kind(data_dir: Path) -> None:
    engine = ConfigSearchEngine(data_dir / "configs")

    protocols = engine.get_extension_points(kind="protocol")
    assert {name: [point.name for point in points] for name, points in protocols.items()} == {
        "EaseChatUIKit": ["MessageListViewActionEventsDelegate"]
    }
    assert engine.get_extension_points("EaseChatroomUIKit") == {}


def test_component_info(data_dir: Path) -> None:
    engine = ConfigSearchEngine(data_dir / "configs")

    info = engine.get_component_info("EaseChatroomUIKit")
    assert info is not None
    assert info.description == "Chatroom UI components"
    assert engine.get_component_info("Missing") is None
    assert [config.name for config in engine.get_all_components()] == [
        "EaseChatUIKit",
        "EaseChatroomUIKit",
    ]


def test_substring_searches(data_dir: Path) -> None:
    engine = ConfigSearchEngine(data_dir / "configs")

    properties = engine.search_config_property("radius")
    assert [prop.name for prop in properties["EaseChatUIKit"]] == ["avatarRadius"]

    extensions = engine.search_extension_point("register")
    assert [point.name for point in extensions["EaseChatUIKit"]] == ["ComponentsRegister"]


def test_ranked_search(data_dir: Path) -> None:
    engine = ConfigSearchEngine(data_dir / "configs")

    response = engine.search("primaryHue")
    assert response.loaded_platforms == ["ios"]
    assert response.spell_correction is None
    top = response.results[0]
    assert (top.kind, top.name, top.component, top.platform) == (
        "property",
        "primaryHue",
        "EaseChatUIKit",
        "ios",
    )
    assert top.detail == "CGFloat = 203/360.0"

    extension = engine.search("register").results[0]
    assert extension.kind == "extension"
    assert extension.detail == "class"

    assert engine.search("zzzqqq").results == []


def test_ranked_search_corrects_and_expands(data_dir: Path) -> None:
    engine = ConfigSearchEngine(data_dir / "configs")

    response = engine.search("avatarRadios")
    assert response.results[0].name == "avatarRadius"
    assert response.spell_correction is not None
    assert response.spell_correction.corrected_query == "avatarradius"
    assert "头像" in response.expanded_terms


def test_ranked_search_uses_configured_default_limit(data_dir: Path) -> None:
    engine = ConfigSearchEngine(data_dir / "configs", search_config=SearchConfig(default_limit=1))

    assert len(engine.search("hue radius").results) == 1
    assert len(engine.search("hue radius", limit=3).results) == 2


def test_config_usage(data_dir: Path) -> None:
    engine = ConfigSearchEngine(data_dir / "configs")

    usage = engine.get_config_usage("primaryHue")
    assert usage is not None
    assert usage.category == "Color"
    assert usage.usage_count == 6
    assert usage.config_property.default_value == "203/360.0"
    assert usage.affected_components == ["MessageCell", "ConversationListController"]

    assert engine.get_config_usage("primaryHue", "EaseChatUIKit") is not None
    assert engine.get_config_usage("primaryHue", "EaseChatroomUIKit") is None
    assert engine.get_config_usage("missing") is None


def test_config_usage_without_analysis_file(data_dir: Path) -> None:
    (data_dir / "configs" / "impact-analysis.json").unlink()
    engine = ConfigSearchEngine(data_dir / "configs")

    with pytest.raises(ConfigurationError):
        engine.get_config_usage("primaryHue")
