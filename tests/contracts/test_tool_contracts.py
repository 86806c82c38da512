import pytest
from pydantic import ValidationError

from sdk_assist.agent.registry import OUTPUT_PREVIEW_CHARS
from sdk_assist.agent.runtime import build_runtime
from sdk_assist.config import AssistSettings

TOOL_NAMES = {
    "search_api",
    "search_guide",
    "search_source",
    "get_guide",
    "read_doc",
    "read_source",
    "explain_class",
    "lookup_error",
    "diagnose",
    "list_config_options",
    "get_extension_points",
    "search_config",
    "get_config_usage",
    "classify_intent",
    "smart_assist",
    "get_recommendations",
}


def test_every_tool_is_registered_and_exported(settings: AssistSettings) -> None:
    runtime = build_runtime(settings)

    assert set(runtime.registry.names()) == TOOL_NAMES
    exported = runtime.registry.as_langchain_tools()
    assert {tool.name for tool in exported} == TOOL_NAMES
    assert all(tool.description for tool in exported)


@pytest.mark.parametrize(
    ("tool", "payload"),
    [
        ("search_api", {"query": "zzzqqq"}),
        ("search_guide", {"query": "zzzqqq"}),
        ("search_source", {"query": "zzzqqq"}),
        ("diagnose", {"symptom": "zzzqqq"}),
        ("search_config", {"query": "zzzqqq"}),
        ("list_config_options", {"component": "Missing"}),
        ("get_extension_points", {"component": "EaseChatroomUIKit"}),
        ("get_recommendations", {}),
    ],
)
def test_empty_answers_start_with_no_results(settings: AssistSettings, tool: str, payload: dict) -> None:
    runtime = build_runtime(settings)
    output = runtime.registry.execute(tool, payload)
    assert output.splitlines()[0] == "NO_RESULTS"


def test_search_lines_carry_id_and_score(settings: AssistSettings) -> None:
    runtime = build_runtime(settings)

    api = runtime.registry.execute("search_api", {"query": "send message"})
    assert api.splitlines()[0].startswith("[ios-message-cell] score=8.00 MessageCell (ios/uikit/EaseChatUIKit)")
    assert any(line.startswith("CLARIFY: 您想查询哪个平台的实现？") for line in api.splitlines())

    config = runtime.registry.execute("search_config", {"query": "primaryHue"})
    assert config.splitlines()[0].startswith("[EaseChatUIKit.primaryHue] score=")

    typo = runtime.registry.execute("search_api", {"query": "mesage send", "platform": "ios"})
    assert 'SPELL: 已自动纠正: "mesage" → "message"' in typo.splitlines()


def test_lookup_error_contract(settings: AssistSettings) -> None:
    runtime = build_runtime(settings)

    found = runtime.registry.execute("lookup_error", {"code": 508})
    assert found.splitlines()[0] == "[508] MESSAGE_EXTERNAL_LOGIC_BLOCKED: 消息被拦截"
    assert "solutions:" in found

    assert runtime.registry.execute("lookup_error", {"code": 999}) == "NOT_FOUND: error code 999"


def test_document_tools_contract(settings: AssistSettings) -> None:
    runtime = build_runtime(settings)

    guide = runtime.registry.execute("get_guide", {"topic": "quickstart"})
    assert guide.splitlines()[0] == "# quickstart 指南"
    assert "# Quick start" in guide
    assert runtime.registry.execute("get_guide", {"topic": "nothing"}) == "NOT_FOUND: guide nothing"

    assert runtime.registry.execute("read_doc", {"path": "ios/quickstart.md"}) == "# Quick start\n"
    assert runtime.registry.execute("read_doc", {"path": "ios/missing.md"}) == (
        "NOT_FOUND: document ios/missing.md"
    )


def test_read_source_contract(settings: AssistSettings) -> None:
    runtime = build_runtime(settings)
    path = "Sources/Chat/MessageCell.swift"

    whole = runtime.registry.execute("read_source", {"path": path}).splitlines()
    assert whole[0] == "```swift"
    assert whole[1] == "import UIKit"
    assert whole[-1] == "```"

    ranged = runtime.registry.execute("read_source", {"path": path, "start_line": 3, "end_line": 4})
    assert ranged == "```swift\nopen class MessageCell: UITableViewCell {\n    func updateBubble() {\n```"

    tail = runtime.registry.execute("read_source", {"path": path, "start_line": 7})
    assert tail == "```swift\n}\n```"

    missing = runtime.registry.execute("read_source", {"path": "../docs/manifest.json"})
    assert missing == "NOT_FOUND: source ../docs/manifest.json"


def test_explain_class_contract(settings: AssistSettings) -> None:
    runtime = build_runtime(settings)

    lines = runtime.registry.execute("explain_class", {"class_name": "MessageCell"}).splitlines()
    assert lines[0] == "[MessageCell] class Sources/Chat/MessageCell.swift:12"
    assert lines[1] == "open class MessageCell: UITableViewCell"
    assert "members:" in lines
    assert any(line.startswith("- MessageCell.updateBubble (method) line 80") for line in lines)

    assert runtime.registry.execute("explain_class", {"class_name": "zzzqqq"}) == "NOT_FOUND: class zzzqqq"


def test_config_usage_contract(settings: AssistSettings) -> None:
    runtime = build_runtime(settings)

    lines = runtime.registry.execute("get_config_usage", {"property_name": "primaryHue"}).splitlines()
    assert lines[0] == "[primaryHue] category=Color usages=6"
    assert lines[1] == "type: CGFloat = 203/360.0"
    assert "defined: Sources/Appearance.swift:14" in lines
    assert "affects: MessageCell, ConversationListController" in lines
    assert "- Sources/Chat/View0.swift:10 (EaseChatUIKit) let color = UIColor.theme.primaryColor" in lines
    assert lines[-1] == "... 1 more"

    missing = runtime.registry.execute("get_config_usage", {"property_name": "bubbleColor"})
    assert missing == "NOT_FOUND: config property bubbleColor"


def test_search_config_reports_spelling_fix(settings: AssistSettings) -> None:
    runtime = build_runtime(settings)
    lines = runtime.registry.execute("search_config", {"query": "avatarRadios"}).splitlines()

    assert lines[0].startswith("[EaseChatUIKit.avatarRadius] score=")
    assert any(line.startswith("SPELL: ") for line in lines)


def test_classify_intent_contract(settings: AssistSettings) -> None:
    runtime = build_runtime(settings)
    lines = runtime.registry.execute("classify_intent", {"query": "错误码508怎么解决"}).splitlines()

    assert lines[:3] == ["intent=fix_error", "label=修复错误", "confidence=100"]
    assert "error_code=508" in lines


def test_invalid_payloads_are_rejected(settings: AssistSettings) -> None:
    runtime = build_runtime(settings)

    with pytest.raises(ValidationError):
        runtime.registry.execute("lookup_error", {"code": 0})
    with pytest.raises(ValidationError):
        runtime.registry.execute("search_api", {"query": ""})
    with pytest.raises(ValidationError):
        runtime.registry.execute("get_extension_points", {"kind": "struct"})
    with pytest.raises(ValidationError):
        runtime.registry.execute(
            "read_source", {"path": "Sources/Chat/MessageCell.swift", "start_line": 5, "end_line": 2}
        )


def test_trace_preview_is_bounded(settings: AssistSettings) -> None:
    runtime = build_runtime(settings)
    runtime.registry.execute("smart_assist", {"query": "MessageCell 是什么"})

    for record in runtime.trace_store.list_recent():
        assert len(record.trace.output_preview) <= OUTPUT_PREVIEW_CHARS
