from sdk_assist.intelligence.intent import IntentClassifier, extract_entities
from sdk_assist.types import UserIntent


def test_error_code_query_is_fix_error() -> None:
    result = IntentClassifier().classify("错误码508怎么解决")

    assert result.intent is UserIntent.FIX_ERROR
    assert result.entities.error_code == 508
    assert result.confidence >= 90


def test_message_type_query_is_customize_message() -> None:
    result = IntentClassifier().classify("如何自定义订单消息")

    assert result.intent is UserIntent.CUSTOMIZE_MESSAGE
    assert result.entities.message_name == "订单"


def test_class_question_is_understand_class() -> None:
    result = IntentClassifier().classify("MessageCell 是什么")

    assert result.intent is UserIntent.UNDERSTAND_CLASS
    assert result.entities.class_name == "MessageCell"


def test_how_to_query_is_implement_feature() -> None:
    result = IntentClassifier().classify("how to send a message")

    assert result.intent is UserIntent.IMPLEMENT_FEATURE
    assert result.entities.feature_name == "message"


def test_semantic_fallback_sets_sub_intent() -> None:
    result = IntentClassifier().classify("头像 缓存 刷新")

    assert result.intent is UserIntent.CUSTOMIZE_UI
    assert result.sub_intent == "user_profile_update"
    assert 15 < result.confidence < 100


def test_unrelated_query_is_unknown() -> None:
    result = IntentClassifier().classify("hello there")

    assert result.intent is UserIntent.UNKNOWN
    assert result.confidence == 0.0
    assert result.sub_intent is None


def test_confidence_stays_within_bounds() -> None:
    classifier = IntentClassifier()
    queries = [
        "错误码508怎么解决",
        "error code 200 login failed crash",
        "EaseChatUIKit primaryHue 怎么修改颜色",
        "自定义订单消息 CustomMessageCell 怎么继承",
        "",
        "hello",
    ]
    for query in queries:
        assert 0.0 <= classifier.classify(query).confidence <= 100.0


def test_entity_extraction_normalises_and_filters() -> None:
    entities = extract_entities("EaseChatUIKit 的 primaryHue 怎么改")
    assert entities.component_name == "EaseChatUIKit"
    assert entities.config_property == "primaryHue"
    assert entities.class_name is None

    assert extract_entities("chatuikit").component_name == "EaseChatUIKit"
    assert extract_entities("错误码 1200").error_code is None
    assert extract_entities("error code: 999").error_code == 999


def test_describe_returns_label() -> None:
    assert IntentClassifier.describe(UserIntent.FIX_ERROR) == "修复错误"
    assert IntentClassifier.describe(UserIntent.UNKNOWN) == "未知意图"
