from sdk_assist.text.tokenizer import contains_cjk, split_identifier, split_words, tokenize


def test_identifier_runs_emit_whole_then_parts() -> None:
    assert tokenize("sendMessage") == ["sendmessage", "send", "message"]
    assert tokenize("send") == ["send"]


def test_cjk_runs_emit_whole_unigrams_then_bigrams() -> None:
    assert tokenize("消息发送") == ["消息发送", "消", "息", "发", "送", "消息", "息发", "发送"]
    assert tokenize("消息") == ["消息", "消", "息"]
    assert tokenize("群") == ["群"]


def test_mixed_text_keeps_latin_before_cjk() -> None:
    assert tokenize("MessageCell 气泡") == ["messagecell", "message", "cell", "气泡", "气", "泡"]


def test_semantic_mode_drops_stop_words_only() -> None:
    assert tokenize("how to send the message", semantic=True) == ["send", "message"]
    assert tokenize("how to send the message") == ["how", "to", "send", "the", "message"]


def test_split_identifier_handles_acronyms() -> None:
    assert split_identifier("HTTPServer") == "http server"
    assert split_identifier("ConversationListController") == "conversation list controller"


def test_split_words_and_cjk_detection() -> None:
    assert split_words("mesage, send-now") == ["mesage", "send", "now"]
    assert contains_cjk("abc消息")
    assert not contains_cjk("abc")
