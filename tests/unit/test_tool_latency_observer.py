from pydantic import BaseModel

from sdk_assist.agent.registry import OUTPUT_PREVIEW_CHARS, ToolRegistry, ToolSpec
from sdk_assist.obs.tracing import TraceStore


class EchoInput(BaseModel):
    text: str


def _registry() -> ToolRegistry:
    registry = ToolRegistry()

    def _handler(data: EchoInput) -> str:
        return data.text.upper()

    registry.register(
        ToolSpec(
            name="echo",
            description="uppercase",
            args_schema=EchoInput,
            handler=_handler,
        )
    )
    return registry


def test_tool_observer_captures_latency_and_payload() -> None:
    registry = _registry()

    observed = []
    registry.set_observer(observed.append)
    result = registry.execute("echo", {"text": "hello"})
    registry.set_observer(None)

    assert result == "HELLO"
    assert len(observed) == 1
    assert observed[0].name == "echo"
    assert observed[0].input_payload == {"text": "hello"}
    assert observed[0].latency_ms >= 0.0


def test_trace_store_summarises_calls() -> None:
    registry = _registry()
    store = TraceStore(max_records=2)
    registry.set_observer(store.record)

    registry.execute("echo", {"text": "a" * 1000})
    registry.execute("echo", {"text": "b"})
    registry.execute("echo", {"text": "c"})

    recent = store.list_recent()
    assert len(recent) == 2
    assert recent[-1].trace.output_preview == "C"
    assert store.get(recent[0].trace_id) is recent[0]

    summary = store.summary()
    assert summary["total_calls"] == 2
    assert summary["calls_by_tool"] == {"echo": 2}


def test_output_preview_is_truncated() -> None:
    registry = _registry()
    store = TraceStore()
    registry.set_observer(store.record)
    registry.execute("echo", {"text": "a" * 1000})

    assert len(store.list_recent()[0].trace.output_preview) == OUTPUT_PREVIEW_CHARS


def test_empty_trace_store_summary() -> None:
    assert TraceStore().summary()["total_calls"] == 0
