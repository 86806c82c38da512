"""Named tool operations with pydantic argument models."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, ConfigDict, Field

from sdk_assist.obs.tracing import Timer
from sdk_assist.types import ToolTrace

logger = logging.getLogger(__name__)

OUTPUT_PREVIEW_CHARS = 320

Observer = Callable[[ToolTrace], None]


class ToolSpec(BaseModel):
    """A tool: its argument model, text-producing handler and tags."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(min_length=1)
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[Any], str]
    tags: list[str] = Field(default_factory=list)

    def invoke(self, payload: Mapping[str, Any]) -> str:
        arguments = self.args_schema.model_validate(dict(payload))
        return self.handler(arguments)


class ToolRegistry:
    """Validates payloads, runs handlers and reports every call to an observer.

    Tools are also exportable as LangChain `StructuredTool`s for agent hosts
    that speak that interface; those calls go through the same observer.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}
        self._observer: Observer | None = None

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    @property
    def observer(self) -> Observer | None:
        return self._observer

    def set_observer(self, observer: Observer | None) -> None:
        self._observer = observer

    def execute(self, name: str, payload: Mapping[str, Any] | None = None) -> str:
        spec = self._tools.get(name)
        if spec is None:
            raise KeyError(f"Unknown tool: {name}")
        return self._run(spec, dict(payload or {}))

    def names(self) -> list[str]:
        return list(self._tools)

    def specs(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def as_langchain_tools(self) -> list[StructuredTool]:
        return [
            StructuredTool.from_function(
                name=spec.name,
                description=spec.description,
                args_schema=spec.args_schema,
                func=self._bind(spec),
            )
            for spec in self._tools.values()
        ]

    def _bind(self, spec: ToolSpec) -> Callable[..., str]:
        def _call(**kwargs: Any) -> str:
            return self._run(spec, kwargs)

        return _call

    def _run(self, spec: ToolSpec, payload: dict[str, Any]) -> str:
        with Timer() as timer:
            output = spec.invoke(payload)
        logger.debug("tool %s returned %d chars in %.1f ms", spec.name, len(output), timer.elapsed_ms)

        if self._observer is not None:
            self._observer(
                ToolTrace(
                    name=spec.name,
                    input_payload=payload,
                    output_preview=output[:OUTPUT_PREVIEW_CHARS],
                    latency_ms=timer.elapsed_ms,
                )
            )
        return output
