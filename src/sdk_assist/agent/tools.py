"""Built-in tools exposed to the agent host."""

from __future__ import annotations

import sys
from dataclasses import fields
from pathlib import PurePosixPath
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from sdk_assist.agent.assistant import SdkAssistant
from sdk_assist.agent.registry import ToolRegistry, ToolSpec
from sdk_assist.retrieval.config_search import ConfigSearchEngine
from sdk_assist.retrieval.doc_search import DocSearchEngine
from sdk_assist.retrieval.manifest import ConfigImpact, ErrorCode
from sdk_assist.retrieval.source_search import SourceSearchEngine
from sdk_assist.types import (
    AmbiguityDetection,
    QueryCorrection,
    SearchContext,
    SearchSuggestion,
    SourceSearchResult,
)

NO_RESULTS = "NO_RESULTS"
MAX_USAGE_EXAMPLES = 5

SOURCE_LANGUAGES: dict[str, str] = {
    ".swift": "swift",
    ".kt": "kotlin",
    ".java": "java",
    ".m": "objectivec",
    ".h": "objectivec",
}


class SearchApiInput(BaseModel):
    query: str = Field(min_length=1)
    platform: str | None = None
    layer: Literal["sdk", "uikit", "demo"] | None = None
    component: str | None = None
    limit: int | None = Field(default=None, ge=1, le=50)


class SearchGuideInput(BaseModel):
    query: str = Field(min_length=1)
    platform: str | None = None
    limit: int | None = Field(default=None, ge=1, le=20)


class SearchSourceInput(BaseModel):
    query: str = Field(min_length=1)
    component: str | None = None
    limit: int | None = Field(default=None, ge=1, le=50)


class GetGuideInput(BaseModel):
    topic: str = Field(min_length=1)
    platform: str | None = None


class ReadDocInput(BaseModel):
    path: str = Field(min_length=1)


class ReadSourceInput(BaseModel):
    path: str = Field(min_length=1)
    start_line: int | None = Field(default=None, ge=1)
    end_line: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def check_range(self) -> ReadSourceInput:
        if self.start_line and self.end_line and self.end_line < self.start_line:
            raise ValueError("end_line must not be before start_line")
        return self


class ExplainClassInput(BaseModel):
    class_name: str = Field(min_length=1)
    component: str | None = None


class LookupErrorInput(BaseModel):
    code: int = Field(ge=1)


class DiagnoseInput(BaseModel):
    symptom: str = Field(min_length=1)


class ListConfigInput(BaseModel):
    component: str = "all"
    platform: str | None = None


class ExtensionPointsInput(BaseModel):
    component: str = "all"
    kind: Literal["protocol", "class", "all"] = "all"
    platform: str | None = None


class ConfigUsageInput(BaseModel):
    property_name: str = Field(min_length=1)
    component: str = "all"


class SearchConfigInput(BaseModel):
    query: str = Field(min_length=1)
    platform: str | None = None
    limit: int | None = Field(default=None, ge=1, le=50)


class ClassifyIntentInput(BaseModel):
    query: str = Field(min_length=1)


class SmartAssistInput(BaseModel):
    query: str = Field(min_length=1)
    session_id: str | None = None


class RecommendationsInput(BaseModel):
    session_id: str | None = None
    limit: int = Field(default=5, ge=1, le=10)


def register_builtin_tools(
    registry: ToolRegistry,
    *,
    source: SourceSearchEngine,
    docs: DocSearchEngine,
    configs: ConfigSearchEngine,
    assistant: SdkAssistant,
) -> None:
    """Register the default tool set.

    Tools:
    - `search_api` / `search_guide`: docs search with correction and expansion.
    - `search_source`: source files ranked by class, symbol and path.
    - `get_guide` / `read_doc` / `read_source`: full document and source text.
    - `explain_class`: a class declaration with its members.
    - `lookup_error` / `diagnose`: error-code lookup and symptom diagnosis.
    - `list_config_options` / `get_extension_points` / `search_config`: UIKit configuration.
    - `get_config_usage`: where a configuration property is read.
    - `classify_intent` / `smart_assist` / `get_recommendations`: query understanding.

    Search tools answer one `[id] score=... detail` line per hit, or `NO_RESULTS`.
    Lookups of a single named item answer `NOT_FOUND: ...` when it is missing.
    """

    def _search_api(data: SearchApiInput) -> str:
        context = SearchContext(platform=data.platform, layer=data.layer, component=data.component)
        response = docs.search_api(data.query, context, data.limit)
        lines = []
        for result in response.results:
            scope = "/".join(part for part in (result.platform, result.layer, result.component) if part)
            lines.append(
                f"[{result.module}] score={result.score:.2f} {result.name} ({scope}) "
                f"{_truncate(result.description, 160)}"
            )
        return _with_notes(
            lines,
            correction=response.spell_correction,
            ambiguity=response.ambiguity,
            suggestion=response.suggestion,
        )

    def _search_guide(data: SearchGuideInput) -> str:
        response = docs.search_guide(data.query, data.platform, data.limit)
        lines = [
            f"[{result.id}] score={result.score:.2f} {result.title} {result.path}"
            for result in response.results
        ]
        return _with_notes(lines, correction=response.spell_correction)

    def _search_source(data: SearchSourceInput) -> str:
        response = source.search(data.query, data.component, data.limit)
        lines = [_source_line(result) for result in response.results]
        return _with_notes(lines, ambiguity=response.ambiguity)

    def _get_guide(data: GetGuideInput) -> str:
        path = docs.guide_path(data.topic, data.platform)
        if path is None:
            return f"NOT_FOUND: guide {data.topic}"
        content = docs.read_document(path)
        if content is None:
            return f"NOT_FOUND: document {path}"
        return f"# {data.topic} 指南\n\n{content}"

    def _read_doc(data: ReadDocInput) -> str:
        content = docs.read_document(data.path)
        if content is None:
            return f"NOT_FOUND: document {data.path}"
        return content

    def _read_source(data: ReadSourceInput) -> str:
        if data.start_line is None and data.end_line is None:
            content = source.read_source(data.path)
        else:
            end_line = data.end_line if data.end_line is not None else sys.maxsize
            content = source.get_file_lines(data.path, data.start_line or 1, end_line)
        if content is None:
            return f"NOT_FOUND: source {data.path}"
        language = SOURCE_LANGUAGES.get(PurePosixPath(data.path).suffix, "")
        return f"```{language}\n{content}\n```"

    def _explain_class(data: ExplainClassInput) -> str:
        symbol = source.find_class(data.class_name, data.component)
        if symbol is None:
            # fall back to files that mention the name
            response = source.search(data.class_name, data.component, 3)
            if not response.results:
                return f"NOT_FOUND: class {data.class_name}"
            return "\n".join(
                [f"NOT_FOUND: class {data.class_name}", "candidates:"]
                + [_source_line(result) for result in response.results]
            )

        lines = [f"[{symbol.name}] {symbol.type} {symbol.file}:{symbol.line}"]
        if symbol.signature:
            lines.append(symbol.signature)
        if symbol.description:
            lines.append(symbol.description)
        members = source.find_class_members(data.class_name, data.component)
        if members:
            lines.append("members:")
            lines.extend(
                f"- {member.name} ({member.type}) line {member.line}"
                + (f"  {member.signature}" if member.signature else "")
                for member in members
            )
        return "\n".join(lines)

    def _lookup_error(data: LookupErrorInput) -> str:
        error = docs.lookup_error(data.code)
        if error is None:
            return f"NOT_FOUND: error code {data.code}"
        return _format_error(error)

    def _diagnose(data: DiagnoseInput) -> str:
        errors = docs.diagnose(data.symptom)
        if not errors:
            return NO_RESULTS
        return "\n".join(f"[{error.code}] {error.name}: {error.brief}" for error in errors)

    def _list_config(data: ListConfigInput) -> str:
        options = configs.list_config_options(data.component, data.platform)
        lines = []
        for component, properties in options.items():
            lines.append(f"{component}:")
            for prop in properties:
                default = f" = {prop.default_value}" if prop.default_value is not None else ""
                lines.append(f"  - {prop.name}: {prop.type}{default}  {prop.description}".rstrip())
        return "\n".join(lines) if lines else NO_RESULTS

    def _extension_points(data: ExtensionPointsInput) -> str:
        points = configs.get_extension_points(data.component, data.kind, data.platform)
        lines = []
        for component, extensions in points.items():
            lines.append(f"{component}:")
            for point in extensions:
                methods = f" methods={','.join(point.methods)}" if point.methods else ""
                lines.append(f"  - {point.name} ({point.type}){methods}  {point.description}".rstrip())
        return "\n".join(lines) if lines else NO_RESULTS

    def _search_config(data: SearchConfigInput) -> str:
        response = configs.search(data.query, data.platform, data.limit)
        lines = [
            f"[{hit.component}.{hit.name}] score={hit.score:.2f} {hit.kind} {hit.detail} "
            f"{_truncate(hit.description, 160)}".rstrip()
            for hit in response.results
        ]
        return _with_notes(lines, correction=response.spell_correction)

    def _config_usage(data: ConfigUsageInput) -> str:
        impact = configs.get_config_usage(data.property_name, data.component)
        if impact is None:
            return f"NOT_FOUND: config property {data.property_name}"
        return _format_usage(impact)

    def _classify_intent(data: ClassifyIntentInput) -> str:
        result = assistant.classify(data.query)
        lines = [
            f"intent={result.intent.value}",
            f"label={assistant.classifier.describe(result.intent)}",
            f"confidence={result.confidence:.0f}",
        ]
        if result.sub_intent:
            lines.append(f"sub_intent={result.sub_intent}")
        entities = result.entities
        for slot in fields(entities):
            value = getattr(entities, slot.name)
            if value is not None:
                lines.append(f"{slot.name}={value}")
        return "\n".join(lines)

    def _smart_assist(data: SmartAssistInput) -> str:
        result = assistant.assist(data.query, data.session_id)
        lines = [
            f"query: {result.query}",
            f"intent: {result.intent_label} ({result.intent.intent.value}, {result.intent.confidence:.0f})",
        ]
        if result.enhanced_query != result.query:
            lines.append(f"enhanced_query: {result.enhanced_query}")
        if result.continuity.suggested_context:
            lines.append(f"context: {result.continuity.suggested_context}")
        if result.evidence_tool:
            lines.append("")
            lines.append(f"evidence ({result.evidence_tool}):")
            lines.append(result.evidence)
        if result.recommendations:
            lines.append("")
            lines.append("recommendations:")
            lines.extend(
                f"- [{item.kind}] {item.title}: {item.description}" for item in result.recommendations
            )
        return "\n".join(lines)

    def _recommendations(data: RecommendationsInput) -> str:
        items = assistant.context.get_recommendations(data.session_id, data.limit)
        if not items:
            return NO_RESULTS
        return "\n".join(
            f"[{item.kind}] {item.title}: {item.description} -> {item.query}" for item in items
        )

    registry.register(
        ToolSpec(
            name="search_api",
            description="Search SDK and UIKit API modules with spell correction and synonym expansion.",
            args_schema=SearchApiInput,
            handler=_search_api,
            tags=["docs", "retrieval"],
        )
    )
    registry.register(
        ToolSpec(
            name="search_guide",
            description="Search integration and feature guides.",
            args_schema=SearchGuideInput,
            handler=_search_guide,
            tags=["docs", "retrieval"],
        )
    )
    registry.register(
        ToolSpec(
            name="search_source",
            description="Search UIKit source files by class, symbol or path.",
            args_schema=SearchSourceInput,
            handler=_search_source,
            tags=["source", "retrieval"],
        )
    )
    registry.register(
        ToolSpec(
            name="get_guide",
            description="Read the integration guide for a topic such as quickstart, login or push.",
            args_schema=GetGuideInput,
            handler=_get_guide,
            tags=["docs"],
        )
    )
    registry.register(
        ToolSpec(
            name="read_doc",
            description="Read a full API document by its path under the docs directory.",
            args_schema=ReadDocInput,
            handler=_read_doc,
            tags=["docs"],
        )
    )
    registry.register(
        ToolSpec(
            name="read_source",
            description="Read a source file, or a 1-based inclusive line range of it.",
            args_schema=ReadSourceInput,
            handler=_read_source,
            tags=["source"],
        )
    )
    registry.register(
        ToolSpec(
            name="explain_class",
            description="Show a UIKit class declaration, its location and its members.",
            args_schema=ExplainClassInput,
            handler=_explain_class,
            tags=["source"],
        )
    )
    registry.register(
        ToolSpec(
            name="lookup_error",
            description="Explain an SDK error code with its causes and solutions.",
            args_schema=LookupErrorInput,
            handler=_lookup_error,
            tags=["docs", "errors"],
        )
    )
    registry.register(
        ToolSpec(
            name="diagnose",
            description="Rank error codes that may explain a described symptom.",
            args_schema=DiagnoseInput,
            handler=_diagnose,
            tags=["docs", "errors"],
        )
    )
    registry.register(
        ToolSpec(
            name="list_config_options",
            description="List configuration properties of a UIKit component.",
            args_schema=ListConfigInput,
            handler=_list_config,
            tags=["config"],
        )
    )
    registry.register(
        ToolSpec(
            name="get_extension_points",
            description="List protocols and classes a UIKit component lets you override.",
            args_schema=ExtensionPointsInput,
            handler=_extension_points,
            tags=["config"],
        )
    )
    registry.register(
        ToolSpec(
            name="search_config",
            description="Search configuration properties and extension points.",
            args_schema=SearchConfigInput,
            handler=_search_config,
            tags=["config", "retrieval"],
        )
    )
    registry.register(
        ToolSpec(
            name="get_config_usage",
            description="Show where a configuration property is used and which UI components it affects.",
            args_schema=ConfigUsageInput,
            handler=_config_usage,
            tags=["config"],
        )
    )
    registry.register(
        ToolSpec(
            name="classify_intent",
            description="Classify what a developer query is trying to do and extract entities.",
            args_schema=ClassifyIntentInput,
            handler=_classify_intent,
            tags=["intelligence"],
        )
    )
    registry.register(
        ToolSpec(
            name="smart_assist",
            description="Understand a request in its session context and gather evidence for it.",
            args_schema=SmartAssistInput,
            handler=_smart_assist,
            tags=["intelligence", "context"],
        )
    )
    registry.register(
        ToolSpec(
            name="get_recommendations",
            description="Recommend related topics, classes and APIs for a session.",
            args_schema=RecommendationsInput,
            handler=_recommendations,
            tags=["context"],
        )
    )


def _source_line(result: SourceSearchResult) -> str:
    line = f"[{result.path}] score={result.score:.2f} {result.component}"
    if result.classes:
        line += f" classes={','.join(result.classes)}"
    if result.matched_symbols:
        line += f" symbols={','.join(result.matched_symbols)}"
    return line


def _format_usage(impact: ConfigImpact) -> str:
    prop = impact.config_property
    lines = [f"[{prop.name}] category={impact.category or 'Other'} usages={impact.usage_count}"]
    lines.append(f"type: {prop.type} = {prop.default_value}" if prop.default_value else f"type: {prop.type}")
    if prop.file:
        lines.append(f"defined: {prop.file}:{prop.line}")
    if impact.summary:
        lines.append(impact.summary)
    if impact.affected_components:
        lines.append(f"affects: {', '.join(impact.affected_components)}")
    if impact.usages:
        lines.append("usages:")
        for usage in impact.usages[:MAX_USAGE_EXAMPLES]:
            context = usage.context.strip().splitlines()[0] if usage.context.strip() else ""
            lines.append(f"- {usage.file}:{usage.line} ({usage.component}) {context}".rstrip())
        hidden = len(impact.usages) - MAX_USAGE_EXAMPLES
        if hidden > 0:
            lines.append(f"... {hidden} more")
    return "\n".join(lines)


def _with_notes(
    lines: list[str],
    *,
    correction: QueryCorrection | None = None,
    ambiguity: AmbiguityDetection | None = None,
    suggestion: SearchSuggestion | None = None,
) -> str:
    out = list(lines) if lines else [NO_RESULTS]
    if correction is not None and correction.summary:
        out.append(f"SPELL: {correction.summary}")
    if ambiguity is not None and ambiguity.has_ambiguity and ambiguity.question:
        out.append(f"CLARIFY: {ambiguity.question}")
    if suggestion is not None:
        out.append(f"SUGGEST: {suggestion.message} {', '.join(suggestion.alternatives)}")
    return "\n".join(out)


def _format_error(error: ErrorCode) -> str:
    lines = [f"[{error.code}] {error.name}: {error.brief}"]
    if error.description:
        lines.append(error.description)
    if error.causes:
        lines.append("causes:")
        lines.extend(f"{index}. {cause}" for index, cause in enumerate(error.causes, start=1))
    if error.solutions:
        lines.append("solutions:")
        lines.extend(f"{index}. {step}" for index, step in enumerate(error.solutions, start=1))
    return "\n".join(lines)


def _truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."
