"""Wires engines, intelligence components and tools into one runtime."""

from __future__ import annotations

from dataclasses import dataclass

from sdk_assist.agent.assistant import SdkAssistant
from sdk_assist.agent.registry import ToolRegistry
from sdk_assist.agent.tools import register_builtin_tools
from sdk_assist.config import AssistSettings
from sdk_assist.intelligence.context import ContextManager
from sdk_assist.intelligence.expander import QueryExpander
from sdk_assist.intelligence.intent import IntentClassifier
from sdk_assist.obs.tracing import TraceStore
from sdk_assist.retrieval.config_search import ConfigSearchEngine
from sdk_assist.retrieval.doc_search import DocSearchEngine
from sdk_assist.retrieval.source_search import SourceSearchEngine


@dataclass(slots=True)
class AssistRuntime:
    settings: AssistSettings
    registry: ToolRegistry
    trace_store: TraceStore
    source: SourceSearchEngine
    docs: DocSearchEngine
    configs: ConfigSearchEngine
    assistant: SdkAssistant


def build_runtime(settings: AssistSettings | None = None) -> AssistRuntime:
    """Create every component from `settings` (or the environment) and register the tools.

    Manifests are read lazily, so a missing knowledge base only surfaces
    as a `ConfigurationError` on the first tool call that needs it.
    """
    settings = settings or AssistSettings.from_env()
    expander = QueryExpander(settings.expansion)

    source = SourceSearchEngine(
        settings.sources_dir,
        cache_config=settings.cache,
        search_config=settings.search,
        expander=expander,
    )
    docs = DocSearchEngine(
        settings.docs_dir,
        cache_config=settings.cache,
        search_config=settings.search,
        spell_config=settings.spell,
        expander=expander,
    )
    configs = ConfigSearchEngine(
        settings.configs_dir,
        cache_config=settings.cache,
        search_config=settings.search,
        spell_config=settings.spell,
        expander=expander,
    )

    registry = ToolRegistry()
    trace_store = TraceStore()
    registry.set_observer(trace_store.record)
    assistant = SdkAssistant(
        tool_registry=registry,
        classifier=IntentClassifier(settings.intent),
        context=ContextManager(settings.context),
    )
    register_builtin_tools(
        registry, source=source, docs=docs, configs=configs, assistant=assistant
    )
    return AssistRuntime(
        settings=settings,
        registry=registry,
        trace_store=trace_store,
        source=source,
        docs=docs,
        configs=configs,
        assistant=assistant,
    )
