"""Context-aware assistant: rewrite follow-ups, classify intent, gather evidence."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sdk_assist.agent.registry import ToolRegistry
from sdk_assist.intelligence.context import ContextManager, ContextSummary
from sdk_assist.intelligence.intent import IntentClassifier
from sdk_assist.obs.tracing import Timer
from sdk_assist.types import (
    ContinuityResult,
    IntentResult,
    Recommendation,
    ResultKind,
    ResultSummary,
    ToolTrace,
    UserIntent,
)

logger = logging.getLogger(__name__)

RECOMMENDATION_LIMIT = 3

# Result kind recorded into the session for each evidence tool.
EVIDENCE_KINDS: dict[str, ResultKind] = {
    "lookup_error": "error",
    "diagnose": "error",
    "search_api": "api",
    "search_guide": "guide",
    "search_source": "source",
    "search_config": "api",
}


@dataclass(slots=True)
class AssistResult:
    query: str
    enhanced_query: str
    continuity: ContinuityResult
    intent: IntentResult
    intent_label: str
    evidence_tool: str | None = None
    evidence: str = ""
    recommendations: list[Recommendation] = field(default_factory=list)
    summary: ContextSummary | None = None
    tool_traces: list[ToolTrace] = field(default_factory=list)
    latency_ms: float = 0.0


def plan_evidence(query: str, result: IntentResult) -> tuple[str, dict[str, Any]] | None:
    """Pick the tool call that best backs up the classified intent."""
    entities = result.entities
    intent = result.intent
    if intent is UserIntent.FIX_ERROR:
        if entities.error_code is not None:
            return "lookup_error", {"code": entities.error_code}
        return "diagnose", {"symptom": query}
    if intent is UserIntent.CUSTOMIZE_MESSAGE:
        return "search_source", {"query": entities.class_name or "CustomMessageCell"}
    if intent is UserIntent.ADD_MENU_ITEM:
        return "search_config", {"query": entities.config_property or "actions"}
    if intent in (UserIntent.CUSTOMIZE_UI, UserIntent.CONFIGURE_APPEARANCE):
        return "search_config", {"query": entities.config_property or query}
    if intent is UserIntent.UNDERSTAND_CLASS:
        if entities.class_name:
            return "search_source", {"query": entities.class_name}
        return None
    if intent in (UserIntent.IMPLEMENT_FEATURE, UserIntent.UNDERSTAND_API):
        return "search_api", {"query": entities.feature_name or query}
    if intent is UserIntent.INTEGRATE_SDK:
        return "search_guide", {"query": query}
    return None


class SdkAssistant:
    """Runs the smart-assist flow for one query within a session.

    The flow is: detect continuity and enhance a follow-up query, classify
    the enhanced text, record the original query into the session, gather
    evidence through the tool registry and read recommendations back.
    """

    def __init__(
        self,
        *,
        tool_registry: ToolRegistry,
        classifier: IntentClassifier | None = None,
        context: ContextManager | None = None,
    ) -> None:
        self.tool_registry = tool_registry
        self.classifier = classifier or IntentClassifier()
        self.context = context or ContextManager()

    def classify(self, query: str) -> IntentResult:
        return self.classifier.classify(query)

    def assist(self, query: str, session_id: str | None = None) -> AssistResult:
        observed: list[ToolTrace] = []
        outer = self.tool_registry.observer

        def _observe(trace: ToolTrace) -> None:
            observed.append(trace)
            if outer is not None:
                outer(trace)

        with Timer() as timer:
            enhanced = self.context.enhance_query(query, session_id)
            result = self.classifier.classify(enhanced.enhanced_query)
            plan = plan_evidence(enhanced.enhanced_query, result)
            if plan is not None and plan[0] not in self.tool_registry:
                logger.debug("evidence tool %s not registered; skipping", plan[0])
                plan = None

            evidence = ""
            summary: ResultSummary | None = None
            if plan is not None:
                tool, payload = plan
                self.tool_registry.set_observer(_observe)
                try:
                    evidence = self.tool_registry.execute(tool, payload)
                finally:
                    self.tool_registry.set_observer(outer)
                summary = _summarize(tool, evidence)

            self.context.record_search(query, result, summary, session_id)
            recommendations = self.context.get_recommendations(session_id, RECOMMENDATION_LIMIT)

        logger.info(
            "assist %r -> %s (%.0f) via %s",
            query,
            result.intent.value,
            result.confidence,
            plan[0] if plan else "none",
        )
        return AssistResult(
            query=query,
            enhanced_query=enhanced.enhanced_query,
            continuity=enhanced.continuity,
            intent=result,
            intent_label=self.classifier.describe(result.intent),
            evidence_tool=plan[0] if plan else None,
            evidence=evidence,
            recommendations=recommendations,
            summary=self.context.context_summary(session_id),
            tool_traces=observed,
            latency_ms=timer.elapsed_ms,
        )


def _summarize(tool: str, output: str) -> ResultSummary:
    lines = [line for line in output.splitlines() if line.startswith("[")]
    return ResultSummary(
        kind=EVIDENCE_KINDS.get(tool, "api"),
        count=len(lines),
        top_items=[line.split("]", 1)[0].lstrip("[") for line in lines[:3]],
    )
