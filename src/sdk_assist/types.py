"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Generic, Literal, TypeVar

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class IndexedDocument:
    """A searchable record: named text fields plus an opaque payload."""

    doc_id: str
    fields: dict[str, str]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class IndexHit:
    """One ranked document returned by an inverted index."""

    doc_id: str
    score: float
    matched_terms: list[str]
    metadata: dict[str, Any]


@dataclass(slots=True)
class Match(Generic[T]):
    """A similarity match at or above the caller's threshold."""

    target: T
    score: float
    matched_terms: list[str] = field(default_factory=list)


@dataclass(slots=True)
class NoMatch:
    """Explicit "nothing good enough" outcome of a similarity lookup."""

    best_score: float = 0.0


class UserIntent(str, Enum):
    IMPLEMENT_FEATURE = "implement_feature"
    CUSTOMIZE_UI = "customize_ui"
    CUSTOMIZE_MESSAGE = "customize_message"
    ADD_MENU_ITEM = "add_menu_item"
    FIX_ERROR = "fix_error"
    UNDERSTAND_API = "understand_api"
    UNDERSTAND_CLASS = "understand_class"
    INTEGRATE_SDK = "integrate_sdk"
    CONFIGURE_APPEARANCE = "configure_appearance"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class ExtractedEntities:
    """Entity slots pulled out of a query; `None` means "not mentioned"."""

    error_code: int | None = None
    component_name: str | None = None
    feature_name: str | None = None
    class_name: str | None = None
    message_name: str | None = None
    config_property: str | None = None

    def filled_count(self) -> int:
        return sum(1 for f in fields(self) if getattr(self, f.name) is not None)


@dataclass(slots=True)
class IntentResult:
    intent: UserIntent
    confidence: float
    entities: ExtractedEntities
    sub_intent: str | None = None


@dataclass(slots=True)
class CorrectionResult:
    original: str
    corrected: str
    is_corrected: bool
    confidence: float
    suggestions: list[str] = field(default_factory=list)


@dataclass(slots=True)
class QueryCorrection:
    original_query: str
    corrected_query: str
    has_corrected: bool
    corrections: list[CorrectionResult]
    summary: str | None = None


@dataclass(slots=True)
class SynonymUse:
    term: str
    synonyms: list[str]


@dataclass(slots=True)
class ExpandedQuery:
    original: str
    expanded: list[str]
    synonyms_used: list[SynonymUse]


FocusType = Literal["error_code", "class_name", "component", "feature"]
ContinuityType = Literal["more_detail", "follow_up", "related", "new_topic"]


@dataclass(slots=True)
class FocusedEntity:
    kind: FocusType | None = None
    value: str | None = None


ResultKind = Literal["error", "api", "source", "guide"]


@dataclass(slots=True)
class ResultSummary:
    kind: ResultKind
    count: int
    top_items: list[str] = field(default_factory=list)


@dataclass(slots=True)
class SearchHistoryEntry:
    entry_id: str
    query: str
    intent: UserIntent
    entities: ExtractedEntities
    timestamp: float
    results: ResultSummary | None = None


@dataclass(slots=True)
class SessionContext:
    session_id: str
    start_time: float
    last_activity_time: float
    current_topic: str | None = None
    current_intent: UserIntent | None = None
    focused_entity: FocusedEntity = field(default_factory=FocusedEntity)
    history: list[SearchHistoryEntry] = field(default_factory=list)


@dataclass(slots=True)
class ContinuityResult:
    is_continuation: bool
    kind: ContinuityType
    reference_query: str | None = None
    reference_intent: UserIntent | None = None
    suggested_context: str | None = None


@dataclass(slots=True)
class Recommendation:
    kind: Literal["topic", "api", "class", "guide"]
    title: str
    description: str
    query: str
    relevance: float


@dataclass(slots=True)
class AmbiguityOption:
    value: str
    description: str
    count: int


@dataclass(slots=True)
class AmbiguityDetection:
    has_ambiguity: bool
    kind: Literal["platform", "layer", "component"] | None = None
    options: list[AmbiguityOption] = field(default_factory=list)
    question: str | None = None


@dataclass(slots=True)
class SearchSuggestion:
    kind: Literal["related", "clarify", "popular"]
    message: str
    alternatives: list[str]
    categories: list[tuple[str, int]] = field(default_factory=list)


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool call."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float


Layer = Literal["sdk", "uikit", "demo"]


@dataclass(slots=True)
class SearchContext:
    """Caller-pinned scope; a pinned dimension is never reported as ambiguous."""

    platform: str | None = None
    layer: Layer | None = None
    component: str | None = None


@dataclass(slots=True)
class ApiSearchResult:
    name: str
    module: str
    description: str
    doc_path: str
    score: float
    platform: str
    layer: Layer
    component: str | None = None


@dataclass(slots=True)
class GuideSearchResult:
    id: str
    title: str
    description: str
    path: str
    score: float
    platform: str | None = None

    @property
    def name(self) -> str:
        return self.title


@dataclass(slots=True)
class SourceSearchResult:
    path: str
    component: str
    description: str
    classes: list[str]
    score: float
    matched_symbols: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]
