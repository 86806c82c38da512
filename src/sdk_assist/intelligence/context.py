"""Session-scoped conversation context: history, focus, continuity and recommendations."""

from __future__ import annotations

import logging
import re
import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass

from sdk_assist.config import ContextConfig
from sdk_assist.types import (
    ContinuityResult,
    ContinuityType,
    FocusedEntity,
    IntentResult,
    Recommendation,
    ResultSummary,
    SearchHistoryEntry,
    SessionContext,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class TopicRelation:
    related_topics: tuple[str, ...]
    related_classes: tuple[str, ...]
    related_apis: tuple[str, ...]
    keywords: tuple[str, ...]


TOPIC_RELATIONS: dict[str, TopicRelation] = {
    "message": TopicRelation(
        related_topics=("conversation", "chat", "attachment", "recall", "quote"),
        related_classes=("MessageCell", "MessageEntity", "ChatMessage", "MessageBubble"),
        related_apis=("sendMessage", "receiveMessage", "recallMessage", "forwardMessage"),
        keywords=("消息", "发送", "接收", "撤回", "转发", "引用"),
    ),
    "custom_message": TopicRelation(
        related_topics=("message", "cell", "register", "appearance"),
        related_classes=("CustomMessageCell", "ComponentsRegister", "MessageEntity"),
        related_apis=("registerCustomCell", "createCustomMessage"),
        keywords=("自定义消息", "订单", "卡片", "红包", "Cell"),
    ),
    "conversation": TopicRelation(
        related_topics=("message", "unread", "pin", "delete"),
        related_classes=("ConversationListController", "ConversationCell", "ConversationEntity"),
        related_apis=("getConversationList", "deleteConversation", "pinConversation"),
        keywords=("会话", "列表", "未读", "置顶", "删除"),
    ),
    "group": TopicRelation(
        related_topics=("member", "admin", "mute", "announcement"),
        related_classes=("GroupDetailController", "GroupMemberCell"),
        related_apis=("createGroup", "joinGroup", "leaveGroup", "muteGroupMember"),
        keywords=("群组", "群聊", "成员", "管理员", "禁言", "公告"),
    ),
    "chatroom": TopicRelation(
        related_topics=("member", "gift", "barrage"),
        related_classes=("ChatroomView", "GiftBarrageCell", "ChatBarrageCell"),
        related_apis=("joinChatroom", "leaveChatroom", "sendGift"),
        keywords=("聊天室", "直播", "礼物", "弹幕"),
    ),
    "ui_customization": TopicRelation(
        related_topics=("appearance", "theme", "bubble", "avatar"),
        related_classes=("Appearance", "Theme", "MessageBubble", "AvatarView"),
        related_apis=("setAppearance", "switchTheme"),
        keywords=("样式", "主题", "颜色", "气泡", "头像", "外观"),
    ),
    "error": TopicRelation(
        related_topics=("login", "connection", "permission"),
        related_classes=("EMError", "ChatError"),
        related_apis=("lookupError", "diagnose"),
        keywords=("错误", "失败", "异常", "解决", "修复"),
    ),
    "login": TopicRelation(
        related_topics=("token", "connection", "logout"),
        related_classes=("ChatClient", "ChatOptions"),
        related_apis=("login", "logout", "renewToken"),
        keywords=("登录", "注销", "token", "连接", "认证"),
    ),
}

TOPIC_NAMES: dict[str, str] = {
    "message": "消息",
    "custom_message": "自定义消息",
    "conversation": "会话",
    "group": "群组",
    "chatroom": "聊天室",
    "ui_customization": "UI 定制",
    "error": "错误处理",
    "login": "登录认证",
    "general": "通用功能",
}

CONTINUITY_PATTERNS: tuple[tuple[ContinuityType, tuple[re.Pattern[str], ...]], ...] = (
    (
        "more_detail",
        (
            re.compile(r"^(更多|详细|具体|展开|深入)(一点|说明|解释|细节|信息)?$"),
            re.compile(r"^(继续|接着|然后|接下来)(说|讲|解释)?$"),
            re.compile(r"^(再|还有|另外)(说|讲|介绍)(一下)?$"),
            re.compile(r"^详细说(一下|说)?$"),
            re.compile(r"^more\s*(details?|info)?$", re.IGNORECASE),
            re.compile(r"^continue$", re.IGNORECASE),
            re.compile(r"^go\s*on$", re.IGNORECASE),
        ),
    ),
    (
        "follow_up",
        (
            re.compile(r"^(那|那么|所以)(怎么|如何|怎样)"),
            re.compile(r"^(接下来|下一步)(怎么|该|应该)"),
            re.compile(r"^(然后|之后)(呢|怎么办)"),
            re.compile(r"^(这个|这种情况)(怎么|如何)(处理|解决)"),
            re.compile(r"^what('s)?\s*next", re.IGNORECASE),
            re.compile(r"^then\s*(what|how)", re.IGNORECASE),
        ),
    ),
    (
        "related",
        (
            re.compile(r"^(类似|相关|关联|相似)(的|问题|功能|API)"),
            re.compile(r"^(还有|有没有)(其他|别的|类似)"),
            re.compile(r"^(除了这个|除此之外)"),
            re.compile(r"^similar|related", re.IGNORECASE),
        ),
    ),
)

CLASS_TOPICS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("conversation",), "conversation"),
    (("group",), "group"),
    (("chatroom", "barrage"), "chatroom"),
    (("appearance", "theme"), "ui_customization"),
)

FEATURE_TOPICS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"消息|message", re.IGNORECASE), "message"),
    (re.compile(r"会话|conversation", re.IGNORECASE), "conversation"),
    (re.compile(r"群|group", re.IGNORECASE), "group"),
    (re.compile(r"聊天室|chatroom|直播", re.IGNORECASE), "chatroom"),
    (re.compile(r"登录|login|token", re.IGNORECASE), "login"),
)


@dataclass(slots=True)
class EnhancedQuery:
    enhanced_query: str
    context_added: bool
    continuity: ContinuityResult


@dataclass(slots=True)
class ContextSummary:
    current_topic: str | None
    current_focus: str | None
    recent_queries: list[str]
    session_minutes: int


@dataclass(slots=True)
class QueryStat:
    query: str
    count: int
    last_used: float


def topic_name(topic: str | None) -> str | None:
    if topic is None:
        return None
    return TOPIC_NAMES.get(topic, topic)


def topic_for_class(class_name: str) -> str:
    lowered = class_name.lower()
    if "message" in lowered or "bubble" in lowered:
        return "custom_message" if "custom" in lowered else "message"
    for markers, topic in CLASS_TOPICS:
        if any(marker in lowered for marker in markers):
            return topic
    return "general"


def topic_for_feature(feature: str) -> str:
    for pattern, topic in FEATURE_TOPICS:
        if pattern.search(feature):
            return topic
    return "general"


class ContextManager:
    """Explicit session store keyed by session id.

    Sessions are created on first reference and replaced once idle for longer
    than `session_timeout_seconds`. All reads and writes of the session table
    happen under one lock; the clock is injectable so expiry can be tested.
    """

    def __init__(
        self,
        config: ContextConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or ContextConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: dict[str, SessionContext] = {}
        self.create_session(self.config.default_session_id)

    def create_session(self, session_id: str | None = None) -> SessionContext:
        with self._lock:
            return self._create_locked(session_id or self.config.default_session_id)

    def get_session(self, session_id: str | None = None) -> SessionContext:
        with self._lock:
            return self._session_locked(session_id)

    def expire(self) -> list[str]:
        """Drop every session idle past the timeout and return their ids."""
        with self._lock:
            now = self._clock()
            expired = [
                session_id
                for session_id, session in self._sessions.items()
                if self._is_expired(session, now)
            ]
            for session_id in expired:
                del self._sessions[session_id]
        if expired:
            logger.debug("expired %d idle sessions", len(expired))
        return expired

    def clear_session(self, session_id: str | None = None) -> None:
        with self._lock:
            self._sessions.pop(session_id or self.config.default_session_id, None)

    def active_sessions(self) -> list[str]:
        with self._lock:
            now = self._clock()
            return [
                session_id
                for session_id, session in self._sessions.items()
                if not self._is_expired(session, now)
            ]

    def record_search(
        self,
        query: str,
        intent_result: IntentResult,
        results: ResultSummary | None = None,
        session_id: str | None = None,
    ) -> SearchHistoryEntry:
        with self._lock:
            session = self._session_locked(session_id)
            now = self._clock()
            entry = SearchHistoryEntry(
                entry_id=f"{int(now * 1000)}-{uuid.uuid4().hex[:9]}",
                query=query,
                intent=intent_result.intent,
                entities=intent_result.entities,
                timestamp=now,
                results=results,
            )
            session.history.append(entry)
            session.last_activity_time = now
            session.current_intent = intent_result.intent
            self._update_focus(session, intent_result)
            overflow = len(session.history) - self.config.max_history
            if overflow > 0:
                del session.history[:overflow]
            return entry

    def detect_continuity(self, query: str, session_id: str | None = None) -> ContinuityResult:
        with self._lock:
            session = self._session_locked(session_id)
            last = session.history[-1] if session.history else None
            stripped = query.strip()
            for kind, patterns in CONTINUITY_PATTERNS:
                if any(pattern.search(stripped) for pattern in patterns):
                    return ContinuityResult(
                        is_continuation=True,
                        kind=kind,
                        reference_query=last.query if last else None,
                        reference_intent=last.intent if last else None,
                        suggested_context=_context_suggestion(session),
                    )

            if last is not None and _is_related(query, last):
                return ContinuityResult(
                    is_continuation=True,
                    kind="follow_up",
                    reference_query=last.query,
                    reference_intent=last.intent,
                    suggested_context=_context_suggestion(session),
                )
            return ContinuityResult(is_continuation=False, kind="new_topic")

    def enhance_query(self, query: str, session_id: str | None = None) -> EnhancedQuery:
        """Append the session's focus to a bare follow-up such as "继续说"."""
        continuity = self.detect_continuity(query, session_id)
        if not continuity.is_continuation or continuity.kind not in ("more_detail", "follow_up"):
            return EnhancedQuery(enhanced_query=query, context_added=False, continuity=continuity)

        with self._lock:
            session = self._session_locked(session_id)
            focus = session.focused_entity
            topic = session.current_topic

        enhanced = query
        if focus.value is not None:
            if focus.kind == "error_code":
                enhanced = f"{query} (关于错误码 {focus.value})"
            elif focus.kind == "class_name":
                enhanced = f"{query} (关于 {focus.value} 类)"
            elif focus.kind == "component":
                enhanced = f"{query} (关于 {focus.value})"
            elif focus.kind == "feature":
                enhanced = f"{query} (关于 {focus.value} 功能)"
        elif topic is not None:
            enhanced = f"{query} ({topic_name(topic)} 相关)"

        return EnhancedQuery(
            enhanced_query=enhanced,
            context_added=enhanced != query,
            continuity=continuity,
        )

    def get_recommendations(
        self, session_id: str | None = None, limit: int = 5
    ) -> list[Recommendation]:
        with self._lock:
            session = self._session_locked(session_id)
            topic = session.current_topic
            focus = FocusedEntity(kind=session.focused_entity.kind, value=session.focused_entity.value)
            window = self.config.recent_query_window
            recent_entries = session.history[-window:] if window else []
            recent = {entry.query.lower() for entry in recent_entries}

        recommendations: list[Recommendation] = []
        relation = TOPIC_RELATIONS.get(topic) if topic else None
        if relation is not None:
            for related in relation.related_topics[:2]:
                related_relation = TOPIC_RELATIONS.get(related)
                if related_relation is None:
                    continue
                recommendations.append(
                    Recommendation(
                        kind="topic",
                        title=topic_name(related) or related,
                        description=f"了解 {topic_name(related)} 相关功能",
                        query=related_relation.keywords[0],
                        relevance=0.8,
                    )
                )
            for class_name in relation.related_classes[:2]:
                recommendations.append(
                    Recommendation(
                        kind="class",
                        title=class_name,
                        description=f"了解 {class_name} 类的用法",
                        query=f"{class_name} 怎么用",
                        relevance=0.7,
                    )
                )
            for api in relation.related_apis[:1]:
                recommendations.append(
                    Recommendation(
                        kind="api",
                        title=api,
                        description=f"查看 {api} API 文档",
                        query=f'search_api query="{api}"',
                        relevance=0.6,
                    )
                )

        if focus.kind == "error_code":
            recommendations.append(
                Recommendation(
                    kind="guide",
                    title="错误诊断",
                    description="使用 diagnose 工具分析类似问题",
                    query='diagnose symptom="消息发送失败"',
                    relevance=0.9,
                )
            )

        seen: set[str] = set()
        unique: list[Recommendation] = []
        for recommendation in recommendations:
            key = f"{recommendation.kind}:{recommendation.title}"
            if key in seen or recommendation.query.lower() in recent:
                continue
            seen.add(key)
            unique.append(recommendation)

        unique.sort(key=lambda recommendation: recommendation.relevance, reverse=True)
        return unique[:limit]

    def context_summary(self, session_id: str | None = None) -> ContextSummary:
        with self._lock:
            session = self._session_locked(session_id)
            minutes = int((self._clock() - session.start_time) // 60)
            return ContextSummary(
                current_topic=topic_name(session.current_topic),
                current_focus=session.focused_entity.value,
                recent_queries=[entry.query for entry in session.history[-3:]],
                session_minutes=minutes,
            )

    def popular_queries(self, session_id: str | None = None, limit: int = 10) -> list[QueryStat]:
        with self._lock:
            session = self._session_locked(session_id)
            stats: dict[str, QueryStat] = {}
            for entry in session.history:
                normalized = entry.query.lower().strip()
                stat = stats.get(normalized)
                if stat is None:
                    stats[normalized] = QueryStat(query=normalized, count=1, last_used=entry.timestamp)
                else:
                    stat.count += 1
                    stat.last_used = max(stat.last_used, entry.timestamp)
        ranked = sorted(stats.values(), key=lambda stat: stat.count, reverse=True)
        return ranked[:limit]

    def _session_locked(self, session_id: str | None) -> SessionContext:
        key = session_id or self.config.default_session_id
        session = self._sessions.get(key)
        if session is None:
            return self._create_locked(key)
        if self._is_expired(session, self._clock()):
            logger.debug("session %s idle past timeout; starting a new one", key)
            return self._create_locked(key)
        return session

    def _create_locked(self, session_id: str) -> SessionContext:
        now = self._clock()
        session = SessionContext(session_id=session_id, start_time=now, last_activity_time=now)
        self._sessions[session_id] = session
        return session

    def _is_expired(self, session: SessionContext, now: float) -> bool:
        return now - session.last_activity_time > self.config.session_timeout_seconds

    @staticmethod
    def _update_focus(session: SessionContext, intent_result: IntentResult) -> None:
        entities = intent_result.entities
        if entities.error_code is not None:
            session.focused_entity = FocusedEntity(kind="error_code", value=str(entities.error_code))
            session.current_topic = "error"
        elif entities.class_name:
            session.focused_entity = FocusedEntity(kind="class_name", value=entities.class_name)
            session.current_topic = topic_for_class(entities.class_name)
        elif entities.component_name:
            session.focused_entity = FocusedEntity(kind="component", value=entities.component_name)
            session.current_topic = "ui_customization"
        elif entities.feature_name:
            session.focused_entity = FocusedEntity(kind="feature", value=entities.feature_name)
            session.current_topic = topic_for_feature(entities.feature_name)
        elif entities.message_name:
            session.focused_entity = FocusedEntity(kind="feature", value=entities.message_name)
            session.current_topic = "custom_message"


def _is_related(query: str, last: SearchHistoryEntry) -> bool:
    lowered = query.lower()
    entities = last.entities
    if entities.error_code is not None and str(entities.error_code) in query:
        return True
    if entities.class_name and entities.class_name.lower() in lowered:
        return True
    if entities.component_name and entities.component_name.lower() in lowered:
        return True

    current_words = {word for word in lowered.split() if len(word) > 2}
    last_words = {word for word in last.query.lower().split() if len(word) > 2}
    return len(current_words & last_words) >= 2


def _context_suggestion(session: SessionContext) -> str | None:
    focus = session.focused_entity
    if focus.value is not None:
        if focus.kind == "error_code":
            return f"继续讨论错误码 {focus.value} 相关问题"
        if focus.kind == "class_name":
            return f"继续讨论 {focus.value} 类的使用"
        if focus.kind == "component":
            return f"继续讨论 {focus.value} 组件"
        if focus.kind == "feature":
            return f"继续讨论 {focus.value} 功能"
    if session.current_topic is not None:
        return f"继续讨论 {topic_name(session.current_topic)} 相关内容"
    return None
