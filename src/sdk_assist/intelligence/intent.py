"""Multi-signal intent classification with entity extraction."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from sdk_assist.config import IntentConfig
from sdk_assist.intelligence.similarity import Exemplar, SimilarityMatcher
from sdk_assist.types import ExtractedEntities, IntentResult, Match, UserIntent

_I = re.IGNORECASE
# ASCII word semantics so `\b` still separates a Latin name from adjacent CJK text.
_A = re.ASCII


def _compile(*patterns: str, flags: int = 0) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(pattern, flags | _A) for pattern in patterns)


# Entity extraction ---------------------------------------------------------

COMPONENT_ALIASES: dict[str, str] = {
    "easechatuikit": "EaseChatUIKit",
    "chatuikit": "EaseChatUIKit",
    "easecalluikit": "EaseCallUIKit",
    "calluikit": "EaseCallUIKit",
    "callkit": "EaseCallUIKit",
    "easechatroomuikit": "EaseChatroomUIKit",
    "chatroomuikit": "EaseChatroomUIKit",
    "easeimkit": "EaseIMKit",
    "imkit": "EaseIMKit",
}

EXCLUDED_CLASS_NAMES = frozenset({"UIKit", "SDK", "API", "iOS", "Swift", "Xcode"})


def _first_group(match: re.Match[str]) -> str:
    return match.group(1)


def _error_code(match: re.Match[str]) -> int | None:
    code = int(match.group(1))
    return code if 1 <= code <= 999 else None


def _component(match: re.Match[str]) -> str:
    name = match.group(1)
    return COMPONENT_ALIASES.get(name.lower(), name)


def _class_name(match: re.Match[str]) -> str | None:
    name = match.group(1)
    if len(name) <= 3 or name in EXCLUDED_CLASS_NAMES:
        return None
    return name


@dataclass(slots=True, frozen=True)
class EntityRule:
    """One entity slot: patterns tried in order, first accepted value wins."""

    slot: str
    patterns: tuple[re.Pattern[str], ...]
    extract: Callable[[re.Match[str]], str | int | None] = _first_group


ENTITY_RULES: tuple[EntityRule, ...] = (
    EntityRule(
        slot="error_code",
        patterns=_compile(
            r"错误码?\s*[:：]?\s*(\d+)",
            r"error\s*code?\s*[:：]?\s*(\d+)",
            r"code\s*[:：]?\s*(\d+)",
            r"(\d{3})\s*(错误|error)",
            r"\b(5\d{2}|4\d{2}|1\d{2})\b",
            flags=_I,
        ),
        extract=_error_code,
    ),
    EntityRule(
        slot="component_name",
        patterns=_compile(
            r"\b(EaseChatUIKit|ChatUIKit)\b",
            r"\b(EaseCallUIKit|CallUIKit|CallKit)\b",
            r"\b(EaseChatroomUIKit|ChatroomUIKit)\b",
            r"\b(EaseIMKit|IMKit)\b",
            flags=_I,
        ),
        extract=_component,
    ),
    EntityRule(
        slot="class_name",
        patterns=(
            *_compile(
                r"\b([A-Z][a-z]+(?:[A-Z][a-z0-9]+)+(?:Cell|View|Controller|Manager|Entity|Provider|Protocol|Delegate))\b",
                r"\b([A-Z][a-z]+(?:[A-Z][a-z]+){1,})\b",
            ),
            *_compile(
                r"(?:类|class)\s*[:：]?\s*([A-Z][a-zA-Z0-9]+)",
                r"([A-Z][a-zA-Z0-9]+)\s*(?:类|class)",
                flags=_I,
            ),
        ),
        extract=_class_name,
    ),
    EntityRule(
        slot="message_name",
        patterns=(
            *_compile(r"(订单|商品|位置|名片|卡片|红包|礼物|优惠券|投票|问卷|预约|打卡)\s*消息"),
            *_compile(
                r"(order|product|location|contact|card|gift|coupon|vote|survey)\s*message",
                flags=_I,
            ),
            *_compile(r"自定义\s*([\u4e00-\u9fa5]+)\s*消息"),
            *_compile(r"custom\s+(\w+)\s+message", flags=_I),
        ),
    ),
    EntityRule(
        slot="config_property",
        patterns=_compile(
            r"\b(primaryHue|secondaryHue|errorHue|neutralHue|neutralSpecialHue)\b",
            r"\b(avatarRadius|avatarPlaceHolder)\b",
            r"\b(bubbleStyle|contentStyle|imageMessageCorner)\b",
            r"\b(inputExtendActions|messageLongPressedActions)\b",
            r"\b(alertStyle|actionSheetRowHeight)\b",
            r"Appearance\s*\.\s*(\w+)",
            flags=_I,
        ),
    ),
    EntityRule(
        slot="feature_name",
        patterns=(
            *_compile(r"(消息|群组|聊天室|好友|联系人|会话|推送|音视频|通话)"),
            *_compile(r"(message|group|chatroom|contact|conversation|push|call)", flags=_I),
            *_compile(r"实现\s*([\u4e00-\u9fa5]+)\s*功能"),
        ),
    ),
)


def extract_entities(query: str) -> ExtractedEntities:
    entities = ExtractedEntities()
    for rule in ENTITY_RULES:
        for pattern in rule.patterns:
            match = pattern.search(query)
            if match is None:
                continue
            value = rule.extract(match)
            if value is not None:
                setattr(entities, rule.slot, value)
                break
    return entities


# Rule scoring ----------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class IntentRule:
    intent: UserIntent
    patterns: tuple[re.Pattern[str], ...]
    weight: float


INTENT_RULES: tuple[IntentRule, ...] = (
    IntentRule(
        intent=UserIntent.CUSTOMIZE_MESSAGE,
        patterns=_compile(
            r"自定义.*(消息|message)",
            r"新增.*(消息类型|消息样式)",
            r"(订单|商品|位置|名片|卡片|红包).*(消息|message)",
            r"custom.*message",
            r"发送.*(订单|商品|位置|名片|卡片)",
            r"展示.*(订单|商品|位置|名片).*(消息|样式)",
            flags=_I,
        ),
        weight=100,
    ),
    IntentRule(
        intent=UserIntent.ADD_MENU_ITEM,
        patterns=_compile(
            r"添加.*(菜单|menu|按钮)",
            r"增加.*(菜单|附件|选项)",
            r"(菜单|附件).*(增加|添加|新增)",
            r"inputExtendActions",
            r"attachment.*menu",
            flags=_I,
        ),
        weight=90,
    ),
    IntentRule(
        intent=UserIntent.FIX_ERROR,
        patterns=(
            *_compile(r"错误码?\s*[:：]?\s*\d+", r"error\s*code?\s*[:：]?\s*\d+", flags=_I),
            *_compile(r"(失败|报错|异常|崩溃|闪退)"),
            *_compile(r"failed|error|crash|exception", flags=_I),
            *_compile(r"为什么.*(失败|不行|不能|无法)", r"怎么解决.*(错误|问题|异常)"),
        ),
        weight=95,
    ),
    IntentRule(
        intent=UserIntent.CUSTOMIZE_UI,
        patterns=_compile(
            r"自定义.*(样式|颜色|UI|界面|气泡|头像|主题)",
            r"修改.*(样式|外观|主题|颜色|背景|头像|昵称)",
            r"更换.*(图标|图片|颜色|背景|头像)",
            r"设置.*(头像|昵称|用户信息)",
            r"更新.*(头像|昵称|用户资料)",
            r"customize|custom.*style|theme",
            r"(气泡|bubble).*(颜色|样式|圆角)",
            r"Appearance",
            r"userCache",
            r"userProfileProvider",
            flags=_I,
        ),
        weight=85,
    ),
    IntentRule(
        intent=UserIntent.UNDERSTAND_CLASS,
        patterns=_compile(
            r"(\w+Cell|\w+View|\w+Controller)\s*(是什么|怎么用|作用)",
            r"(MessageCell|CustomMessageCell|MessageEntity)\b",
            r"继承.*(类|class)",
            r"(\w+).*怎么(继承|重写|扩展)",
            flags=_I,
        ),
        weight=75,
    ),
    IntentRule(
        intent=UserIntent.IMPLEMENT_FEATURE,
        patterns=_compile(
            r"如何(实现|发送|接收|创建|添加|显示)",
            r"怎么(实现|发送|接收|创建|添加|显示)",
            r"how to (send|receive|create|add|show|implement)",
            r"实现.*(消息|群组|聊天室|推送|音视频)",
            flags=_I,
        ),
        weight=60,
    ),
    IntentRule(
        intent=UserIntent.INTEGRATE_SDK,
        patterns=_compile(
            r"集成|接入|初始化|配置.*SDK",
            r"integrate|setup|initialize|configure",
            r"快速开始|入门|getting started",
            r"安装|install|pod|cocoapods|spm",
            flags=_I,
        ),
        weight=55,
    ),
)

# Entities that settle the intent on their own, strongest first.
ENTITY_BASELINES: tuple[tuple[str, UserIntent, float], ...] = (
    ("error_code", UserIntent.FIX_ERROR, 95),
    ("message_name", UserIntent.CUSTOMIZE_MESSAGE, 90),
    ("config_property", UserIntent.CONFIGURE_APPEARANCE, 85),
    ("class_name", UserIntent.UNDERSTAND_CLASS, 60),
)

PAIR_BONUSES: tuple[tuple[UserIntent, str, float], ...] = (
    (UserIntent.FIX_ERROR, "error_code", 10),
    (UserIntent.CUSTOMIZE_MESSAGE, "message_name", 8),
    (UserIntent.UNDERSTAND_CLASS, "class_name", 5),
)

EXEMPLARS: tuple[Exemplar, ...] = (
    Exemplar(id="custom_message", text="自定义 消息 类型 实现 样式 发送 展示 逻辑 注册 Cell"),
    Exemplar(
        id="user_profile_update",
        text="更新 头像 修改 昵称 用户 信息 缓存 userCache Provider 设置 头像 个人 资料 刷新",
    ),
)

EXEMPLAR_INTENTS: dict[str, UserIntent] = {
    "custom_message": UserIntent.CUSTOMIZE_MESSAGE,
    "user_profile_update": UserIntent.CUSTOMIZE_UI,
}

INTENT_DESCRIPTIONS: dict[UserIntent, str] = {
    UserIntent.IMPLEMENT_FEATURE: "实现功能",
    UserIntent.CUSTOMIZE_UI: "定制 UI 样式",
    UserIntent.CUSTOMIZE_MESSAGE: "自定义消息类型",
    UserIntent.ADD_MENU_ITEM: "添加菜单项",
    UserIntent.FIX_ERROR: "修复错误",
    UserIntent.UNDERSTAND_API: "理解 API",
    UserIntent.UNDERSTAND_CLASS: "理解类/组件",
    UserIntent.INTEGRATE_SDK: "集成 SDK",
    UserIntent.CONFIGURE_APPEARANCE: "配置外观",
    UserIntent.UNKNOWN: "未知意图",
}


class IntentClassifier:
    """Fuses entity baselines, weighted rules and exemplar similarity.

    Signals are applied in priority order:

    1. Entities that imply an intent outright (an error code means FIX_ERROR).
    2. Every matching rule pattern scores `weight + coverage_weight * len(match) / len(query)`,
       plus `consistency_bonus` when an extracted entity agrees with the rule's intent.
       The running maximum wins.
    3. When the best score is still below `semantic_fallback_below`, the query is
       compared with labelled exemplars and a similarity above
       `semantic_accept_above` (scaled to 0-100) replaces the best if higher.

    The final confidence adds `entity_bonus` per filled slot and fixed
    intent/entity pair bonuses, clamped into [0, 100].
    """

    def __init__(
        self,
        config: IntentConfig | None = None,
        *,
        matcher: SimilarityMatcher | None = None,
    ) -> None:
        self.config = config or IntentConfig()
        self.matcher = matcher or SimilarityMatcher()

    def classify(self, query: str) -> IntentResult:
        entities = extract_entities(query)
        best_intent = UserIntent.UNKNOWN
        best_score = 0.0

        for slot, intent, confidence in ENTITY_BASELINES:
            if getattr(entities, slot) is not None:
                best_intent, best_score = intent, confidence
                break

        query_length = len(query) or 1
        for rule in INTENT_RULES:
            for pattern in rule.patterns:
                match = pattern.search(query)
                if match is None:
                    continue
                score = rule.weight + self.config.coverage_weight * len(match.group(0)) / query_length
                if _entity_supports(entities, rule.intent):
                    score += self.config.consistency_bonus
                if score > best_score:
                    best_intent, best_score = rule.intent, score

        sub_intent: str | None = None
        if best_score < self.config.semantic_fallback_below:
            outcome = self.matcher.find_best_match(
                query, EXEMPLARS, threshold=self.config.semantic_accept_above
            )
            if isinstance(outcome, Match) and outcome.score > self.config.semantic_accept_above:
                semantic_score = outcome.score * 100
                if semantic_score > best_score:
                    best_intent = EXEMPLAR_INTENTS[outcome.target.id]
                    best_score = semantic_score
                    sub_intent = outcome.target.id

        confidence = best_score + self.config.entity_bonus * entities.filled_count()
        for intent, slot, bonus in PAIR_BONUSES:
            if best_intent is intent and getattr(entities, slot) is not None:
                confidence += bonus

        return IntentResult(
            intent=best_intent,
            confidence=min(max(confidence, 0.0), 100.0),
            entities=entities,
            sub_intent=sub_intent,
        )

    def extract_entities(self, query: str) -> ExtractedEntities:
        return extract_entities(query)

    @staticmethod
    def describe(intent: UserIntent) -> str:
        return INTENT_DESCRIPTIONS[intent]


def _entity_supports(entities: ExtractedEntities, intent: UserIntent) -> bool:
    if intent is UserIntent.FIX_ERROR:
        return entities.error_code is not None
    if intent is UserIntent.CUSTOMIZE_MESSAGE:
        return entities.message_name is not None or "Message" in (entities.class_name or "")
    if intent in (UserIntent.CUSTOMIZE_UI, UserIntent.CONFIGURE_APPEARANCE):
        return entities.config_property is not None
    if intent is UserIntent.UNDERSTAND_CLASS:
        return entities.class_name is not None
    return False
