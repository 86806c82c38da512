"""Detects result sets that span several platforms, layers or components."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from sdk_assist.types import (
    AmbiguityDetection,
    AmbiguityOption,
    ApiSearchResult,
    Layer,
    SearchContext,
    SourceSearchResult,
)

UI_KEYWORDS: tuple[str, ...] = (
    "颜色", "color", "背景", "background", "气泡", "bubble",
    "界面", "ui", "样式", "style", "主题", "theme",
    "布局", "layout", "显示", "display", "按钮", "button",
    "输入框", "input", "头像", "avatar", "图标", "icon",
    "字体", "font", "大小", "size", "位置", "position",
    "动画", "animation", "自定义", "custom", "修改", "modify",
)

PLATFORM_DESCRIPTIONS: dict[str, str] = {
    "ios": "iOS（Swift/Objective-C）",
    "android": "Android（Java/Kotlin）",
    "web": "Web（JavaScript/TypeScript）",
    "flutter": "Flutter（Dart）",
    "unity": "Unity（C#）",
    "all": "所有平台",
}

COMPONENT_DESCRIPTIONS: dict[str, str] = {
    "EaseChatUIKit": "EaseChatUIKit（单聊/群聊界面）",
    "EaseCallUIKit": "EaseCallUIKit（音视频通话界面）",
    "EaseChatroomUIKit": "EaseChatroomUIKit（聊天室/直播间界面）",
    "EaseIMKit": "EaseIMKit（IM 综合组件）",
}

PLATFORM_HINTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("ios", ("ios", "swift", "objective-c")),
    ("android", ("android", "java", "kotlin")),
    ("web", ("web", "javascript", "typescript")),
    ("flutter", ("flutter", "dart")),
    ("unity", ("unity", "c#")),
)

COMPONENT_HINTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("EaseChatUIKit", ("单聊", "群聊", "chat")),
    ("EaseCallUIKit", ("音视频", "通话", "call")),
    ("EaseChatroomUIKit", ("聊天室", "直播", "chatroom")),
)

# Source results: below this share no single component dominates.
DOMINANT_SHARE = 0.7
# API results: components whose result counts differ by less than this factor are ambiguous.
COMPONENT_SPREAD = 3

NO_AMBIGUITY = AmbiguityDetection(has_ambiguity=False)


@dataclass(slots=True)
class QueryLeaning:
    likely_platform: str | None = None
    likely_layer: Layer | None = None
    likely_component: str | None = None


def is_ui_query(query: str) -> bool:
    lowered = query.lower()
    return any(keyword in lowered for keyword in UI_KEYWORDS)


def _options(counts: Counter[str], descriptions: dict[str, str]) -> list[AmbiguityOption]:
    options = [
        AmbiguityOption(value=value, description=descriptions.get(value, value), count=count)
        for value, count in counts.items()
    ]
    options.sort(key=lambda option: option.count, reverse=True)
    return options


class AmbiguityDetector:
    """Turns a spread-out result set into one clarifying question.

    API results are checked for platform, then layer, then component spread;
    the first dimension that is ambiguous and not pinned by the caller's
    `SearchContext` wins. Fewer than two results are never ambiguous.
    """

    def detect_api_ambiguity(
        self,
        query: str,
        results: Sequence[ApiSearchResult],
        context: SearchContext | None = None,
    ) -> AmbiguityDetection:
        if len(results) < 2:
            return NO_AMBIGUITY
        context = context or SearchContext()

        if context.platform is None:
            detection = self._platform_ambiguity(results)
            if detection.has_ambiguity:
                return detection
        if context.layer is None:
            detection = self._layer_ambiguity(query, results)
            if detection.has_ambiguity:
                return detection
        if context.component is None:
            detection = self._component_ambiguity(query, results)
            if detection.has_ambiguity:
                return detection
        return NO_AMBIGUITY

    def detect_source_ambiguity(
        self, query: str, results: Sequence[SourceSearchResult]
    ) -> AmbiguityDetection:
        if len(results) < 2:
            return NO_AMBIGUITY
        counts = Counter(result.component for result in results)
        if len(counts) <= 1:
            return NO_AMBIGUITY

        options = _options(counts, COMPONENT_DESCRIPTIONS)
        max_share = options[0].count / len(results)
        significant = [option for option in options if option.count >= 2]
        if max_share < DOMINANT_SHARE or len(significant) >= 2:
            return AmbiguityDetection(
                has_ambiguity=True,
                kind="component",
                options=options,
                question=_component_question(query, options),
            )
        return NO_AMBIGUITY

    def analyze_query_intent(self, query: str) -> QueryLeaning:
        """Guess the platform, layer and component a query leans towards."""
        lowered = query.lower()
        leaning = QueryLeaning()
        for platform, hints in PLATFORM_HINTS:
            if any(hint in lowered for hint in hints):
                leaning.likely_platform = platform
                break
        if is_ui_query(query):
            leaning.likely_layer = "uikit"
        elif "sdk" in lowered or "api" in lowered:
            leaning.likely_layer = "sdk"
        for component, hints in COMPONENT_HINTS:
            if any(hint in lowered for hint in hints):
                leaning.likely_component = component
                break
        return leaning

    def _platform_ambiguity(self, results: Sequence[ApiSearchResult]) -> AmbiguityDetection:
        counts = Counter(result.platform for result in results if result.platform != "all")
        if len(counts) <= 1:
            return NO_AMBIGUITY
        options = _options(counts, PLATFORM_DESCRIPTIONS)
        lines = "\n".join(f"- {option.description} ({option.count} 个相关结果)" for option in options)
        return AmbiguityDetection(
            has_ambiguity=True,
            kind="platform",
            options=options,
            question=f"您想查询哪个平台的实现？\n{lines}",
        )

    def _layer_ambiguity(
        self, query: str, results: Sequence[ApiSearchResult]
    ) -> AmbiguityDetection:
        counts = Counter(result.layer for result in results)
        sdk_count = counts.get("sdk", 0)
        uikit_count = counts.get("uikit", 0)
        if not sdk_count or not uikit_count:
            return NO_AMBIGUITY

        if is_ui_query(query):
            return AmbiguityDetection(
                has_ambiguity=True,
                kind="layer",
                options=[
                    AmbiguityOption("uikit", "UIKit 层（UI 组件和界面定制）", uikit_count),
                    AmbiguityOption("sdk", "SDK 层（核心 IM 功能和数据）", sdk_count),
                ],
                question=(
                    f'"{query}" 可能涉及不同层级：\n'
                    f"- UIKit 层：UI 组件和界面定制 ({uikit_count} 个结果)\n"
                    f"- SDK 层：核心 IM 功能和数据 ({sdk_count} 个结果)\n\n"
                    "您想了解哪一层的实现？"
                ),
            )

        if abs(sdk_count - uikit_count) < sdk_count * 0.5:
            options = [
                AmbiguityOption("sdk", "SDK 层（核心功能）", sdk_count),
                AmbiguityOption("uikit", "UIKit 层（UI 组件）", uikit_count),
            ]
            options.sort(key=lambda option: option.count, reverse=True)
            return AmbiguityDetection(
                has_ambiguity=True,
                kind="layer",
                options=options,
                question="您想查询 SDK 核心功能还是 UIKit 界面组件？",
            )
        return NO_AMBIGUITY

    def _component_ambiguity(
        self, query: str, results: Sequence[ApiSearchResult]
    ) -> AmbiguityDetection:
        counts = Counter(
            result.component for result in results if result.layer == "uikit" and result.component
        )
        if sum(counts.values()) < 2 or len(counts) <= 1:
            return NO_AMBIGUITY

        options = _options(counts, COMPONENT_DESCRIPTIONS)
        if options[0].count / options[-1].count >= COMPONENT_SPREAD:
            return NO_AMBIGUITY
        return AmbiguityDetection(
            has_ambiguity=True,
            kind="component",
            options=options,
            question=_component_question(query, options),
        )


def _component_question(query: str, options: Sequence[AmbiguityOption]) -> str:
    if is_ui_query(query):
        lines = "\n".join(f"- {option.description} ({option.count} 个相关结果)" for option in options)
        return f'"{query}" 在多个 UIKit 组件中都有实现：\n{lines}\n\n您想查看哪个组件的实现？'
    lines = "\n".join(f"- {option.description} ({option.count} 个结果)" for option in options)
    return f"找到多个组件的相关结果：\n{lines}\n\n请指定您想查询的组件。"
