"""Synonym and abbreviation expansion for search queries."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from sdk_assist.config import ExpansionConfig
from sdk_assist.text.tokenizer import STOP_WORDS, contains_cjk, tokenize
from sdk_assist.types import ExpandedQuery, SynonymUse

SYNONYMS: Mapping[str, tuple[str, ...]] = {
    # core concepts
    "消息": ("message", "msg", "信息", "聊天"),
    "message": ("消息", "msg", "信息"),
    "msg": ("message", "消息"),
    "发送": ("send", "发", "推送", "传送"),
    "send": ("发送", "发", "post"),
    "接收": ("receive", "收到", "收取", "获取"),
    "receive": ("接收", "收到", "get"),
    # users
    "头像": ("avatar", "图像", "照片", "用户头像"),
    "avatar": ("头像", "profile image", "photo"),
    "昵称": ("nickname", "名称", "用户名", "显示名"),
    "nickname": ("昵称", "name", "display name"),
    "用户": ("user", "成员", "联系人"),
    "user": ("用户", "member", "contact"),
    # groups and chatrooms
    "群": ("group", "群组", "群聊"),
    "group": ("群", "群组", "群聊"),
    "群组": ("group", "群", "群聊"),
    "聊天室": ("chatroom", "room", "直播间", "房间"),
    "chatroom": ("聊天室", "room", "直播间"),
    "直播间": ("chatroom", "聊天室", "room"),
    # conversations
    "会话": ("conversation", "conv", "对话", "聊天"),
    "conversation": ("会话", "conv", "chat"),
    "conv": ("conversation", "会话"),
    # UI elements
    "气泡": ("bubble", "消息框", "消息气泡"),
    "bubble": ("气泡", "消息框", "message bubble"),
    "颜色": ("color", "色彩", "配色"),
    "color": ("颜色", "色彩", "hue"),
    "样式": ("style", "外观", "风格", "UI"),
    "style": ("样式", "外观", "appearance"),
    "主题": ("theme", "风格", "皮肤"),
    "theme": ("主题", "风格", "skin"),
    "背景": ("background", "bg", "底色"),
    "background": ("背景", "bg"),
    "按钮": ("button", "btn", "控件"),
    "button": ("按钮", "btn"),
    "btn": ("button", "按钮"),
    "菜单": ("menu", "选项", "操作栏"),
    "menu": ("菜单", "选项"),
    # callbacks
    "回调": ("callback", "delegate", "监听", "listener", "事件"),
    "callback": ("回调", "delegate", "handler"),
    "delegate": ("回调", "callback", "代理"),
    "监听": ("listener", "callback", "观察", "observer"),
    "listener": ("监听", "callback", "observer"),
    # verbs
    "修改": ("change", "更改", "设置", "调整", "modify"),
    "change": ("修改", "更改", "update"),
    "设置": ("set", "配置", "修改"),
    "set": ("设置", "configure", "setup"),
    "自定义": ("custom", "customize", "定制", "个性化"),
    "custom": ("自定义", "customize", "定制"),
    "customize": ("自定义", "custom", "定制"),
    "添加": ("add", "增加", "新增", "插入"),
    "add": ("添加", "增加", "insert"),
    "删除": ("delete", "移除", "清除", "remove"),
    "delete": ("删除", "remove", "clear"),
    "remove": ("删除", "delete", "移除"),
    # errors
    "错误": ("error", "异常", "问题", "失败"),
    "error": ("错误", "异常", "exception", "failure"),
    "失败": ("fail", "failed", "错误", "不成功"),
    "fail": ("失败", "failed", "error"),
    # feature modules
    "推送": ("push", "通知", "notification"),
    "push": ("推送", "notification"),
    "音视频": ("audio video", "通话", "call", "rtc"),
    "通话": ("call", "音视频", "voice", "video"),
    "call": ("通话", "音视频", "呼叫"),
    "登录": ("login", "登陆", "签入", "sign in"),
    "login": ("登录", "sign in", "authenticate"),
    "退出": ("logout", "登出", "注销", "sign out"),
    "logout": ("退出", "sign out", "注销"),
    # message types
    "文本": ("text", "文字"),
    "text": ("文本", "文字"),
    "图片": ("image", "照片", "picture", "photo"),
    "image": ("图片", "picture", "photo"),
    "语音": ("voice", "音频", "audio"),
    "voice": ("语音", "audio"),
    "视频": ("video", "影片"),
    "文件": ("file", "附件", "文档"),
    "file": ("文件", "attachment", "document"),
    "位置": ("location", "地理位置", "地点"),
    "location": ("位置", "地点", "position"),
    # SDK layers
    "uikit": ("UI组件", "界面组件", "UI Kit"),
    "sdk": ("SDK", "开发包", "开发套件"),
}

ABBREVIATIONS: Mapping[str, tuple[str, ...]] = {
    "msg": ("message",),
    "conv": ("conversation",),
    "btn": ("button",),
    "bg": ("background",),
    "img": ("image",),
    "cfg": ("config", "configuration"),
    "init": ("initialize", "initialization"),
    "auth": ("authentication", "authorize"),
    "pwd": ("password",),
    "usr": ("user",),
    "grp": ("group",),
    "rm": ("room", "chatroom"),
}


class QueryExpander:
    """Unions domain synonyms and abbreviation expansions into a query's terms."""

    def __init__(
        self,
        config: ExpansionConfig | None = None,
        *,
        synonyms: Mapping[str, Iterable[str]] = SYNONYMS,
        abbreviations: Mapping[str, Iterable[str]] = ABBREVIATIONS,
    ) -> None:
        self.config = config or ExpansionConfig()
        self._synonyms: dict[str, list[str]] = {
            key.lower(): list(values) for key, values in synonyms.items()
        }
        self._abbreviations: dict[str, list[str]] = {
            key.lower(): list(values) for key, values in abbreviations.items()
        }

    def expand(self, query: str) -> ExpandedQuery:
        tokens = list(dict.fromkeys(tokenize(query)))
        expanded: dict[str, None] = dict.fromkeys(tokens)
        used: list[SynonymUse] = []

        for token in tokens:
            if token in STOP_WORDS:
                continue
            synonyms = self.synonyms_for(token)
            if synonyms:
                expanded.update(dict.fromkeys(synonyms))
                used.append(SynonymUse(term=token, synonyms=synonyms))
            expanded.update(dict.fromkeys(self._abbreviations.get(token, ())))

        return ExpandedQuery(original=query, expanded=list(expanded), synonyms_used=used)

    def synonyms_for(self, term: str) -> list[str]:
        lowered = term.lower()
        direct = self._synonyms.get(lowered)
        if direct is not None:
            return list(direct)
        if not contains_cjk(lowered):
            return []

        found: dict[str, None] = {}
        for key, values in self._synonyms.items():
            if key in lowered or lowered in key:
                found.update(dict.fromkeys(values))
        return list(found)

    def add_synonym(self, term: str, synonyms: Iterable[str]) -> None:
        key = term.lower()
        merged = dict.fromkeys(self._synonyms.get(key, []))
        merged.update(dict.fromkeys(synonyms))
        self._synonyms[key] = list(merged)

    def known_terms(self) -> list[str]:
        """Latin table keys, for seeding a spell corrector's dictionary."""
        keys = dict.fromkeys([*self._synonyms, *self._abbreviations])
        return [key for key in keys if not contains_cjk(key)]

    def are_equivalent(self, first: str, second: str) -> bool:
        left = {term.lower() for term in self.expand(first).expanded}
        right = {term.lower() for term in self.expand(second).expanded}
        union = left | right
        if not union:
            return False
        return len(left & right) / len(union) > self.config.equivalence_threshold
