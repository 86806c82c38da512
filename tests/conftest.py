import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from sdk_assist.config import AssistSettings, CacheConfig

SOURCE_MANIFEST = {
    "version": "1.0",
    "platforms": ["ios"],
    "shards": {
        "EaseChatUIKit": {
            "path": "shards/EaseChatUIKit.json",
            "fileCount": 3,
            "symbolCount": 4,
            "classes": ["MessageCell", "CustomMessageCell", "ConversationListController"],
        },
        "EaseChatroomUIKit": {
            "path": "shards/EaseChatroomUIKit.json",
            "fileCount": 2,
            "symbolCount": 2,
            "classes": ["ChatroomView", "GiftBarrageCell"],
        },
    },
}

CHAT_SOURCE_SHARD = {
    "component": "EaseChatUIKit",
    "platform": "ios",
    "files": [
        {
            "path": "Sources/Chat/MessageCell.swift",
            "classes": ["MessageCell"],
            "lines": 320,
            "keywords": ["message", "cell", "bubble"],
            "description": "Base message cell with bubble",
        },
        {
            "path": "Sources/Chat/CustomMessageCell.swift",
            "classes": ["CustomMessageCell"],
            "lines": 120,
            "keywords": ["custom", "message"],
            "description": "Custom message cell",
        },
        {
            "path": "Sources/Conversation/ConversationListController.swift",
            "classes": ["ConversationListController"],
            "lines": 410,
            "keywords": ["conversation", "list"],
            "description": "Conversation list screen",
        },
    ],
    "symbols": [
        {
            "name": "MessageCell",
            "type": "class",
            "file": "Sources/Chat/MessageCell.swift",
            "line": 12,
            "signature": "open class MessageCell: UITableViewCell",
        },
        {
            "name": "MessageCell.updateBubble",
            "type": "method",
            "file": "Sources/Chat/MessageCell.swift",
            "line": 80,
            "signature": "func updateBubble()",
            "owner": "MessageCell",
        },
        {
            "name": "CustomMessageCell",
            "type": "class",
            "file": "Sources/Chat/CustomMessageCell.swift",
            "line": 8,
            "signature": "open class CustomMessageCell: MessageCell",
        },
        {
            "name": "ConversationListController",
            "type": "class",
            "file": "Sources/Conversation/ConversationListController.swift",
            "line": 20,
            "signature": "open class ConversationListController: UIViewController",
        },
    ],
}

CHATROOM_SOURCE_SHARD = {
    "component": "EaseChatroomUIKit",
    "platform": "ios",
    "files": [
        {
            "path": "Sources/Room/ChatroomView.swift",
            "classes": ["ChatroomView"],
            "lines": 200,
            "keywords": ["chatroom", "view"],
            "description": "Chatroom container view",
        },
        {
            "path": "Sources/Room/GiftBarrageCell.swift",
            "classes": ["GiftBarrageCell"],
            "lines": 90,
            "keywords": ["gift", "barrage"],
            "description": "Gift barrage cell",
        },
    ],
    "symbols": [
        {
            "name": "ChatroomView",
            "type": "class",
            "file": "Sources/Room/ChatroomView.swift",
            "line": 10,
        },
        {
            "name": "GiftBarrageCell",
            "type": "class",
            "file": "Sources/Room/GiftBarrageCell.swift",
            "line": 6,
        },
    ],
}

DOCS_MANIFEST = {
    "version": "1.0",
    "platforms": ["ios", "android"],
    "shards": {
        "ios": {"path": "shards/ios.json", "keywords": ["ios", "swift"]},
        "android": {"path": "shards/android.json", "keywords": ["android", "kotlin"]},
    },
    "shared": {"errorCodes": {"path": "shared/error-codes.json", "count": 4}},
}

IOS_DOCS_SHARD = {
    "platform": "ios",
    "apiModules": [
        {
            "id": "ios-chat-manager",
            "name": "ChatManager",
            "description": "Send and receive messages",
            "docPath": "ios/chat-manager.md",
            "layer": "sdk",
            "keywords": ["message", "send"],
        },
        {
            "id": "ios-message-cell",
            "name": "MessageCell",
            "description": "UIKit message bubble cell",
            "docPath": "ios/message-cell.md",
            "layer": "uikit",
            "component": "EaseChatUIKit",
            "keywords": ["bubble", "cell"],
        },
        {
            "id": "ios-group-manager",
            "name": "GroupManager",
            "description": "Create and manage groups",
            "docPath": "ios/group-manager.md",
            "layer": "sdk",
            "keywords": ["group"],
        },
    ],
    "guides": [
        {
            "id": "ios-quickstart",
            "title": "Quick start",
            "path": "ios/quickstart.md",
            "keywords": ["integrate", "install", "setup"],
            "description": "Integrate the SDK into an app",
        }
    ],
}

ANDROID_DOCS_SHARD = {
    "platform": "android",
    "apiModules": [
        {
            "id": "android-chat-manager",
            "name": "ChatManager",
            "description": "Send and receive messages",
            "docPath": "android/chat-manager.md",
            "layer": "sdk",
            "keywords": ["message", "send"],
        }
    ],
    "guides": [],
}

ERROR_CODES = {
    "errorCodes": {
        "200": {
            "code": 200,
            "name": "USER_NOT_LOGIN",
            "brief": "用户未登录",
            "description": "调用接口前没有登录",
            "causes": ["未调用 login"],
            "solutions": ["先调用 login 再发送"],
        },
        "300": {
            "code": 300,
            "name": "SERVER_NOT_REACHABLE",
            "brief": "连接服务器失败",
            "description": "网络不可用或服务器地址错误",
            "causes": ["网络断开"],
            "solutions": ["检查网络连接"],
        },
        "506": {
            "code": 506,
            "name": "USER_MUTED",
            "brief": "用户被禁言",
            "description": "用户在群组或聊天室中被禁言",
            "causes": ["管理员禁言"],
            "solutions": ["联系管理员解除禁言"],
        },
        "508": {
            "code": 508,
            "name": "MESSAGE_EXTERNAL_LOGIC_BLOCKED",
            "brief": "消息被拦截",
            "description": "消息被回调服务拦截",
            "causes": ["发送前回调返回拒绝"],
            "solutions": ["检查发送前回调的配置"],
        },
    }
}

CONFIG_MANIFEST = {
    "version": "1.0",
    "platforms": ["ios"],
    "shards": {
        "ios": {
            "path": "shards/ios.json",
            "components": ["EaseChatUIKit", "EaseChatroomUIKit"],
        }
    },
}

IOS_CONFIG_SHARD = {
    "platform": "ios",
    "components": {
        "EaseChatUIKit": {
            "name": "EaseChatUIKit",
            "description": "Chat UI components",
            "configProperties": [
                {
                    "name": "primaryHue",
                    "type": "CGFloat",
                    "defaultValue": "203/360.0",
                    "description": "Primary hue of the theme",
                },
                {
                    "name": "avatarRadius",
                    "type": "CornerRadius",
                    "defaultValue": ".extraSmall",
                    "description": "Avatar corner radius",
                },
                {
                    "name": "inputExtendActions",
                    "type": "[ActionSheetItemProtocol]",
                    "description": "Attachment menu items in the input bar",
                },
            ],
            "extensionPoints": [
                {
                    "name": "MessageListViewActionEventsDelegate",
                    "type": "protocol",
                    "description": "Message list events",
                    "methods": ["onMessageBubbleClicked"],
                },
                {
                    "name": "ComponentsRegister",
                    "type": "class",
                    "description": "Register custom cells",
                    "methods": ["registerCustomCellClasses"],
                },
            ],
        },
        "EaseChatroomUIKit": {
            "name": "EaseChatroomUIKit",
            "description": "Chatroom UI components",
            "configProperties": [
                {
                    "name": "giftBarrageRowHeight",
                    "type": "CGFloat",
                    "defaultValue": "44",
                    "description": "Row height of gift barrage cells",
                }
            ],
            "extensionPoints": [],
        },
    },
}


IMPACT_ANALYSIS = {
    "version": "1.0",
    "generatedAt": "2026-01-01T00:00:00Z",
    "totalConfigs": 1,
    "byComponent": {
        "EaseChatUIKit": [
            {
                "property": {
                    "name": "primaryHue",
                    "type": "CGFloat",
                    "defaultValue": "203/360.0",
                    "description": "Primary hue of the theme",
                    "file": "Sources/Appearance.swift",
                    "line": 14,
                },
                "usageCount": 6,
                "usages": [
                    {
                        "file": f"Sources/Chat/View{number}.swift",
                        "line": 10 + number,
                        "context": "let color = UIColor.theme.primaryColor\nreturn color",
                        "component": "EaseChatUIKit",
                    }
                    for number in range(6)
                ],
                "affectedComponents": ["MessageCell", "ConversationListController"],
                "category": "Color",
                "summary": "Tints every themed component",
            }
        ]
    },
    "byCategory": {},
}

MESSAGE_CELL_SOURCE = "\n".join(
    [
        "import UIKit",
        "",
        "open class MessageCell: UITableViewCell {",
        "    func updateBubble() {",
        "        bubble.setNeedsLayout()",
        "    }",
        "}",
    ]
)


def _write(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


def write_knowledge_base(root: Path) -> None:
    _write(root / "sources" / "manifest.json", SOURCE_MANIFEST)
    _write(root / "sources" / "shards" / "EaseChatUIKit.json", CHAT_SOURCE_SHARD)
    _write(root / "sources" / "shards" / "EaseChatroomUIKit.json", CHATROOM_SOURCE_SHARD)
    (root / "sources" / "Sources" / "Chat").mkdir(parents=True, exist_ok=True)
    (root / "sources" / "Sources" / "Chat" / "MessageCell.swift").write_text(
        MESSAGE_CELL_SOURCE, encoding="utf-8"
    )
    _write(root / "docs" / "manifest.json", DOCS_MANIFEST)
    _write(root / "docs" / "shards" / "ios.json", IOS_DOCS_SHARD)
    _write(root / "docs" / "shards" / "android.json", ANDROID_DOCS_SHARD)
    _write(root / "docs" / "shared" / "error-codes.json", ERROR_CODES)
    (root / "docs" / "ios").mkdir(parents=True, exist_ok=True)
    (root / "docs" / "ios" / "quickstart.md").write_text("# Quick start\n", encoding="utf-8")
    _write(root / "configs" / "manifest.json", CONFIG_MANIFEST)
    _write(root / "configs" / "shards" / "ios.json", IOS_CONFIG_SHARD)
    _write(root / "configs" / "impact-analysis.json", IMPACT_ANALYSIS)


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    write_knowledge_base(tmp_path)
    return tmp_path


@pytest.fixture
def settings(data_dir: Path) -> AssistSettings:
    return AssistSettings(data_dir=data_dir, cache=CacheConfig(capacity=4))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def write_json() -> Callable[[Path, Any], None]:
    return _write
