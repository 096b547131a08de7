"""
会话数据模型模块 - 定义会话（Session）、对话轮次（ConversationTurn）和会话摘要。

【存储格式】
每个会话序列化为一个带缩进的 JSON 文档，字段名使用 camelCase：

    {
      "id": "...", "created": "...", "lastAccessed": "...",
      "workingDirectory": "/home/me/project",
      "conversation": [{"id": "...", "timestamp": "...", "role": "user",
                        "content": "...", "metadata": {}}],
      "context": {}, "subAgentId": null, "parentSessionId": null,
      "version": 3
    }

时间戳统一为带时区的 ISO 8601 字符串（UTC）。

【Java 开发者类比】
- Session / ConversationTurn 类似于带 Jackson 注解的 POJO
- to_dict / from_dict 相当于手写的 serializer / deserializer
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from agentshell.utils.helpers import utcnow

# 对话轮次允许的角色
ROLES = ("user", "assistant", "system")


def _new_id() -> str:
    return str(uuid.uuid4())


def _parse_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        # 无时区的时间戳一律按 UTC 解释
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def new_sub_agent_id() -> str:
    """生成子代理标识，形如 "agent-1a2b3c4d"。"""
    return f"agent-{uuid.uuid4().hex[:8]}"


@dataclass
class ConversationTurn:
    """
    对话中的一个轮次。

    属性:
        role: 'user'、'assistant' 或 'system'
        content: 文本内容
        metadata: 附加注解（如产生该轮次的来源、模型用量等）
        id: 轮次唯一标识
        timestamp: 追加时间
    """

    role: str
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Invalid role {self.role!r}; expected one of {', '.join(ROLES)}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "role": self.role,
            "content": self.content,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConversationTurn":
        return cls(
            id=data["id"],
            timestamp=_parse_time(data["timestamp"]),
            role=data["role"],
            content=data.get("content", ""),
            metadata=data.get("metadata") or {},
        )


@dataclass
class SessionSummary:
    """会话摘要，列表展示时使用，不携带对话内容。"""

    id: str
    created: datetime
    last_accessed: datetime
    working_directory: str
    conversation_length: int
    sub_agent_id: str | None = None
    parent_session_id: str | None = None


@dataclass
class Session:
    """
    一个对话上下文。

    会话只能由 SessionManager 创建和修改，外部不应构造"半成品"会话。
    子代理会话同时带有 sub_agent_id 和 parent_session_id；顶层会话两者均为 None。

    属性:
        id: 会话唯一标识（创建后不可变）
        created: 创建时间
        last_accessed: 最后访问时间，每次读取或写入都会刷新
        working_directory: 会话锚定的文件系统路径
        conversation: 只追加的对话轮次列表（顺序即时间顺序）
        context: 预留的附加键值状态
        sub_agent_id: 子代理标识（仅子会话）
        parent_session_id: 父会话 ID（仅子会话，不校验是否存在）
        version: 乐观并发版本号，每次成功保存加一，从未保存过时为 0
    """

    id: str = field(default_factory=_new_id)
    created: datetime = field(default_factory=utcnow)
    last_accessed: datetime = field(default_factory=utcnow)
    working_directory: str = field(default_factory=lambda: str(Path.cwd()))
    conversation: list[ConversationTurn] = field(default_factory=list)
    context: dict[str, Any] = field(default_factory=dict)
    sub_agent_id: str | None = None
    parent_session_id: str | None = None
    version: int = 0

    @property
    def is_sub_agent(self) -> bool:
        return self.sub_agent_id is not None

    def add_turn(
        self, role: str, content: str, metadata: dict[str, Any] | None = None
    ) -> ConversationTurn:
        """在对话末尾追加一个轮次并返回它。已有轮次不会被重排。"""
        turn = ConversationTurn(role=role, content=content, metadata=metadata or {})
        self.conversation.append(turn)
        return turn

    def clear(self) -> None:
        """清空对话历史，会话本身（ID、工作目录、父子关系）保持不变。"""
        self.conversation = []

    def summary(self) -> SessionSummary:
        return SessionSummary(
            id=self.id,
            created=self.created,
            last_accessed=self.last_accessed,
            working_directory=self.working_directory,
            conversation_length=len(self.conversation),
            sub_agent_id=self.sub_agent_id,
            parent_session_id=self.parent_session_id,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created": self.created.isoformat(),
            "lastAccessed": self.last_accessed.isoformat(),
            "workingDirectory": self.working_directory,
            "conversation": [turn.to_dict() for turn in self.conversation],
            "context": self.context,
            "subAgentId": self.sub_agent_id,
            "parentSessionId": self.parent_session_id,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        """
        从 JSON 字典反序列化会话。

        缺少必填字段（id、created、lastAccessed、workingDirectory）时抛出 KeyError，
        时间戳格式错误时抛出 ValueError，调用方据此判定记录损坏。
        """
        return cls(
            id=data["id"],
            created=_parse_time(data["created"]),
            last_accessed=_parse_time(data["lastAccessed"]),
            working_directory=data["workingDirectory"],
            conversation=[ConversationTurn.from_dict(t) for t in data.get("conversation") or []],
            context=data.get("context") or {},
            sub_agent_id=data.get("subAgentId"),
            parent_session_id=data.get("parentSessionId"),
            version=int(data.get("version", 0)),
        )
