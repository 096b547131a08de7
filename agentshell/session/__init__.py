"""
会话管理模块 - 管理对话会话的生命周期、子代理关系和历史记录持久化。

【架构定位】
自下而上：
- SessionStore：每个会话一个 JSON 文件的持久化层
- SessionManager：会话/子代理的生命周期规则，唯一允许修改会话数据的组件
命令分发器和对话服务都通过 SessionManager 访问会话。
"""

from agentshell.session.errors import SessionConflictError, SessionError, SessionNotFoundError
from agentshell.session.manager import SessionManager
from agentshell.session.models import ConversationTurn, Session, SessionSummary
from agentshell.session.store import SessionStore

__all__ = [
    "ConversationTurn",
    "Session",
    "SessionConflictError",
    "SessionError",
    "SessionManager",
    "SessionNotFoundError",
    "SessionStore",
    "SessionSummary",
]
