"""
会话管理器模块 - 在存储层之上实现会话与子代理的生命周期规则。

SessionManager 是唯一允许修改会话数据的组件：命令处理、对话服务以及
任何外部传输层（如 HTTP 接口）都通过它创建、读取、删除会话和追加对话轮次。

【读取-修改-写回】
追加轮次、清空历史、切换工作目录都是对整条会话记录的"读取-修改-写回"。
update_session() 把这一过程统一起来：保存时若遇到 SessionConflictError
（其他进程抢先写入），就重新读取最新记录、重新应用修改，最多尝试
max_save_retries 次，仍冲突则把异常抛给调用方。
"""

from typing import Any, Callable

from loguru import logger

from agentshell.session.errors import SessionConflictError, SessionNotFoundError
from agentshell.session.models import ConversationTurn, Session, SessionSummary
from agentshell.session.store import SessionStore


class SessionManager:
    """
    会话管理器。

    属性:
        store: 底层会话存储
        max_save_retries: 乐观并发冲突时的最大尝试次数
    """

    def __init__(self, store: SessionStore, max_save_retries: int = 3):
        self.store = store
        self.max_save_retries = max(1, max_save_retries)

    def create_session(
        self, working_directory: str | None = None, parent_id: str | None = None
    ) -> Session:
        """
        创建会话。提供 parent_id 时创建子代理会话，结果必定带有 sub_agent_id。

        父会话是否存在不做强制校验（允许悬空引用），找不到时仅记录警告。
        """
        if parent_id and self.store.peek(parent_id) is None:
            logger.warning(f"Parent session {parent_id} not found; creating sub-session anyway")
        return self.store.create(working_directory, parent_id)

    def get_session(self, session_id: str) -> Session | None:
        """获取会话并刷新其 last_accessed（见 SessionStore.get_and_touch）。"""
        return self.store.get_and_touch(session_id)

    def peek_session(self, session_id: str) -> Session | None:
        """纯读取会话，不刷新 last_accessed。"""
        return self.store.peek(session_id)

    def list_sessions(self) -> list[Session]:
        return self.store.list()

    def list_summaries(self) -> list[SessionSummary]:
        """列出全部会话的摘要，顺序与 list_sessions() 相同。"""
        return [s.summary() for s in self.store.list()]

    def find_children(self, session_id: str) -> list[Session]:
        """查找由指定会话派生出的子代理会话。"""
        return [s for s in self.store.list() if s.parent_session_id == session_id]

    def delete_session(self, session_id: str) -> bool:
        """删除会话。不级联删除其子代理会话。"""
        return self.store.delete(session_id)

    def update_session(self, session_id: str, mutate: Callable[[Session], Any]) -> Session:
        """
        对会话执行一次带冲突重试的"读取-修改-写回"。

        参数:
            session_id: 会话 ID
            mutate: 就地修改会话的函数；冲突重试时会对重新读取的记录再次调用

        返回:
            保存后的会话

        异常:
            SessionNotFoundError: 会话不存在（不会自动创建）
            SessionConflictError: 重试次数耗尽仍然冲突
        """
        for attempt in range(1, self.max_save_retries + 1):
            session = self.store.peek(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)

            mutate(session)
            try:
                self.store.save(session)
                return session
            except SessionConflictError as e:
                if attempt == self.max_save_retries:
                    logger.error(f"Giving up on session {session_id} after {attempt} attempts: {e}")
                    raise
                logger.warning(f"Retrying update of session {session_id}: {e}")

        raise AssertionError("unreachable")

    def add_conversation_turn(
        self,
        session_id: str,
        role: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> ConversationTurn:
        """
        在会话对话末尾追加一个轮次并持久化。

        参数:
            session_id: 会话 ID
            role: 'user'、'assistant' 或 'system'，其他值抛出 ValueError
            content: 文本内容
            metadata: 可选的附加注解

        返回:
            新追加的轮次

        异常:
            SessionNotFoundError: 会话不存在
        """
        # 先构造一次以便在读取会话之前校验 role
        turn = ConversationTurn(role=role, content=content, metadata=dict(metadata or {}))

        def append(session: Session) -> None:
            session.conversation.append(turn)

        self.update_session(session_id, append)
        logger.debug(f"Added {role} turn to session {session_id}")
        return turn

    def clear_conversation(self, session_id: str) -> Session:
        """清空会话对话历史并持久化。"""
        session = self.update_session(session_id, Session.clear)
        logger.info(f"Cleared conversation of session {session_id}")
        return session

    def set_working_directory(self, session_id: str, path: str) -> Session:
        """修改会话工作目录并持久化。路径校验由调用方负责。"""

        def change(session: Session) -> None:
            session.working_directory = path

        session = self.update_session(session_id, change)
        logger.info(f"Session {session_id} working directory set to {path}")
        return session
