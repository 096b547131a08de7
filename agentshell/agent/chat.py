"""
对话服务模块 - 处理发往 AI 应答器的自由文本消息。

处理流程（process_message）：
1. 读取会话（刷新 last_accessed），保留一份"本条消息之前"的快照
2. 追加用户轮次并持久化
3. 调用应答器生成回复（传入步骤 1 的快照）
4. 追加助手轮次（metadata 来自回复）并持久化
5. 重新读取会话，返回回复与最新会话

应答器失败时异常直接向上传播：用户轮次已经记录，助手轮次不会写入。
"""

from dataclasses import dataclass

from loguru import logger

from agentshell.agent.responder import Reply, Responder
from agentshell.session.errors import SessionNotFoundError
from agentshell.session.manager import SessionManager
from agentshell.session.models import Session


@dataclass
class ChatResult:
    reply: Reply
    session: Session


class ChatService:
    """把一条消息送进会话：记录用户轮次、调用应答器、记录助手轮次。"""

    def __init__(self, manager: SessionManager, responder: Responder):
        self.manager = manager
        self.responder = responder

    async def process_message(self, session_id: str, message: str) -> ChatResult:
        """
        处理一条自由文本消息。

        异常:
            SessionNotFoundError: 会话不存在
            ResponderError: 应答器调用失败
        """
        logger.info(f"Processing message for session {session_id}")

        session = self.manager.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        self.manager.add_conversation_turn(session_id, "user", message, {"source": "interactive"})
        reply = await self.responder.respond(message, session)
        self.manager.add_conversation_turn(session_id, "assistant", reply.content, reply.metadata)

        updated = self.manager.peek_session(session_id) or session
        return ChatResult(reply=reply, session=updated)
