"""
AI 应答器模块 - 为自由文本消息生成回复。

交互外壳本身不关心回复从哪里来，只依赖一个很窄的约定：
给定一条消息和会话快照（会话 ID + 之前的对话轮次），返回回复文本和可选的结构化元数据。

实现：
- SimulatedResponder：本地关键词匹配的模拟应答器，无需 API Key，适合离线体验和测试
- LLMResponder：通过 LLMProvider（默认 LiteLLM）调用真实大模型
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from agentshell.providers.base import LLMProvider
from agentshell.session.models import Session
from agentshell.utils.helpers import format_time


class ResponderError(Exception):
    """AI 后端调用失败。"""


@dataclass
class Reply:
    """应答器返回的回复。metadata 会原样写入助手轮次的 metadata。"""
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


class Responder(ABC):
    """AI 应答器抽象基类。"""

    @abstractmethod
    async def respond(self, message: str, session: Session) -> Reply:
        """
        为一条用户消息生成回复。

        参数:
            message: 用户输入的消息
            session: 会话快照，conversation 中只包含本条消息之前的轮次

        返回:
            Reply

        异常:
            ResponderError: 后端调用失败
        """
        pass


class SimulatedResponder(Responder):
    """
    基于关键词的模拟应答器。

    按顺序匹配：analyze → implement/create → help/? → session/status → 默认回显。
    """

    def __init__(self, delay: float = 0.0):
        self.delay = delay

    async def respond(self, message: str, session: Session) -> Reply:
        if self.delay:
            await asyncio.sleep(self.delay)

        text = message.lower()
        if "analyze" in text:
            content = (
                f"I'll analyze the code in your working directory: {session.working_directory}. "
                "This is a simulated response; a configured model would perform the actual analysis."
            )
        elif "implement" in text or "create" in text:
            content = (
                "I'll help you implement that feature. This is a simulated response; "
                "a configured model would generate the actual code and files."
            )
        elif "help" in text or "?" in text:
            content = (
                "I'm your AI coding assistant. I can help you analyze code, implement features, "
                "debug issues, and answer programming questions. What would you like to work on?"
            )
        elif "session" in text or "status" in text:
            content = (
                f"Current session: {session.id}\n"
                f"Working directory: {session.working_directory}\n"
                f"Conversation turns: {len(session.conversation)}\n"
                f"Created: {format_time(session.created)}"
            )
        else:
            content = (
                f'I understand you said: "{message}". '
                "This is a simulated response. Configure a provider API key to chat with a real model."
            )

        return Reply(content=content, metadata={"responder": "simulated"})


SYSTEM_PROMPT = """You are an AI coding assistant running inside an interactive shell.
The user's current working directory is: {working_directory}
Be concise and accurate."""


class LLMResponder(Responder):
    """
    基于 LLMProvider 的应答器。

    构建的消息列表：系统提示词（包含工作目录）→ 最近 history_window 个历史轮次 → 本条消息。

    属性:
        provider: LLM 提供者
        model: 模型名称，None 时使用 provider 的默认模型
        history_window: 作为上下文的历史轮次数
    """

    def __init__(
        self,
        provider: LLMProvider,
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        history_window: int = 50,
    ):
        self.provider = provider
        self.model = model or provider.get_default_model()
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.history_window = history_window

    def build_messages(self, message: str, session: Session) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = [
            {"role": "system", "content": SYSTEM_PROMPT.format(working_directory=session.working_directory)}
        ]
        history = session.conversation[-self.history_window:] if self.history_window > 0 else []
        messages.extend({"role": t.role, "content": t.content} for t in history)
        messages.append({"role": "user", "content": message})
        return messages

    async def respond(self, message: str, session: Session) -> Reply:
        messages = self.build_messages(message, session)
        logger.debug(f"Calling {self.model} with {len(messages)} messages for session {session.id}")

        response = await self.provider.chat(
            messages=messages,
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        if response.is_error:
            raise ResponderError(response.content or "LLM call failed")

        metadata: dict[str, Any] = {
            "responder": "llm",
            "model": response.model or self.model,
            "finish_reason": response.finish_reason,
        }
        if response.usage:
            metadata["usage"] = response.usage
        return Reply(content=response.content or "", metadata=metadata)
