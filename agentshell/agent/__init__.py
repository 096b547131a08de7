"""
Agent 模块 - 自由文本消息的处理链路。

- responder.py：AI 应答器约定及其实现（模拟应答器、LLM 应答器）
- chat.py：ChatService，把消息和回复记录进会话
"""

from agentshell.agent.chat import ChatResult, ChatService
from agentshell.agent.responder import (
    LLMResponder,
    Reply,
    Responder,
    ResponderError,
    SimulatedResponder,
)

__all__ = [
    "ChatResult",
    "ChatService",
    "LLMResponder",
    "Reply",
    "Responder",
    "ResponderError",
    "SimulatedResponder",
]
