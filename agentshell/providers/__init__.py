"""
LLM 提供者模块 - 对话应答器背后的大模型调用层。

- base.py：LLMProvider 抽象基类与 LLMResponse 统一响应格式
- litellm_provider.py：基于 LiteLLM 的实现
"""

from agentshell.providers.base import LLMProvider, LLMResponse

__all__ = ["LLMProvider", "LLMResponse"]
