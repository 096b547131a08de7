"""
LiteLLM 提供者 - 通过 LiteLLM 调用任意服务商的大模型。

模型名带服务商前缀（如 "anthropic/claude-sonnet-4-5"、"deepseek/deepseek-chat"），
LiteLLM 据此路由请求并把各家响应统一成 OpenAI 格式。

调用失败不会抛出异常，而是返回 finish_reason="error" 的 LLMResponse，
由 LLMResponder 转换为 ResponderError。
"""

from typing import Any

import litellm
from litellm import acompletion
from loguru import logger

from agentshell.providers.base import LLMProvider, LLMResponse

# 从 LiteLLM usage 对象中提取的用量字段
_USAGE_FIELDS = ("prompt_tokens", "completion_tokens", "total_tokens")


class LiteLLMProvider(LLMProvider):
    """
    LiteLLM 实现。

    参数:
        api_key: 服务商 API Key，留空时由 LiteLLM 从环境变量读取
        api_base: 自定义端点（代理、网关或本地部署）
        default_model: 调用时未指定模型时使用的模型名
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = "anthropic/claude-sonnet-4-5",
    ):
        super().__init__(api_key, api_base)
        self.default_model = default_model
        litellm.suppress_debug_info = True
        # 服务商不支持的参数（如部分模型的 temperature）直接丢弃而不是报错
        litellm.drop_params = True

    def _request_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {}
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base
        return kwargs

    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        target = model or self.default_model
        try:
            raw = await acompletion(
                model=target,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
                **self._request_kwargs(),
            )
        except Exception as e:
            logger.error(f"LLM call to {target} failed: {e}")
            return LLMResponse(content=f"Error calling LLM: {e}", finish_reason="error", model=target)
        return self._to_response(raw, target)

    def _to_response(self, raw: Any, model: str) -> LLMResponse:
        choice = raw.choices[0]
        usage_obj = getattr(raw, "usage", None)
        usage = {name: getattr(usage_obj, name, 0) or 0 for name in _USAGE_FIELDS} if usage_obj else {}
        return LLMResponse(
            content=choice.message.content,
            finish_reason=choice.finish_reason or "stop",
            usage=usage,
            model=getattr(raw, "model", None) or model,
        )

    def get_default_model(self) -> str:
        return self.default_model
