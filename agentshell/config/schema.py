"""
配置数据模型定义 (config/schema.py)
=================================
本模块使用 Pydantic 定义 agentshell 的完整配置结构。
所有配置项都有默认值，用户只需在 config.json 中覆盖需要修改的部分。

整体配置结构（树形）：
Config (根配置)
├── sessions   - 会话存储目录与展示参数
├── agent      - 应答器选择与模型参数
└── providers  - LLM 提供商配置（API Key、API Base URL）

对于 Java 开发者：
- Pydantic 的 BaseModel 类似于 Java 的 POJO/Record，但自带字段验证和默认值
- BaseSettings 类似于 Spring 的 @ConfigurationProperties，额外支持从环境变量读取配置
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource


class SessionsConfig(BaseModel):
    """会话存储与展示配置。"""
    directory: str = "~/.agentshell/sessions"  # 会话 JSON 文件目录（可多个进程共享）
    history_limit: int = Field(default=10, ge=1)  # /history 展示的最近轮次数
    list_limit: int = Field(default=10, ge=1)  # /sessions 展示的会话数
    preview_chars: int = Field(default=100, ge=1)  # /history 中每个轮次内容的截断长度
    max_save_retries: int = Field(default=3, ge=1)  # 乐观并发冲突时的最大尝试次数


class AgentConfig(BaseModel):
    """
    应答器配置。

    responder:
    - "auto": 配置了 API Key 时使用 LLM，否则使用模拟应答器
    - "llm": 强制使用 LLM（缺少 API Key 时 CLI 报错退出）
    - "simulated": 始终使用本地模拟应答器
    """
    responder: Literal["auto", "llm", "simulated"] = "auto"
    model: str = "anthropic/claude-sonnet-4-5"  # 格式: provider/model
    max_tokens: int = 4096
    temperature: float = 0.7
    history_window: int = 50  # 作为 LLM 上下文的最近轮次数


class ProviderConfig(BaseModel):
    """单个 LLM 提供商的配置。"""
    api_key: str = ""  # 留空表示未配置该提供商
    api_base: str | None = None  # 自定义 API 基础 URL（私有部署或代理）


class ProvidersConfig(BaseModel):
    anthropic: ProviderConfig = Field(default_factory=ProviderConfig)
    openai: ProviderConfig = Field(default_factory=ProviderConfig)
    openrouter: ProviderConfig = Field(default_factory=ProviderConfig)
    deepseek: ProviderConfig = Field(default_factory=ProviderConfig)


# 模型名关键词 → 提供商名称，按顺序匹配
PROVIDER_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("openrouter", ("openrouter",)),
    ("anthropic", ("anthropic", "claude")),
    ("openai", ("openai", "gpt", "o1", "o3")),
    ("deepseek", ("deepseek",)),
)


class Config(BaseSettings):
    """
    agentshell 根配置类。

    支持从环境变量覆盖配置：
    - 环境变量前缀: AGENTSHELL_
    - 嵌套分隔符: __ (双下划线)
    - 示例: AGENTSHELL_AGENT__RESPONDER=simulated
    """
    sessions: SessionsConfig = Field(default_factory=SessionsConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)

    @property
    def sessions_path(self) -> Path:
        """获取展开后的会话目录绝对路径。"""
        return Path(self.sessions.directory).expanduser()

    def _match_provider(self, model: str | None = None) -> tuple[ProviderConfig | None, str | None]:
        """
        根据模型名称匹配提供商配置。

        1. 关键词匹配（且该提供商已配置 api_key）
        2. 兜底：返回第一个已配置 api_key 的提供商
        """
        model_lower = (model or self.agent.model).lower()
        for name, keywords in PROVIDER_KEYWORDS:
            p = getattr(self.providers, name)
            if p.api_key and any(kw in model_lower for kw in keywords):
                return p, name
        for name, _ in PROVIDER_KEYWORDS:
            p = getattr(self.providers, name)
            if p.api_key:
                return p, name
        return None, None

    def get_provider(self, model: str | None = None) -> ProviderConfig | None:
        p, _ = self._match_provider(model)
        return p

    def get_provider_name(self, model: str | None = None) -> str | None:
        _, name = self._match_provider(model)
        return name

    model_config = ConfigDict(
        env_prefix="AGENTSHELL_",
        env_nested_delimiter="__",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """环境变量优先于配置文件（load_config 以初始化参数传入文件内容），嵌套字段逐项合并。"""
        return env_settings, init_settings, dotenv_settings, file_secret_settings
