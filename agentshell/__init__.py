"""
agentshell - 交互式 AI 助手命令行外壳

模块概述：
    本文件是 agentshell 包的入口文件（__init__.py），定义了包的元信息。
    agentshell 是一个带会话管理的 AI 助手交互式命令行，核心功能包括：
    - 会话（Session）的创建、恢复、切换与持久化
    - 子代理（Sub-agent）会话：由当前会话派生出的子会话
    - 斜杠命令（/help、/status、/sessions 等）与自由消息的路由
    - 基于 LLM 或本地模拟应答器的对话
"""

# 版本号，遵循语义化版本规范（主版本.次版本.修订号）
__version__ = "0.1.0"

# 项目 logo 表情符号，用于 CLI 输出中的品牌标识
__logo__ = "🐚"
