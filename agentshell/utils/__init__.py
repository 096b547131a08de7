"""
工具函数模块 - 提供 agentshell 项目全局通用的辅助函数。
"""

from agentshell.utils.helpers import ensure_dir, get_data_path, get_history_path

__all__ = ["ensure_dir", "get_data_path", "get_history_path"]
