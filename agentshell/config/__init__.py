"""
配置模块 - agentshell 的配置模型与加载工具。
"""

from agentshell.config.loader import get_config_path, load_config, save_config
from agentshell.config.schema import Config

__all__ = ["Config", "get_config_path", "load_config", "save_config"]
