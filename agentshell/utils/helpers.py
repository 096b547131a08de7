"""
工具函数集合 - agentshell 项目全局通用的辅助函数。

本模块提供路径管理、字符串处理、时间戳等基础工具函数，
被会话存储、命令处理和 CLI 等多个模块引用。

函数分类：
- 路径管理：ensure_dir, get_data_path, get_history_path
- 字符串工具：truncate_string, safe_filename
- 时间工具：utcnow, format_time
"""

from datetime import datetime, timezone
from pathlib import Path


def ensure_dir(path: Path) -> Path:
    """
    确保目录存在，不存在则递归创建。

    参数:
        path: 目标目录路径

    返回:
        创建后的目录路径（原样返回）
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """获取 agentshell 数据目录（~/.agentshell）。自动创建不存在的目录。"""
    return ensure_dir(Path.home() / ".agentshell")


def get_history_path() -> Path:
    """获取交互模式输入历史文件路径（~/.agentshell/history/cli_history）。"""
    return ensure_dir(get_data_path() / "history") / "cli_history"


def utcnow() -> datetime:
    """获取带时区信息的当前 UTC 时间。会话中的所有时间戳都使用它生成。"""
    return datetime.now(timezone.utc)


def format_time(value: datetime, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    """按给定格式输出时间，供 /status、/sessions 等命令展示用。"""
    return value.strftime(fmt)


def truncate_string(s: str, max_len: int = 100, suffix: str = "...") -> str:
    """
    截断字符串到指定最大长度，超出时添加后缀。

    参数:
        s: 原始字符串
        max_len: 保留的正文最大长度（不含后缀），默认 100
        suffix: 截断后缀，默认 "..."

    返回:
        截断后的字符串
    """
    if len(s) <= max_len:
        return s
    return s[:max_len] + suffix


def safe_filename(name: str) -> str:
    """
    将字符串转换为安全的文件名（移除/替换不安全字符）。

    替换的不安全字符包括：< > : " / \\ | ? *
    另外把开头的 "." 替换掉，避免会话 ID 形如 ".." 时逃出会话目录。

    参数:
        name: 原始文件名

    返回:
        安全的文件名字符串
    """
    unsafe = '<>:"/\\|?*'
    for char in unsafe:
        name = name.replace(char, "_")
    name = name.strip()
    if name.startswith("."):
        name = "_" + name[1:]
    return name
