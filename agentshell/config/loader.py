"""
配置文件读写 (config/loader.py)

磁盘上的 config.json 使用 camelCase 键名（与会话记录保持一致），
Config 模型内部使用 snake_case；读写时在两者之间递归转换。
"""

import json
import re
from pathlib import Path
from typing import Any, Callable

from loguru import logger
from pydantic import ValidationError

from agentshell.config.schema import Config

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def get_config_path() -> Path:
    """默认配置文件位置: ~/.agentshell/config.json"""
    return Path.home() / ".agentshell" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    读取配置。

    文件不存在时直接使用默认值；文件无法解析或字段校验失败时
    记录警告、在终端提示一次，然后同样回退到默认值，CLI 不会因此退出。
    环境变量（AGENTSHELL_ 前缀）始终可以覆盖文件中的值。
    """
    path = config_path or get_config_path()
    if not path.exists():
        return Config()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        # 以初始化参数传入，环境变量源才会参与合并（优先级见 Config.settings_customise_sources）
        return Config(**convert_keys(raw))
    except (ValueError, TypeError, ValidationError) as e:
        logger.warning(f"Invalid config file {path}: {e}")
        print(f"Warning: Failed to load config from {path}: {e}")
        print("Using default configuration.")
        return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """以 camelCase 键名写出配置，必要时创建父目录。"""
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(convert_to_camel(config.model_dump()), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    logger.debug(f"Config written to {path}")


def _map_keys(data: Any, rename: Callable[[str], str]) -> Any:
    if isinstance(data, dict):
        return {rename(key): _map_keys(value, rename) for key, value in data.items()}
    if isinstance(data, list):
        return [_map_keys(item, rename) for item in data]
    return data


def convert_keys(data: Any) -> Any:
    """{"historyLimit": 10} → {"history_limit": 10}，嵌套结构一并处理。"""
    return _map_keys(data, camel_to_snake)


def convert_to_camel(data: Any) -> Any:
    return _map_keys(data, snake_to_camel)


def camel_to_snake(name: str) -> str:
    """例: maxSaveRetries → max_save_retries"""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def snake_to_camel(name: str) -> str:
    """例: max_save_retries → maxSaveRetries"""
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)
