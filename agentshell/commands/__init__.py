"""
斜杠命令模块 - 交互输入的分类与路由。

- base.py：Command 抽象基类与 CommandResult
- registry.py：CommandRegistry，命令名 → 命令实例
- builtin.py：内置命令（/help /status /sessions /new /switch /history /clear /cd /sub）
- dispatcher.py：CommandDispatcher，把一行输入路由到命令或 AI 应答器
"""

from agentshell.commands.base import Command, CommandResult
from agentshell.commands.builtin import register_builtin_commands
from agentshell.commands.dispatcher import CommandDispatcher, parse_command
from agentshell.commands.registry import CommandRegistry

__all__ = [
    "Command",
    "CommandDispatcher",
    "CommandRegistry",
    "CommandResult",
    "parse_command",
    "register_builtin_commands",
]
