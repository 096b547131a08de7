"""
交互外壳模块 - REPL 状态机与终端抽象。
"""

from agentshell.shell.loop import InteractiveShell, ShellIO, ShellState, make_prompt

__all__ = ["InteractiveShell", "ShellIO", "ShellState", "make_prompt"]
