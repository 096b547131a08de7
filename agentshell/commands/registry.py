"""
命令注册表模块 (commands/registry.py)

管理所有可用斜杠命令：注册、注销、按名称查找，并根据已注册命令生成 /help 文本。
命令分发器持有一个 CommandRegistry 实例，扩展新命令只需：

    registry.register(MyCommand(...))
"""

from agentshell.commands.base import Command

# /help 中分组的展示顺序，未列出的分组排在最后
CATEGORY_ORDER = ("Session Management", "Navigation", "Sub-Agents", "General")


class CommandRegistry:
    """
    斜杠命令注册表。

    内部使用 dict[str, Command] 存储，以命令名为键。
    如果同名命令已存在，会被新命令覆盖（后注册的优先）。
    """

    def __init__(self):
        self._commands: dict[str, Command] = {}

    def register(self, command: Command) -> None:
        self._commands[command.name.lower()] = command

    def unregister(self, name: str) -> None:
        self._commands.pop(name.lower(), None)

    def get(self, name: str) -> Command | None:
        """按名称获取命令（大小写不敏感），未找到返回 None。"""
        return self._commands.get(name.lower())

    def has(self, name: str) -> bool:
        return name.lower() in self._commands

    @property
    def command_names(self) -> list[str]:
        return list(self._commands.keys())

    def help_text(self) -> str:
        """按分组列出全部已注册命令，末尾附上对话说明和 exit。"""
        groups: dict[str, list[Command]] = {}
        for command in self._commands.values():
            groups.setdefault(command.category, []).append(command)

        def order(category: str) -> int:
            return CATEGORY_ORDER.index(category) if category in CATEGORY_ORDER else len(CATEGORY_ORDER)

        width = max((len(c.usage) for c in self._commands.values()), default=0)
        width = max(width, len("exit")) + 2

        lines = [
            "Interactive Commands:",
            "",
            "Conversation:",
            "  Just type your message to chat with the assistant",
        ]
        for category in sorted(groups, key=order):
            lines.append("")
            lines.append(f"{category}:")
            for command in groups[category]:
                lines.append(f"  {command.usage.ljust(width)} - {command.description}")
            if category == "General":
                lines.append(f"  {'exit'.ljust(width)} - Exit interactive mode")
        if "General" not in groups:
            lines.extend(["", "General:", f"  {'exit'.ljust(width)} - Exit interactive mode"])
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, name: str) -> bool:
        return self.has(name)
