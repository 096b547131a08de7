"""
内置斜杠命令 (commands/builtin.py)

命令清单：
- 会话管理：/status /sessions /new /switch /history /clear
- 导航：/cd
- 子代理：/sub
- 通用：/help

除 /new、/switch、/sub 外，命令都不会切换活动会话；
会修改会话的命令（/clear、/cd）返回修改后重新读取的同一个会话。
"""

from pathlib import Path

from agentshell.commands.base import Command, CommandResult
from agentshell.commands.registry import CommandRegistry
from agentshell.session.manager import SessionManager
from agentshell.session.models import Session
from agentshell.utils.helpers import format_time, truncate_string


class HelpCommand(Command):
    category = "General"

    def __init__(self, registry: CommandRegistry):
        self.registry = registry

    @property
    def name(self) -> str:
        return "help"

    @property
    def description(self) -> str:
        return "Show this help"

    async def execute(self, args: list[str], session: Session) -> CommandResult:
        return CommandResult(self.registry.help_text(), session)


class StatusCommand(Command):
    category = "Session Management"

    def __init__(self, manager: SessionManager):
        self.manager = manager

    @property
    def name(self) -> str:
        return "status"

    @property
    def description(self) -> str:
        return "Show current session information"

    async def execute(self, args: list[str], session: Session) -> CommandResult:
        lines = [
            "Session Status:",
            f"  ID: {session.id}",
            f"  Created: {format_time(session.created)}",
            f"  Last Accessed: {format_time(session.last_accessed)}",
            f"  Working Directory: {session.working_directory}",
            f"  Conversation Turns: {len(session.conversation)}",
        ]
        if session.is_sub_agent:
            lines.append(f"  Sub-Agent ID: {session.sub_agent_id}")
        if session.parent_session_id:
            parent = session.parent_session_id
            if self.manager.peek_session(parent) is None:
                parent += " (not found)"
            lines.append(f"  Parent Session: {parent}")
        return CommandResult("\n".join(lines), session)


class SessionsCommand(Command):
    category = "Session Management"

    def __init__(self, manager: SessionManager, list_limit: int = 10):
        self.manager = manager
        self.list_limit = list_limit

    @property
    def name(self) -> str:
        return "sessions"

    @property
    def description(self) -> str:
        return "List all available sessions"

    async def execute(self, args: list[str], session: Session) -> CommandResult:
        sessions = self.manager.list_sessions()
        if not sessions:
            return CommandResult("No sessions found.", session)

        lines = [f"Found {len(sessions)} sessions:", ""]
        for item in sessions[: self.list_limit]:
            marker = "*" if item.id == session.id else " "
            agent = f" [{item.sub_agent_id}]" if item.sub_agent_id else ""
            lines.append(f" {marker}{item.id}{agent}")
            lines.append(f"    Created: {format_time(item.created)}")
            lines.append(f"    Turns: {len(item.conversation)}")
            lines.append(f"    Directory: {item.working_directory}")
            lines.append("")

        if len(sessions) > self.list_limit:
            lines.append(f"... and {len(sessions) - self.list_limit} more sessions")
        return CommandResult("\n".join(lines).rstrip(), session)


class NewCommand(Command):
    category = "Session Management"

    def __init__(self, manager: SessionManager):
        self.manager = manager

    @property
    def name(self) -> str:
        return "new"

    @property
    def description(self) -> str:
        return "Create a new session"

    async def execute(self, args: list[str], session: Session) -> CommandResult:
        created = self.manager.create_session(session.working_directory)
        return CommandResult(f"Created new session: {created.id}", created)


class SwitchCommand(Command):
    category = "Session Management"

    def __init__(self, manager: SessionManager):
        self.manager = manager

    @property
    def name(self) -> str:
        return "switch"

    @property
    def usage(self) -> str:
        return "/switch <id>"

    @property
    def description(self) -> str:
        return "Switch to a different session"

    async def execute(self, args: list[str], session: Session) -> CommandResult:
        if not args:
            return CommandResult("Usage: /switch <session-id>", session)

        target = self.manager.get_session(args[0])
        if target is None:
            return CommandResult(f"Session {args[0]} not found", session)
        return CommandResult(f"Switched to session: {target.id}", target)


class HistoryCommand(Command):
    category = "Session Management"

    def __init__(self, limit: int = 10, preview_chars: int = 100):
        self.limit = limit
        self.preview_chars = preview_chars

    @property
    def name(self) -> str:
        return "history"

    @property
    def description(self) -> str:
        return "Show conversation history"

    async def execute(self, args: list[str], session: Session) -> CommandResult:
        turns = session.conversation
        if not turns:
            return CommandResult("No conversation history in this session.", session)

        lines = []
        if len(turns) > self.limit:
            lines.extend([f"... showing last {self.limit} of {len(turns)} turns", ""])
        lines.extend([f"Conversation History ({len(turns)} turns):", ""])
        for turn in turns[-self.limit:]:
            content = truncate_string(turn.content, self.preview_chars)
            lines.append(f"[{format_time(turn.timestamp, '%H:%M:%S')}] {turn.role.upper()}: {content}")
            lines.append("")
        return CommandResult("\n".join(lines).rstrip(), session)


class ClearCommand(Command):
    category = "Session Management"

    def __init__(self, manager: SessionManager):
        self.manager = manager

    @property
    def name(self) -> str:
        return "clear"

    @property
    def description(self) -> str:
        return "Clear current conversation history"

    async def execute(self, args: list[str], session: Session) -> CommandResult:
        cleared = self.manager.clear_conversation(session.id)
        return CommandResult("Conversation history cleared", cleared)


class CdCommand(Command):
    category = "Navigation"

    def __init__(self, manager: SessionManager):
        self.manager = manager

    @property
    def name(self) -> str:
        return "cd"

    @property
    def usage(self) -> str:
        return "/cd [path]"

    @property
    def description(self) -> str:
        return "Change working directory (no path: show it)"

    async def execute(self, args: list[str], session: Session) -> CommandResult:
        if not args:
            return CommandResult(f"Current directory: {session.working_directory}", session)

        # 参数按空格重新拼接，支持带空格的路径；相对路径以会话工作目录为基准
        raw = " ".join(args)
        try:
            target = Path(raw).expanduser()
        except RuntimeError:
            # "~someone" 中的用户不存在，无法展开
            return CommandResult(f"Directory not found: {raw}", session)
        if not target.is_absolute():
            target = Path(session.working_directory) / target
        if not target.is_dir():
            return CommandResult(f"Directory not found: {raw}", session)

        updated = self.manager.set_working_directory(session.id, str(target.resolve()))
        return CommandResult(f"Changed directory to: {updated.working_directory}", updated)


class SubAgentCommand(Command):
    category = "Sub-Agents"

    def __init__(self, manager: SessionManager):
        self.manager = manager

    @property
    def name(self) -> str:
        return "sub"

    @property
    def description(self) -> str:
        return "Create a sub-agent session"

    async def execute(self, args: list[str], session: Session) -> CommandResult:
        child = self.manager.create_session(session.working_directory, parent_id=session.id)
        return CommandResult(
            f"Created sub-agent session: {child.id} (Agent: {child.sub_agent_id})", child
        )


def register_builtin_commands(
    registry: CommandRegistry,
    manager: SessionManager,
    history_limit: int = 10,
    list_limit: int = 10,
    preview_chars: int = 100,
) -> CommandRegistry:
    """把全部内置命令注册到 registry 并返回它。"""
    for command in (
        StatusCommand(manager),
        SessionsCommand(manager, list_limit),
        NewCommand(manager),
        SwitchCommand(manager),
        HistoryCommand(history_limit, preview_chars),
        ClearCommand(manager),
        CdCommand(manager),
        SubAgentCommand(manager),
        HelpCommand(registry),
    ):
        registry.register(command)
    return registry
