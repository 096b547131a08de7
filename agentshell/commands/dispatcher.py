"""
命令分发器模块 (commands/dispatcher.py)

把一行交互输入分类并路由：
- 去掉首尾空白后以 "/" 开头：斜杠命令。第一个空白分隔的词（去掉 "/"，大小写不敏感）
  选择处理器，其余词作为位置参数
- 其他非空输入：自由文本消息，交给 ChatService 发往 AI 应答器

分发前会先纯读取一次活动会话，让命令看到其他进程写入的最新内容。
"""

from loguru import logger

from agentshell.agent.chat import ChatService
from agentshell.commands.base import CommandResult
from agentshell.commands.builtin import register_builtin_commands
from agentshell.commands.registry import CommandRegistry
from agentshell.session.manager import SessionManager
from agentshell.session.models import Session


def parse_command(line: str) -> tuple[str, list[str]] | None:
    """
    解析斜杠命令。

    返回:
        (命令名, 参数列表)；输入不是斜杠命令时返回 None

    示例:
        "/Switch abc"  → ("switch", ["abc"])
        "hello /world" → None
    """
    text = line.strip()
    if not text.startswith("/"):
        return None
    parts = text.split()
    return parts[0][1:].lower(), parts[1:]


class CommandDispatcher:
    """
    命令分发器。

    属性:
        manager: 会话管理器
        chat: 自由文本消息的处理服务
        registry: 斜杠命令注册表；不传时自动注册全部内置命令
    """

    def __init__(
        self,
        manager: SessionManager,
        chat: ChatService,
        registry: CommandRegistry | None = None,
    ):
        self.manager = manager
        self.chat = chat
        if registry is None:
            registry = register_builtin_commands(CommandRegistry(), manager)
        self.registry = registry

    async def dispatch(self, line: str, active: Session) -> CommandResult:
        """
        处理一行输入。

        参数:
            line: 原始输入
            active: 当前活动会话

        返回:
            CommandResult；其 session 为处理后应采用的活动会话

        异常:
            处理过程中的任何异常（会话不存在、应答器失败、磁盘错误）都直接向上传播，
            由交互循环统一记录和展示
        """
        text = line.strip()
        current = self.manager.peek_session(active.id) or active
        if not text:
            return CommandResult("", current)

        parsed = parse_command(text)
        if parsed is None:
            result = await self.chat.process_message(current.id, text)
            return CommandResult(result.reply.content, result.session, from_assistant=True)

        name, args = parsed
        command = self.registry.get(name)
        if command is None:
            logger.debug(f"Unknown command: /{name}")
            return CommandResult(f"Unknown command: /{name}. Type /help for available commands.", current)

        logger.debug(f"Executing /{name} with {len(args)} args in session {current.id}")
        return await command.execute(args, current)
