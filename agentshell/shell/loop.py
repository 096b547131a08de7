"""
交互循环模块 - 读取-求值-输出（REPL）状态机。

状态转换：
    PROMPTING ──非空输入──▶ PROCESSING ──完成或出错──▶ PROMPTING
    PROMPTING ──exit / EOF / Ctrl+C──▶ EXITING（终态）
    PROMPTING ──空输入──▶ PROMPTING

InteractiveShell 持有"当前活动会话"，每次处理完输入后采用分发结果中的会话。
处理过程中的任何异常都在这里兜底：记录日志、向用户输出一行错误，然后继续提示，
循环本身不会因为处理失败而终止。

终端读写通过 ShellIO 抽象：CLI 使用 prompt_toolkit + Rich 的实现，
测试使用预先写好输入行的脚本化实现。
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager, nullcontext
from enum import Enum

from loguru import logger

from agentshell import __logo__
from agentshell.commands.base import CommandResult
from agentshell.commands.dispatcher import CommandDispatcher
from agentshell.session.manager import SessionManager
from agentshell.session.models import Session
from agentshell.utils.helpers import format_time

EXIT_COMMAND = "exit"
PROMPT = "agentshell"


class ShellState(Enum):
    PROMPTING = "prompting"
    PROCESSING = "processing"
    EXITING = "exiting"


class ShellIO(ABC):
    """交互循环使用的终端抽象。"""

    @abstractmethod
    async def read_line(self, prompt: str) -> str:
        """显示提示符并读取一行输入。EOFError / KeyboardInterrupt 表示用户要退出。"""
        pass

    @abstractmethod
    def write(self, text: str = "") -> None:
        """原样输出一段文本（不解释任何标记）。"""
        pass

    def show_result(self, result: CommandResult) -> None:
        """输出一次处理结果。默认按纯文本输出，前后各空一行。"""
        if result.response:
            self.write()
            self.write(result.response)
            self.write()

    def busy(self) -> AbstractContextManager:
        """处理输入期间的上下文（如"思考中"动画）。默认什么也不做。"""
        return nullcontext()


def make_prompt(session: Session) -> str:
    """生成提示符；子代理会话在提示符中带上子代理标识。"""
    if session.is_sub_agent:
        return f"{PROMPT}[{session.sub_agent_id}]> "
    return f"{PROMPT}> "


def is_exit_command(text: str) -> bool:
    return text.strip().lower() == EXIT_COMMAND


class InteractiveShell:
    """
    交互循环。

    属性:
        manager: 会话管理器（解析初始会话）
        dispatcher: 命令分发器
        io: 终端读写
        state: 当前状态
        session: 当前活动会话（run() 开始后可用）
    """

    def __init__(self, manager: SessionManager, dispatcher: CommandDispatcher, io: ShellIO):
        self.manager = manager
        self.dispatcher = dispatcher
        self.io = io
        self.state = ShellState.PROMPTING
        self.session: Session | None = None

    def resolve_session(self, session_id: str | None = None) -> Session:
        """
        解析初始会话。

        - 提供了 ID 且能找到：恢复该会话，输出创建时间和已有轮次数
        - 提供了 ID 但找不到：提示后新建会话
        - 未提供 ID：新建会话
        """
        if not session_id:
            return self.manager.create_session()

        session = self.manager.get_session(session_id)
        if session is None:
            logger.warning(f"Session {session_id} not found, creating a new one")
            self.io.write(f"Session {session_id} not found. Creating new session...")
            return self.manager.create_session()

        self.io.write(f"Resumed session {session.id} (created {format_time(session.created)})")
        if session.conversation:
            self.io.write(f"Previous conversation has {len(session.conversation)} turns.")
        return session

    def _print_banner(self, session: Session) -> None:
        self.io.write()
        self.io.write(f"{__logo__} agentshell interactive mode")
        self.io.write(f"Session: {session.id}")
        self.io.write(f"Working Directory: {session.working_directory}")
        self.io.write()
        self.io.write(self.dispatcher.registry.help_text())
        self.io.write()
        self.io.write("Type your message or command and press Enter...")
        self.io.write()

    async def process(self, line: str) -> None:
        """处理一行非空、非 exit 的输入（PROCESSING 状态）。"""
        self.state = ShellState.PROCESSING
        try:
            with self.io.busy():
                result = await self.dispatcher.dispatch(line, self.session)
            if result.session is not None:
                self.session = result.session
            self.io.show_result(result)
        except Exception as e:
            logger.exception(f"Error processing input: {line}")
            self.io.write(f"Error: {e}")
            self.io.write()
        finally:
            self.state = ShellState.PROMPTING

    async def run(self, session_id: str | None = None) -> Session:
        """
        运行交互循环，直到进入 EXITING 状态。

        返回:
            退出时的活动会话
        """
        logger.info(f"Starting interactive mode with session: {session_id or 'new'}")
        self.session = self.resolve_session(session_id)
        self._print_banner(self.session)
        self.state = ShellState.PROMPTING

        while self.state is not ShellState.EXITING:
            try:
                line = await self.io.read_line(make_prompt(self.session))
            except (EOFError, KeyboardInterrupt):
                self.state = ShellState.EXITING
                break

            text = line.strip()
            if not text:
                continue
            if is_exit_command(text):
                self.state = ShellState.EXITING
                break

            await self.process(text)

        self.io.write("Goodbye!")
        return self.session
