"""
CLI 命令模块 - agentshell 的所有命令行命令定义。

本模块使用 Typer 框架定义 agentshell 的 CLI 命令体系：
- onboard：初始化配置文件和数据目录
- chat：与助手交互（单条消息或交互式会话循环）
- sessions：会话管理（列表、查看、新建、删除）
- status：查看系统状态

技术栈：
- Typer：CLI 框架（基于 Click，支持类型注解自动生成帮助文档）
- Rich：终端美化输出（Markdown 渲染、表格、"思考中"动画）
- prompt_toolkit：交互式输入（历史记录、行编辑）

所有服务（SessionStore → SessionManager → ChatService → CommandDispatcher → InteractiveShell）
都在命令函数里显式构造并通过构造函数传递，不存在模块级的全局服务实例。
"""

import asyncio
import html
import os
import select
import sys
from contextlib import AbstractContextManager, nullcontext
from pathlib import Path

import typer
from loguru import logger
from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import FileHistory
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from agentshell import __logo__, __version__
from agentshell.agent.chat import ChatService
from agentshell.agent.responder import LLMResponder, Responder, SimulatedResponder
from agentshell.commands.base import CommandResult
from agentshell.commands.builtin import HistoryCommand, StatusCommand, register_builtin_commands
from agentshell.commands.dispatcher import CommandDispatcher
from agentshell.commands.registry import CommandRegistry
from agentshell.config.loader import get_config_path, load_config, save_config
from agentshell.config.schema import Config
from agentshell.session.manager import SessionManager
from agentshell.session.store import SessionStore
from agentshell.shell.loop import InteractiveShell, ShellIO
from agentshell.utils.helpers import format_time, get_history_path

app = typer.Typer(
    name="agentshell",
    help=f"{__logo__} agentshell - Interactive AI assistant shell",
    no_args_is_help=True,
)

console = Console()


# ---------------------------------------------------------------------------
# 终端输入输出：prompt_toolkit 负责读取，Rich 负责输出
# ---------------------------------------------------------------------------


def _flush_pending_tty_input() -> None:
    """
    清除终端中未读的按键输入。

    助手处理消息期间用户可能多按了键，这些残留输入会干扰下一次读取。
    优先使用 termios.tcflush（POSIX），回退到 select+read 轮询。
    """
    try:
        fd = sys.stdin.fileno()
        if not os.isatty(fd):
            return
    except (OSError, ValueError):
        return

    try:
        import termios
        termios.tcflush(fd, termios.TCIFLUSH)
        return
    except (ImportError, OSError):
        pass

    try:
        while True:
            ready, _, _ = select.select([fd], [], [], 0)
            if not ready or not os.read(fd, 4096):
                break
    except OSError:
        return


class PromptToolkitIO(ShellIO):
    """
    交互循环的终端实现。

    - 输入：prompt_toolkit 会话，历史记录保存在 ~/.agentshell/history/cli_history
    - 输出：Rich 控制台；命令输出按纯文本打印，助手回复可按 Markdown 渲染
    - busy()：未开启日志时显示"思考中"动画
    """

    def __init__(self, render_markdown: bool = True, show_spinner: bool = True):
        self.render_markdown = render_markdown
        self.show_spinner = show_spinner
        self._session = PromptSession(
            history=FileHistory(str(get_history_path())),
            enable_open_in_editor=False,
            multiline=False,
        )

    async def read_line(self, prompt: str) -> str:
        _flush_pending_tty_input()
        with patch_stdout():
            return await self._session.prompt_async(
                HTML(f"<b fg='ansiblue'>{html.escape(prompt)}</b>"),
            )

    def write(self, text: str = "") -> None:
        console.print(Text(text))

    def show_result(self, result: CommandResult) -> None:
        if result.from_assistant:
            _print_agent_response(result.response, self.render_markdown)
        else:
            super().show_result(result)

    def busy(self) -> AbstractContextManager:
        if not self.show_spinner:
            return nullcontext()
        return console.status("[dim]agentshell is thinking...[/dim]", spinner="dots")


def _print_agent_response(response: str, render_markdown: bool) -> None:
    """以一致的终端样式渲染助手回复。支持 Markdown 或纯文本两种模式。"""
    content = response or ""
    body = Markdown(content) if render_markdown else Text(content)
    console.print()
    console.print(f"[cyan]{__logo__} assistant[/cyan]")
    console.print(body)
    console.print()


# ---------------------------------------------------------------------------
# 服务装配
# ---------------------------------------------------------------------------


def _load(ctx: typer.Context) -> Config:
    config_path = (ctx.obj or {}).get("config_path")
    return load_config(config_path)


def _make_manager(config: Config) -> SessionManager:
    store = SessionStore(config.sessions_path)
    return SessionManager(store, max_save_retries=config.sessions.max_save_retries)


def _make_responder(config: Config) -> Responder:
    """
    根据配置创建 AI 应答器。

    - simulated：模拟应答器
    - auto：配置了 API Key 时使用 LLM，否则退回模拟应答器
    - llm：必须配置 API Key，否则报错退出
    """
    mode = config.agent.responder
    p = config.get_provider()
    has_key = bool(p and p.api_key)

    if mode == "simulated" or (mode == "auto" and not has_key):
        return SimulatedResponder()
    if not has_key:
        console.print("[red]Error: No API key configured.[/red]")
        console.print(f"Set one in {get_config_path()} under providers section")
        raise typer.Exit(1)

    from agentshell.providers.litellm_provider import LiteLLMProvider

    provider = LiteLLMProvider(
        api_key=p.api_key,
        api_base=p.api_base,
        default_model=config.agent.model,
    )
    return LLMResponder(
        provider,
        model=config.agent.model,
        max_tokens=config.agent.max_tokens,
        temperature=config.agent.temperature,
        history_window=config.agent.history_window,
    )


def _make_dispatcher(config: Config, manager: SessionManager) -> CommandDispatcher:
    registry = register_builtin_commands(
        CommandRegistry(),
        manager,
        history_limit=config.sessions.history_limit,
        list_limit=config.sessions.list_limit,
        preview_chars=config.sessions.preview_chars,
    )
    chat_service = ChatService(manager, _make_responder(config))
    return CommandDispatcher(manager, chat_service, registry)


# ---------------------------------------------------------------------------
# 根命令
# ---------------------------------------------------------------------------


def version_callback(value: bool):
    """当用户传入 --version/-v 参数时，打印版本号并退出。"""
    if value:
        console.print(f"{__logo__} agentshell v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Path = typer.Option(None, "--config", "-c", help="Configuration file path"),
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """agentshell CLI 根命令回调。处理全局选项，默认关闭运行时日志。"""
    logger.disable("agentshell")
    ctx.obj = {"config_path": config}


@app.command()
def onboard(ctx: typer.Context):
    """初始化配置文件和会话目录。"""
    config_path = (ctx.obj or {}).get("config_path") or get_config_path()

    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    config = Config()
    save_config(config, config_path)
    console.print(f"[green]✓[/green] Created config at {config_path}")

    sessions_dir = SessionStore(config.sessions_path).sessions_dir
    console.print(f"[green]✓[/green] Sessions directory at {sessions_dir}")

    console.print(f"\n{__logo__} agentshell is ready!")
    console.print("\nNext steps:")
    console.print(f"  1. Add your API key to [cyan]{config_path}[/cyan] (optional)")
    console.print("  2. Chat: [cyan]agentshell chat[/cyan]")


# ============================================================================
# Chat
# ============================================================================


@app.command()
def chat(
    ctx: typer.Context,
    message: str = typer.Option(None, "--message", "-m", help="Message or /command to run once"),
    session_id: str = typer.Option(None, "--session", "-s", help="Session ID to resume"),
    markdown: bool = typer.Option(True, "--markdown/--no-markdown", help="Render assistant output as Markdown"),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show runtime logs during chat"),
):
    """
    与助手交互。

    1. 单条消息模式：agentshell chat -m "hello" → 处理一条消息（或斜杠命令）后退出
    2. 交互模式：agentshell chat [-s SESSION] → 进入会话循环，输入 exit 退出
    """
    config = _load(ctx)
    if logs:
        logger.enable("agentshell")

    manager = _make_manager(config)
    dispatcher = _make_dispatcher(config, manager)

    if message:
        session = manager.get_session(session_id) if session_id else None
        if session is None:
            if session_id:
                console.print(f"[yellow]Session {session_id} not found. Creating new session...[/yellow]")
            session = manager.create_session()

        async def run_once():
            with console.status("[dim]agentshell is thinking...[/dim]", spinner="dots") if not logs else nullcontext():
                return await dispatcher.dispatch(message, session)

        try:
            result = asyncio.run(run_once())
        except Exception as e:
            logger.exception(f"Error processing message: {message}")
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            raise typer.Exit(1)
        if result.from_assistant:
            _print_agent_response(result.response, render_markdown=markdown)
        else:
            console.print(Text(result.response))
        active = result.session or session
        console.print(f"[dim]Session: {active.id}[/dim]")
        return

    io = PromptToolkitIO(render_markdown=markdown, show_spinner=not logs)
    shell = InteractiveShell(manager, dispatcher, io)
    try:
        asyncio.run(shell.run(session_id))
    except KeyboardInterrupt:
        console.print("\nGoodbye!")


# ============================================================================
# Session Commands
# ============================================================================


sessions_app = typer.Typer(help="Manage sessions")
app.add_typer(sessions_app, name="sessions")


@sessions_app.command("list")
def sessions_list(ctx: typer.Context):
    """以表格形式列出全部会话（最近访问的在前）。"""
    manager = _make_manager(_load(ctx))
    summaries = manager.list_summaries()

    if not summaries:
        console.print("No sessions found.")
        return

    table = Table(title="Sessions")
    table.add_column("ID", style="cyan")
    table.add_column("Agent")
    table.add_column("Created")
    table.add_column("Last Accessed")
    table.add_column("Turns", justify="right")
    table.add_column("Directory")

    for s in summaries:
        table.add_row(
            s.id,
            s.sub_agent_id or "",
            format_time(s.created),
            format_time(s.last_accessed),
            str(s.conversation_length),
            s.working_directory,
        )

    console.print(table)


@sessions_app.command("show")
def sessions_show(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Session ID"),
):
    """显示会话状态和最近的对话历史（不刷新最后访问时间）。"""
    config = _load(ctx)
    manager = _make_manager(config)
    session = manager.peek_session(session_id)
    if session is None:
        console.print(f"[red]Session {session_id} not found[/red]")
        raise typer.Exit(1)

    async def render():
        status = await StatusCommand(manager).execute([], session)
        history = await HistoryCommand(config.sessions.history_limit, config.sessions.preview_chars).execute(
            [], session
        )
        return status.response, history.response

    status_text, history_text = asyncio.run(render())
    console.print(Text(status_text))
    console.print()
    console.print(Text(history_text))

    children = manager.find_children(session.id)
    if children:
        console.print()
        console.print(f"Sub-agents: {', '.join(f'{c.id} [{c.sub_agent_id}]' for c in children)}", markup=False)


@sessions_app.command("new")
def sessions_new(
    ctx: typer.Context,
    directory: Path = typer.Option(None, "--dir", "-d", help="Working directory (default: current)"),
    parent: str = typer.Option(None, "--parent", "-p", help="Parent session ID (creates a sub-agent)"),
):
    """创建一个新会话；指定 --parent 时创建子代理会话。"""
    manager = _make_manager(_load(ctx))

    working_directory = None
    if directory is not None:
        if not directory.expanduser().is_dir():
            console.print(f"[red]Directory not found: {directory}[/red]")
            raise typer.Exit(1)
        working_directory = str(directory.expanduser().resolve())

    session = manager.create_session(working_directory, parent)
    if session.sub_agent_id:
        console.print(
            f"[green]✓[/green] Created sub-agent session {session.id} (Agent: {escape(session.sub_agent_id)})"
        )
    else:
        console.print(f"[green]✓[/green] Created session {session.id}")


@sessions_app.command("delete")
def sessions_delete(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Session ID to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """删除指定会话。子代理会话不会被级联删除。"""
    manager = _make_manager(_load(ctx))

    if not yes and not typer.confirm(f"Delete session {session_id}?"):
        raise typer.Exit()

    if manager.delete_session(session_id):
        console.print(f"[green]✓[/green] Deleted session {session_id}")
        children = manager.find_children(session_id)
        if children:
            console.print(f"[yellow]{len(children)} sub-agent session(s) still reference it[/yellow]")
    else:
        console.print(f"[red]Session {session_id} not found[/red]")


# ============================================================================
# Status Commands
# ============================================================================


@app.command()
def status(ctx: typer.Context):
    """
    显示 agentshell 系统状态。

    展示内容：配置文件、会话目录与会话数量、应答器模式与模型、各 LLM 提供者的 API Key 配置状态。
    """
    config_path = (ctx.obj or {}).get("config_path") or get_config_path()
    config = _load(ctx)
    sessions_dir = config.sessions_path

    console.print(f"{__logo__} agentshell Status\n")
    console.print(f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[red]✗[/red]'}")
    console.print(f"Sessions: {sessions_dir} {'[green]✓[/green]' if sessions_dir.exists() else '[red]✗[/red]'}")
    if sessions_dir.exists():
        console.print(f"Session count: {len(list(sessions_dir.glob('*.json')))}")

    console.print(f"Responder: {config.agent.responder}")
    console.print(f"Model: {config.agent.model}")
    console.print(f"Provider: {config.get_provider_name() or '[dim]none configured[/dim]'}")
    for name in type(config.providers).model_fields:
        p = getattr(config.providers, name)
        console.print(f"{name}: {'[green]✓[/green]' if p.api_key else '[dim]not set[/dim]'}")


if __name__ == "__main__":
    app()
