"""
斜杠命令基类模块 (commands/base.py)

模块职责：
    定义所有斜杠命令的抽象基类 Command 和命令执行结果 CommandResult。
    每个命令必须实现 name、description 和 execute()；usage 和 category
    用于生成 /help 帮助文本。

设计模式对比（Java 视角）：
    相当于 Java 中的命令模式（Command Pattern）：
    - Command 是命令接口，execute() 是唯一的业务方法
    - CommandRegistry 负责按名称查找命令，新增命令无需修改任何中心分支语句
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from agentshell.session.models import Session


@dataclass
class CommandResult:
    """
    一次输入处理的结果。

    属性:
        response: 展示给用户的文本
        session: 处理之后应当作为"当前会话"的会话；None 表示保持调用方原有会话不变
        from_assistant: 回复是否来自 AI 应答器（CLI 据此决定是否按 Markdown 渲染）
    """
    response: str
    session: Session | None = None
    from_assistant: bool = False


class Command(ABC):
    """
    斜杠命令的抽象基类。

    子类通过构造函数获得所需的协作者（如 SessionManager），
    execute() 收到的 session 是当前活动会话的最新快照。
    """

    # /help 中的分组标题
    category: str = "General"

    @property
    @abstractmethod
    def name(self) -> str:
        """命令名（不含前导 "/"，小写）。"""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """一句话描述，显示在 /help 中。"""
        pass

    @property
    def usage(self) -> str:
        """用法字符串，如 "/switch <id>"。默认只有命令名。"""
        return f"/{self.name}"

    @abstractmethod
    async def execute(self, args: list[str], session: Session) -> CommandResult:
        """
        执行命令。

        参数:
            args: 命令名之后的位置参数（按空白分割）
            session: 当前活动会话

        返回:
            CommandResult
        """
        pass
