"""
会话异常定义模块。

异常分类：
- SessionNotFoundError：引用的会话不存在（NotFound）
- SessionConflictError：保存时发现磁盘上的版本号已被其他写入者推进（乐观并发冲突）

损坏的会话文件不单独抛异常：存储层记录日志后按"不存在"处理。
磁盘写入失败直接以 OSError 向上传播，由交互循环统一兜底。
"""


class SessionError(Exception):
    """会话相关异常的基类。"""


class SessionNotFoundError(SessionError):
    """引用的会话不存在。"""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class SessionConflictError(SessionError):
    """
    乐观并发冲突。

    当前进程读到的版本号（expected）与磁盘上记录的版本号（actual）不一致，
    说明在"读取-修改-写回"期间有其他进程写入了同一个会话。
    """

    def __init__(self, session_id: str, expected: int, actual: int):
        self.session_id = session_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Session {session_id} was modified concurrently "
            f"(expected version {expected}, found {actual})"
        )
