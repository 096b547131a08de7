"""
会话存储模块 - 会话记录的持久化层。

每个会话对应 sessions 目录下的一个 JSON 文件（文件名为 "<会话ID>.json"）。
存储层不做任何跨调用的内存缓存：每次读取都重新从磁盘加载，
这样多个进程（例如两个交互式终端）共享同一个目录时总能读到最新内容。

【并发控制 - 乐观锁】
多个进程可能同时对同一个会话执行"读取-修改-写回"。为避免后写者悄悄覆盖
先写者的修改，每条记录带一个 version 版本号：
- save() 写入前比对磁盘上的版本号与内存对象的版本号，不一致则抛出 SessionConflictError
- 写入成功后版本号加一
- 写入采用"临时文件 + os.replace"的原子替换，读者不会看到写了一半的文件

get_and_touch() 刷新 last_accessed 属于"读操作附带的写入"，它不推进版本号，
且在磁盘版本已变化时直接放弃本次刷新，因此不会让其他写入者的快照失效。

【Java 开发者类比】
- SessionStore 类似于一个基于文件的 Repository（Spring Data 的 CrudRepository）
- version 字段相当于 JPA 的 @Version 乐观锁
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from loguru import logger

from agentshell.session.errors import SessionConflictError
from agentshell.session.models import Session, new_sub_agent_id
from agentshell.utils.helpers import ensure_dir, safe_filename, utcnow

# 反序列化失败时可能出现的异常（JSONDecodeError 是 ValueError 的子类）
_CORRUPT_ERRORS = (ValueError, KeyError, TypeError)


class SessionStore:
    """
    基于 JSON 文件的会话存储。

    属性:
        sessions_dir: 会话文件存储目录（构造时自动创建）
    """

    def __init__(self, sessions_dir: Path):
        self.sessions_dir = ensure_dir(Path(sessions_dir).expanduser())
        logger.debug(f"Session store initialized at {self.sessions_dir}")

    def _path(self, session_id: str) -> Path:
        return self.sessions_dir / f"{safe_filename(session_id)}.json"

    def _lookup_path(self, session_id: str) -> Path | None:
        """
        按外部传入的 ID 定位记录文件。

        ID 经 safe_filename 处理后若发生变化（含路径分隔符、冒号等），
        它不可能是本存储生成的 ID，直接视为不存在，避免 "a:b" 与 "a_b" 指向同一文件。
        """
        if safe_filename(session_id) != session_id:
            logger.debug(f"Rejected session id {session_id!r}")
            return None
        return self._path(session_id)

    # ------------------------------------------------------------------
    # 读取
    # ------------------------------------------------------------------

    def _read(self, path: Path) -> Session:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return Session.from_dict(data)

    def _stored_version(self, path: Path) -> int | None:
        """读取磁盘上记录的版本号。文件不存在或已损坏时返回 None。"""
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return int(json.load(f).get("version", 0))
        except (*_CORRUPT_ERRORS, AttributeError):
            return None

    def peek(self, session_id: str) -> Session | None:
        """
        纯读取：加载会话但不刷新 last_accessed。

        返回:
            Session 对象；文件不存在或无法解析时返回 None（解析失败会记录错误日志）
        """
        loaded = self._load(session_id)
        return loaded[1] if loaded else None

    def _load(self, session_id: str) -> tuple[Path, Session] | None:
        """加载会话，同时返回其记录文件路径。"""
        path = self._lookup_path(session_id)
        if path is None or not path.exists():
            logger.debug(f"Session {session_id} not found")
            return None

        try:
            session = self._read(path)
        except _CORRUPT_ERRORS as e:
            logger.error(f"Failed to load session {session_id}: {e}")
            return None

        if session.id != session_id:
            logger.error(f"Session file {path} holds id {session.id}, expected {session_id}")
            return None
        return path, session

    def get_and_touch(self, session_id: str) -> Session | None:
        """
        加载会话，并把 last_accessed 刷新为当前时间后写回磁盘。

        这是一次"会修改状态的读取"：需要纯读取的调用方应使用 peek()。
        刷新写入不推进 version；如果加载之后磁盘版本已被其他进程推进，则跳过写回。
        """
        loaded = self._load(session_id)
        if loaded is None:
            return None

        path, session = loaded
        session.last_accessed = utcnow()
        stored = self._stored_version(path)
        if stored != session.version:
            logger.debug(
                f"Skipped touching session {session.id}: version moved {session.version} -> {stored}"
            )
            return session

        self._write(path, session)
        logger.debug(f"Retrieved session {session.id}")
        return session

    # 与"获取会话"的通用叫法保持一致
    get = get_and_touch

    def list(self) -> list[Session]:
        """
        列出目录下的全部会话，按 last_accessed 倒序排列（最近访问的在前）。

        无法解析的文件会被跳过并记录警告，不会中断整个列表。
        """
        sessions = []
        for path in self.sessions_dir.glob("*.json"):
            try:
                sessions.append(self._read(path))
            except _CORRUPT_ERRORS as e:
                logger.warning(f"Failed to load session file {path}: {e}")

        logger.debug(f"Listed {len(sessions)} sessions")
        return sorted(sessions, key=lambda s: s.last_accessed, reverse=True)

    # ------------------------------------------------------------------
    # 写入
    # ------------------------------------------------------------------

    def _write(self, path: Path, session: Session) -> None:
        tmp = path.with_name(f".{path.name}.{os.getpid()}.tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(session.to_dict(), f, indent=2, ensure_ascii=False)
            os.replace(tmp, path)
        except OSError as e:
            logger.error(f"Failed to save session {session.id}: {e}")
            tmp.unlink(missing_ok=True)
            raise

    def save(self, session: Session) -> None:
        """
        保存会话（乐观并发）。

        参数:
            session: 要保存的会话。成功后其 version 加一、last_accessed 刷新为当前时间

        异常:
            SessionConflictError: 磁盘上已有记录且版本号与 session.version 不一致
            OSError: 磁盘写入失败
        """
        path = self._path(session.id)
        stored = self._stored_version(path)
        if stored is not None and stored != session.version:
            raise SessionConflictError(session.id, session.version, stored)

        previous = (session.version, session.last_accessed)
        session.version += 1
        session.last_accessed = utcnow()
        try:
            self._write(path, session)
        except OSError:
            session.version, session.last_accessed = previous
            raise
        logger.debug(f"Saved session {session.id} (version {session.version})")

    def create(self, working_directory: str | None = None, parent_id: str | None = None) -> Session:
        """
        创建并保存一个新会话。

        参数:
            working_directory: 会话工作目录，默认为进程当前目录
            parent_id: 父会话 ID。提供时生成子代理标识

        返回:
            新创建的会话
        """
        session = Session(parent_session_id=parent_id)
        if working_directory:
            session.working_directory = working_directory

        if parent_id:
            session.sub_agent_id = new_sub_agent_id()
            logger.info(
                f"Created sub-session {session.id} for parent {parent_id} with agent {session.sub_agent_id}"
            )
        else:
            logger.info(f"Created new session {session.id}")

        self.save(session)
        return session

    def delete(self, session_id: str) -> bool:
        """
        删除会话文件。幂等：会话不存在时只记录警告。

        返回:
            True 表示已删除，False 表示会话本就不存在
        """
        path = self._lookup_path(session_id)
        if path is not None:
            try:
                path.unlink()
                logger.info(f"Deleted session {session_id}")
                return True
            except FileNotFoundError:
                # 其他进程可能已先一步删除
                pass

        logger.warning(f"Session {session_id} not found for deletion")
        return False
