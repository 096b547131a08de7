"""
Tests for the file-backed session store.
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from agentshell.session.errors import SessionConflictError
from agentshell.session.models import Session
from agentshell.session.store import SessionStore


def _write_record(store: SessionStore, session: Session) -> None:
    path = store.sessions_dir / f"{session.id}.json"
    path.write_text(json.dumps(session.to_dict()), encoding="utf-8")


class TestCreate:
    def test_creates_directory(self, tmp_path):
        target = tmp_path / "nested" / "sessions"
        SessionStore(target)
        assert target.is_dir()

    def test_defaults_to_process_cwd(self, store, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        session = store.create()
        assert session.working_directory == str(Path.cwd())
        assert session.sub_agent_id is None
        assert session.parent_session_id is None
        assert (store.sessions_dir / f"{session.id}.json").exists()

    def test_child_gets_agent_token(self, store):
        child = store.create("/tmp", parent_id="parent-1")
        assert child.parent_session_id == "parent-1"
        assert child.sub_agent_id.startswith("agent-")
        assert len(child.sub_agent_id) == len("agent-") + 8

    def test_record_uses_camel_case_fields(self, store):
        session = store.create("/tmp")
        data = json.loads((store.sessions_dir / f"{session.id}.json").read_text())
        assert set(data) >= {
            "id", "created", "lastAccessed", "workingDirectory",
            "conversation", "context", "subAgentId", "parentSessionId", "version",
        }
        assert data["workingDirectory"] == "/tmp"
        assert data["version"] == 1


class TestRead:
    def test_round_trip(self, store):
        session = Session(working_directory="/tmp", context={"key": "value"})
        session.add_turn("user", "hi", {"source": "test"})
        session.add_turn("assistant", "hello")
        store.save(session)

        loaded = store.get_and_touch(session.id)

        assert loaded.last_accessed >= session.last_accessed
        loaded.last_accessed = session.last_accessed
        assert loaded == session

    def test_get_touches_without_bumping_version(self, store):
        session = store.create()
        touched = store.get_and_touch(session.id)

        assert touched.version == session.version
        assert touched.last_accessed >= session.last_accessed
        assert store.peek(session.id).last_accessed == touched.last_accessed

    def test_get_alias(self, store):
        session = store.create()
        assert store.get(session.id).id == session.id

    def test_peek_is_pure(self, store):
        session = store.create()
        first = store.peek(session.id)
        second = store.peek(session.id)
        assert first.last_accessed == second.last_accessed == session.last_accessed

    def test_missing_returns_none(self, store):
        assert store.get_and_touch("does-not-exist") is None
        assert store.peek("does-not-exist") is None

    def test_corrupt_record_reads_as_absent(self, store):
        (store.sessions_dir / "broken.json").write_text("{not json", encoding="utf-8")
        (store.sessions_dir / "partial.json").write_text('{"id": "partial"}', encoding="utf-8")
        assert store.get_and_touch("broken") is None
        assert store.peek("partial") is None

    def test_path_traversal_ids_stay_inside_directory(self, store):
        assert store.peek("../../etc/passwd") is None
        assert store._path("../secret").parent == store.sessions_dir


class TestList:
    def test_sorted_by_last_accessed_descending(self, store):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for minutes in (5, 1, 9, 3):
            _write_record(store, Session(last_accessed=base + timedelta(minutes=minutes)))

        listed = store.list()

        stamps = [s.last_accessed for s in listed]
        assert stamps == sorted(stamps, reverse=True)
        assert [int((s - base).total_seconds() // 60) for s in stamps] == [9, 5, 3, 1]

    def test_skips_corrupt_records(self, store):
        good = store.create()
        (store.sessions_dir / "broken.json").write_text("{not json", encoding="utf-8")
        (store.sessions_dir / "bad-time.json").write_text(
            json.dumps({**good.to_dict(), "id": "bad-time", "created": "yesterday"}),
            encoding="utf-8",
        )

        assert [s.id for s in store.list()] == [good.id]

    def test_empty(self, store):
        assert store.list() == []


class TestSave:
    def test_version_increments(self, store):
        session = store.create()
        assert session.version == 1
        session.add_turn("user", "hi")
        store.save(session)
        assert session.version == 2
        assert store.peek(session.id).version == 2

    def test_stale_save_is_rejected(self, store):
        session = store.create()
        first = store.peek(session.id)
        second = store.peek(session.id)

        first.add_turn("user", "one")
        store.save(first)

        second.add_turn("user", "two")
        with pytest.raises(SessionConflictError) as exc_info:
            store.save(second)

        assert exc_info.value.expected == 1
        assert exc_info.value.actual == 2
        assert [t.content for t in store.peek(session.id).conversation] == ["one"]

    def test_write_failure_propagates_and_rolls_back(self, store, monkeypatch):
        session = store.create()

        def fail_replace(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr("agentshell.session.store.os.replace", fail_replace)
        session.add_turn("user", "lost")

        with pytest.raises(OSError, match="disk full"):
            store.save(session)

        assert session.version == 1
        assert not list(store.sessions_dir.glob(".*.tmp"))


class TestDelete:
    def test_delete_existing(self, store):
        session = store.create()
        assert store.delete(session.id) is True
        assert store.peek(session.id) is None

    def test_delete_is_idempotent(self, store):
        assert store.delete("unknown-id") is False
        session = store.create()
        store.delete(session.id)
        assert store.delete(session.id) is False

    def test_delete_tolerates_concurrent_removal(self, store, monkeypatch):
        session = store.create()
        path = store.sessions_dir / f"{session.id}.json"
        real_unlink = Path.unlink

        def removed_by_other_process(self, *args, **kwargs):
            real_unlink(path)
            return real_unlink(self, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", removed_by_other_process)

        assert store.delete(session.id) is False

    def test_delete_rejects_unsafe_ids(self, store):
        (store.sessions_dir / "a_b.json").write_text("{}", encoding="utf-8")
        assert store.delete("a:b") is False
        assert (store.sessions_dir / "a_b.json").exists()


class TestIdentifiers:
    def test_ids_that_need_escaping_are_not_found(self, store):
        session = Session(id="a_b")
        store.save(session)

        assert store.peek("a_b") is not None
        assert store.peek("a:b") is None
        assert store.get_and_touch("a/b") is None

    def test_record_with_mismatched_id_is_absent(self, store):
        other = store.create()
        copied = {**other.to_dict(), "id": "someone-else"}
        (store.sessions_dir / "impostor.json").write_text(json.dumps(copied), encoding="utf-8")

        assert store.peek("impostor") is None
        assert store.get_and_touch("impostor") is None
        assert store.peek(other.id) is not None
