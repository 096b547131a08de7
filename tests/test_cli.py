"""
Tests for the Typer command line entry points.
"""

import json

import pytest
from rich.console import Console
from typer.testing import CliRunner

from agentshell import __version__
from agentshell.cli.commands import app
from agentshell.session.manager import SessionManager
from agentshell.session.store import SessionStore

runner = CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    # keep table rows and long ids on a single line
    monkeypatch.setattr("agentshell.cli.commands.console", Console(width=200))


@pytest.fixture
def config_file(tmp_path, sessions_dir):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "sessions": {"directory": str(sessions_dir)},
        "agent": {"responder": "simulated"},
    }))
    return path


@pytest.fixture
def cli_manager(sessions_dir):
    return SessionManager(SessionStore(sessions_dir))


def invoke(config_file, *args, **kwargs):
    return runner.invoke(app, ["--config", str(config_file), *args], **kwargs)


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"agentshell v{__version__}" in result.stdout


class TestSessionsCommands:
    def test_list_empty(self, config_file):
        result = invoke(config_file, "sessions", "list")
        assert result.exit_code == 0
        assert "No sessions found." in result.stdout

    def test_new_then_list(self, config_file, cli_manager, tmp_path):
        result = invoke(config_file, "sessions", "new", "--dir", str(tmp_path))
        assert result.exit_code == 0

        [session] = cli_manager.list_sessions()
        assert f"Created session {session.id}" in result.stdout
        assert session.working_directory == str(tmp_path.resolve())

        listed = invoke(config_file, "sessions", "list")
        assert listed.exit_code == 0
        assert session.id in listed.stdout

    def test_new_sub_agent(self, config_file, cli_manager):
        parent = cli_manager.create_session()

        result = invoke(config_file, "sessions", "new", "--parent", parent.id)

        assert result.exit_code == 0
        [child] = cli_manager.find_children(parent.id)
        assert f"(Agent: {child.sub_agent_id})" in result.stdout

    def test_new_with_missing_directory(self, config_file, tmp_path):
        result = invoke(config_file, "sessions", "new", "--dir", str(tmp_path / "nope"))
        assert result.exit_code == 1
        assert "Directory not found" in result.stdout

    def test_show(self, config_file, cli_manager):
        session = cli_manager.create_session("/tmp")
        cli_manager.add_conversation_turn(session.id, "user", "hi")
        child = cli_manager.create_session(parent_id=session.id)

        result = invoke(config_file, "sessions", "show", session.id)

        assert result.exit_code == 0
        assert f"ID: {session.id}" in result.stdout
        assert "USER: hi" in result.stdout
        assert f"{child.id} [{child.sub_agent_id}]" in result.stdout

    def test_show_missing(self, config_file):
        result = invoke(config_file, "sessions", "show", "missing")
        assert result.exit_code == 1
        assert "Session missing not found" in result.stdout

    def test_delete(self, config_file, cli_manager):
        session = cli_manager.create_session()

        result = invoke(config_file, "sessions", "delete", session.id, "--yes")

        assert result.exit_code == 0
        assert f"Deleted session {session.id}" in result.stdout
        assert cli_manager.peek_session(session.id) is None

    def test_delete_declined(self, config_file, cli_manager):
        session = cli_manager.create_session()
        result = invoke(config_file, "sessions", "delete", session.id, input="n\n")
        assert result.exit_code == 0
        assert cli_manager.peek_session(session.id) is not None


class TestChatCommand:
    def test_single_message(self, config_file, cli_manager):
        result = invoke(config_file, "chat", "-m", "hello", "--no-markdown")

        assert result.exit_code == 0
        assert 'I understand you said: "hello"' in result.stdout
        [session] = cli_manager.list_sessions()
        assert f"Session: {session.id}" in result.stdout
        assert [t.role for t in session.conversation] == ["user", "assistant"]

    def test_command_in_existing_session(self, config_file, cli_manager):
        session = cli_manager.create_session("/tmp")

        result = invoke(config_file, "chat", "-s", session.id, "-m", "/status")

        assert result.exit_code == 0
        assert "Session Status:" in result.stdout
        assert f"ID: {session.id}" in result.stdout
        assert len(cli_manager.list_sessions()) == 1

    def test_unknown_session_creates_new(self, config_file, cli_manager):
        result = invoke(config_file, "chat", "-s", "ghost", "-m", "/status")

        assert result.exit_code == 0
        assert "Session ghost not found. Creating new session..." in result.stdout
        assert len(cli_manager.list_sessions()) == 1


def test_status(config_file, sessions_dir):
    result = invoke(config_file, "status")

    assert result.exit_code == 0
    assert "Responder: simulated" in result.stdout
    assert str(sessions_dir) in result.stdout
