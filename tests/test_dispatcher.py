"""
Tests for slash-command parsing, routing and the built-in commands.
"""

import pytest

from agentshell.agent.chat import ChatService
from agentshell.agent.responder import SimulatedResponder
from agentshell.commands.builtin import register_builtin_commands
from agentshell.commands.dispatcher import CommandDispatcher, parse_command
from agentshell.commands.registry import CommandRegistry


@pytest.fixture
def session(manager, tmp_path):
    return manager.create_session(str(tmp_path))


def _small_dispatcher(manager, **limits):
    registry = register_builtin_commands(CommandRegistry(), manager, **limits)
    return CommandDispatcher(manager, ChatService(manager, SimulatedResponder()), registry)


class TestParseCommand:
    def test_name_is_lowercased_and_args_split(self):
        assert parse_command("  /Switch  abc   def ") == ("switch", ["abc", "def"])

    def test_plain_text_is_not_a_command(self):
        assert parse_command("hello /world") is None

    def test_bare_slash(self):
        assert parse_command("/") == ("", [])


class TestRouting:
    async def test_empty_input_is_noop(self, dispatcher, session):
        result = await dispatcher.dispatch("   ", session)
        assert result.response == ""
        assert result.session.id == session.id

    async def test_unknown_command(self, dispatcher, manager, session):
        result = await dispatcher.dispatch("/bogus", session)

        assert result.response == "Unknown command: /bogus. Type /help for available commands."
        assert result.session.id == session.id
        assert manager.peek_session(session.id).conversation == []

    async def test_command_names_are_case_insensitive(self, dispatcher, session):
        result = await dispatcher.dispatch("/HELP", session)
        assert result.response.startswith("Interactive Commands:")

    async def test_free_form_message_records_both_turns(self, dispatcher, manager, session):
        result = await dispatcher.dispatch("hello there", session)

        assert result.from_assistant is True
        assert 'I understand you said: "hello there"' in result.response

        turns = manager.peek_session(session.id).conversation
        assert [t.role for t in turns] == ["user", "assistant"]
        assert turns[0].content == "hello there"
        assert turns[0].metadata == {"source": "interactive"}
        assert turns[1].metadata == {"responder": "simulated"}
        assert len(result.session.conversation) == 2

    async def test_commands_see_writes_from_elsewhere(self, dispatcher, manager, session):
        manager.add_conversation_turn(session.id, "user", "written by another process")
        result = await dispatcher.dispatch("/status", session)
        assert "Conversation Turns: 1" in result.response


class TestHelp:
    async def test_lists_every_command(self, dispatcher, session):
        text = (await dispatcher.dispatch("/help", session)).response

        for name in ("status", "sessions", "new", "switch", "history", "clear", "cd", "sub", "help"):
            assert f"/{name}" in text
        assert "exit" in text
        assert text.index("Session Management:") < text.index("Navigation:")
        assert text.index("Sub-Agents:") < text.index("General:")


class TestStatus:
    async def test_top_level_session(self, dispatcher, session):
        text = (await dispatcher.dispatch("/status", session)).response

        assert text.startswith("Session Status:")
        assert f"ID: {session.id}" in text
        assert f"Working Directory: {session.working_directory}" in text
        assert "Conversation Turns: 0" in text
        assert "Sub-Agent ID" not in text
        assert "Parent Session" not in text

    async def test_sub_agent_with_missing_parent(self, dispatcher, manager):
        child = manager.create_session(parent_id="gone")
        text = (await dispatcher.dispatch("/status", child)).response

        assert f"Sub-Agent ID: {child.sub_agent_id}" in text
        assert "Parent Session: gone (not found)" in text

    async def test_sub_agent_with_existing_parent(self, dispatcher, manager, session):
        child = manager.create_session(parent_id=session.id)
        text = (await dispatcher.dispatch("/status", child)).response
        assert f"Parent Session: {session.id}" in text
        assert "(not found)" not in text


class TestSessions:
    async def test_marks_active_and_truncates(self, manager, session):
        dispatcher = _small_dispatcher(manager, list_limit=2)
        manager.create_session()
        manager.create_session()
        # touching makes the active session the most recently accessed one
        manager.get_session(session.id)

        text = (await dispatcher.dispatch("/sessions", session)).response

        assert text.startswith("Found 3 sessions:")
        assert f" *{session.id}" in text
        assert text.endswith("... and 1 more sessions")

    async def test_sub_agents_are_tagged(self, dispatcher, manager, session):
        child = manager.create_session(parent_id=session.id)
        text = (await dispatcher.dispatch("/sessions", session)).response
        assert f"{child.id} [{child.sub_agent_id}]" in text


class TestSessionSwitching:
    async def test_new_becomes_active(self, dispatcher, manager, session):
        result = await dispatcher.dispatch("/new", session)

        assert result.session.id != session.id
        assert result.response == f"Created new session: {result.session.id}"
        assert result.session.working_directory == session.working_directory
        assert manager.peek_session(result.session.id) is not None

    async def test_switch_to_existing(self, dispatcher, manager, session):
        other = manager.create_session()
        result = await dispatcher.dispatch(f"/switch {other.id}", session)

        assert result.response == f"Switched to session: {other.id}"
        assert result.session.id == other.id

    async def test_switch_to_missing(self, dispatcher, session):
        result = await dispatcher.dispatch("/switch nope", session)
        assert result.response == "Session nope not found"
        assert result.session.id == session.id

    async def test_switch_without_id(self, dispatcher, session):
        result = await dispatcher.dispatch("/switch", session)
        assert result.response == "Usage: /switch <session-id>"
        assert result.session.id == session.id

    async def test_sub_creates_child_of_active(self, dispatcher, session):
        result = await dispatcher.dispatch("/sub", session)
        child = result.session

        assert child.parent_session_id == session.id
        assert child.sub_agent_id is not None
        assert result.response == f"Created sub-agent session: {child.id} (Agent: {child.sub_agent_id})"


class TestHistory:
    async def test_empty(self, dispatcher, session):
        result = await dispatcher.dispatch("/history", session)
        assert result.response == "No conversation history in this session."

    async def test_after_message(self, dispatcher, manager):
        session = manager.create_session("/tmp")
        await dispatcher.dispatch("hi", session)

        # the stale object still has no turns; the dispatcher re-reads it
        text = (await dispatcher.dispatch("/history", session)).response

        assert text.startswith("Conversation History (2 turns):")
        assert "USER: hi" in text
        assert "ASSISTANT: I understand you said" in text

    async def test_shows_only_recent_turns(self, dispatcher, manager, session):
        for i in range(12):
            manager.add_conversation_turn(session.id, "user", f"message {i:02d}")

        text = (await dispatcher.dispatch("/history", session)).response

        assert text.startswith("... showing last 10 of 12 turns")
        assert "message 00" not in text
        assert "message 01" not in text
        assert "message 02" in text
        assert "message 11" in text

    async def test_long_content_is_previewed(self, manager, session):
        dispatcher = _small_dispatcher(manager, preview_chars=5)
        manager.add_conversation_turn(session.id, "user", "abcdefghij")

        text = (await dispatcher.dispatch("/history", session)).response

        assert "USER: abcde..." in text
        assert "abcdefghij" not in text


class TestClear:
    async def test_clear(self, dispatcher, manager, session):
        manager.add_conversation_turn(session.id, "user", "hi")

        result = await dispatcher.dispatch("/clear", session)

        assert result.response == "Conversation history cleared"
        assert result.session.conversation == []
        assert manager.peek_session(session.id).conversation == []


class TestCd:
    async def test_show_current(self, dispatcher, session):
        result = await dispatcher.dispatch("/cd", session)
        assert result.response == f"Current directory: {session.working_directory}"

    async def test_missing_directory(self, dispatcher, manager, session):
        result = await dispatcher.dispatch("/cd /definitely/not/here", session)

        assert result.response == "Directory not found: /definitely/not/here"
        assert manager.peek_session(session.id).working_directory == session.working_directory

    async def test_absolute_directory(self, dispatcher, manager, session, tmp_path):
        target = tmp_path / "project"
        target.mkdir()

        result = await dispatcher.dispatch(f"/cd {target}", session)

        assert result.response == f"Changed directory to: {target.resolve()}"
        assert manager.peek_session(session.id).working_directory == str(target.resolve())

    async def test_relative_to_session_directory(self, dispatcher, manager, session, tmp_path):
        (tmp_path / "sub dir").mkdir()

        result = await dispatcher.dispatch("/cd sub dir", session)

        assert result.session.working_directory == str((tmp_path / "sub dir").resolve())
        assert manager.peek_session(session.id).working_directory == result.session.working_directory

    async def test_unknown_user_home(self, dispatcher, manager, session):
        result = await dispatcher.dispatch("/cd ~nosuchuser_zz/x", session)

        assert result.response == "Directory not found: ~nosuchuser_zz/x"
        assert result.session.id == session.id
        assert manager.peek_session(session.id).working_directory == session.working_directory

    async def test_file_is_not_a_directory(self, dispatcher, session, tmp_path):
        (tmp_path / "notes.txt").write_text("x")
        result = await dispatcher.dispatch("/cd notes.txt", session)
        assert result.response == "Directory not found: notes.txt"
