"""Shared pytest fixtures and configuration."""

import pytest

from agentshell.agent.chat import ChatService
from agentshell.agent.responder import SimulatedResponder
from agentshell.commands.dispatcher import CommandDispatcher
from agentshell.session.manager import SessionManager
from agentshell.session.store import SessionStore


@pytest.fixture
def sessions_dir(tmp_path):
    return tmp_path / "sessions"


@pytest.fixture
def store(sessions_dir):
    """Session store backed by a temporary directory."""
    return SessionStore(sessions_dir)


@pytest.fixture
def manager(store):
    return SessionManager(store)


@pytest.fixture
def dispatcher(manager):
    """Dispatcher with the built-in commands and the simulated responder."""
    return CommandDispatcher(manager, ChatService(manager, SimulatedResponder()))
