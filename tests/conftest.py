"""Pytest fixtures for Character Memory tests."""

import pytest
from character_memory import SQLiteHost, Settings, MemoryManager
from character_memory.generation import StaticGenerator


@pytest.fixture
def generator():
    """Host model that always answers with the same summary."""
    return StaticGenerator(
        "Zee promised to guard the lighthouse. Al revealed he is afraid of the sea."
    )


@pytest.fixture
def host(generator):
    """Create an in-memory host for testing."""
    host = SQLiteHost(":memory:", user_name="Al", generator=generator)
    yield host
    host.close()


@pytest.fixture
def seeded_host(host):
    """Host with one character and a short chat."""
    host.register_character("zee", "Zee", notes="Zee lives by the harbor.")
    host.add_message("Will you watch the lighthouse tonight?", is_user=True)
    host.add_message("I promise I will guard it.", is_user=False)
    host.add_message("Good, because I am afraid of the sea.", is_user=True)
    return host


@pytest.fixture
def settings():
    return Settings(messages_before_summarize=3)


@pytest.fixture
def manager(seeded_host, settings):
    return MemoryManager(seeded_host, settings)
