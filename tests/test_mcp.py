"""Tests for the MCP tool surface."""

import asyncio
import json

import pytest

from character_memory import MemoryManager, Settings
from character_memory import mcp as memory_mcp


@pytest.fixture
def mcp_manager(seeded_host):
    manager = MemoryManager(seeded_host, Settings(messages_before_summarize=2))
    memory_mcp.set_manager(manager)
    yield manager
    memory_mcp.set_manager(None)


def call(name, arguments=None):
    contents = asyncio.run(memory_mcp.call_tool(name, arguments or {}))
    assert len(contents) == 1
    return contents[0].text


def test_tools_listed():
    tools = asyncio.run(memory_mcp.list_tools())

    names = {tool.name for tool in tools}
    assert {"memoryupdate", "record_message", "update_settings"} <= names


def test_memoryupdate_appends_notes(mcp_manager, seeded_host):
    text = call("memoryupdate")

    assert text.startswith("Memory update process triggered.")
    assert "updated" in text
    assert "--- Memory Update (" in call("get_character_notes")


def test_record_message_counts_then_updates(mcp_manager, seeded_host):
    assert "1/2" in call("record_message", {"text": "Did you see the ship?"})

    text = call("record_message", {"text": "I did.", "is_user": False})

    assert text == "Recorded message; memory update updated"
    assert seeded_host.chat_history()[-1].speaker_is_character


def test_update_settings_and_mask_api_key(mcp_manager):
    text = call(
        "update_settings",
        {"messages_before_summarize": 7, "separate_model_api_key": "sk-secret"},
    )

    shown = json.loads(text)
    assert shown["messages_before_summarize"] == 7
    assert shown["separate_model_api_key"] == "********"
    assert mcp_manager.settings.separate_model_api_key == "sk-secret"
    assert json.loads(call("get_settings"))["messages_before_summarize"] == 7


def test_disabled_memoryupdate(mcp_manager):
    call("update_settings", {"enabled": False})

    assert call("memoryupdate").startswith("Character Memory Manager is disabled.")


def test_register_and_select_character(mcp_manager, seeded_host):
    assert call("register_character", {"id": "mo", "name": "Mo", "notes": "Mo sells fish."}) == (
        "Registered character: mo"
    )
    assert call("select_character", {"character_id": "mo"}) == "Active character: mo"
    assert call("get_character_notes") == "Mo sells fish."


def test_errors_are_reported_as_text(mcp_manager):
    assert call("select_character", {"character_id": "nobody"}).startswith("Error:")
    assert call("update_settings", {"colour": "blue"}).startswith("Error:")
    assert call("no_such_tool") == "Unknown tool: no_such_tool"
