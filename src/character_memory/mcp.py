"""MCP server for Character Memory.

Exposes the memory manager and its reference host through Model Context
Protocol tools.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from character_memory.config import load_settings, update_settings
from character_memory.generation import OpenAIGenerator
from character_memory.host import SQLiteHost
from character_memory.manager import TRIGGERED_MESSAGE, MemoryManager

logger = logging.getLogger(__name__)

# Global manager instance (initialized on first connection)
_manager: MemoryManager | None = None

_SECRET_SETTINGS = {"separate_model_api_key"}


def get_manager() -> MemoryManager:
    """Get or initialize the manager instance."""
    global _manager
    if _manager is None:
        # Load config from environment or use defaults
        db_path = os.getenv("CHARACTER_MEMORY_DB_PATH", "character_memory.db")
        user_name = os.getenv("CHARACTER_MEMORY_USER_NAME")
        host_model = os.getenv("CHARACTER_MEMORY_HOST_MODEL")

        generator = OpenAIGenerator(model=host_model) if host_model else None
        host = SQLiteHost(db_path, user_name=user_name, generator=generator)
        _manager = MemoryManager(host, load_settings())
        logger.info("Character memory manager ready (db=%s)", db_path)
    return _manager


def set_manager(manager: MemoryManager | None) -> None:
    """Replace the manager instance (used by embedding applications and tests)."""
    global _manager
    _manager = manager


def public_settings(manager: MemoryManager) -> dict[str, Any]:
    """Settings as a dict with secrets masked."""
    result = asdict(manager.settings)
    for name in _SECRET_SETTINGS:
        if result[name]:
            result[name] = "********"
    return result


# Initialize server
server = Server("character_memory")


# -------------------------------------------------------------------------
# Tool Definitions
# -------------------------------------------------------------------------

TOOLS = [
    Tool(
        name="memoryupdate",
        description="Summarize recent chat now and append new facts to the character notes",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="record_message",
        description="Record a sent chat message; runs a memory update when the threshold is reached",
        inputSchema={
            "type": "object",
            "properties": {
                "text": {"type": "string", "description": "Message text"},
                "is_user": {
                    "type": "boolean",
                    "default": True,
                    "description": "False if the character sent it",
                },
            },
            "required": ["text"],
        },
    ),
    Tool(
        name="register_character",
        description="Register a character with optional initial notes",
        inputSchema={
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "Unique identifier"},
                "name": {"type": "string", "description": "Display name"},
                "notes": {"type": "string", "description": "Initial character notes"},
            },
            "required": ["id", "name"],
        },
    ),
    Tool(
        name="select_character",
        description="Make a registered character the active chat partner",
        inputSchema={
            "type": "object",
            "properties": {
                "character_id": {"type": "string"},
            },
            "required": ["character_id"],
        },
    ),
    Tool(
        name="get_character_notes",
        description="Get the notes of a character (defaults to the active one)",
        inputSchema={
            "type": "object",
            "properties": {
                "character_id": {"type": "string"},
            },
        },
    ),
    Tool(
        name="get_settings",
        description="Show the memory manager settings",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="update_settings",
        description="Change memory manager settings",
        inputSchema={
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
                "messages_before_summarize": {"type": "integer", "minimum": 1},
                "show_notifications": {"type": "boolean"},
                "use_separate_model": {"type": "boolean"},
                "separate_model_endpoint": {
                    "type": "string",
                    "description": "Chat-completions URL, e.g. https://api.example.com/v1/chat/completions",
                },
                "separate_model_api_key": {"type": "string"},
                "separate_model_name": {"type": "string"},
                "summarization_prompt": {
                    "type": "string",
                    "description": "Use {{user}}, {{char}} and {{count}} as placeholders",
                },
                "exclude_persona_facts": {"type": "boolean"},
            },
        },
    ),
]


# -------------------------------------------------------------------------
# MCP Handlers
# -------------------------------------------------------------------------


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return TOOLS


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    manager = get_manager()
    host = manager.host
    arguments = arguments or {}

    try:
        if name == "memoryupdate":
            status = manager.force_update()
            result = manager.last_result
            if status == TRIGGERED_MESSAGE and result is not None:
                status += f" Result: {result.status}"
                if result.error:
                    status += f" ({result.error})"
            return [TextContent(type="text", text=status)]

        elif name == "record_message":
            host.add_message(arguments["text"], is_user=arguments.get("is_user", True))
            result = manager.on_message_sent()
            if result is None:
                text = (
                    f"Recorded message ({manager.state.counter}/{manager.threshold} "
                    "before next memory update)"
                )
            else:
                text = f"Recorded message; memory update {result.status}"
            return [TextContent(type="text", text=text)]

        elif name == "register_character":
            result = host.register_character(
                id=arguments["id"],
                name=arguments["name"],
                notes=arguments.get("notes", ""),
            )
            return [TextContent(type="text", text=f"Registered character: {result}")]

        elif name == "select_character":
            host.select_character(arguments["character_id"])
            return [
                TextContent(
                    type="text",
                    text=f"Active character: {arguments['character_id']}",
                )
            ]

        elif name == "get_character_notes":
            character_id = arguments.get("character_id") or host.current_character_id()
            if character_id is None:
                return [TextContent(type="text", text="No active character")]
            record = host.get_character(character_id)
            return [TextContent(type="text", text=record.notes)]

        elif name == "get_settings":
            return [
                TextContent(
                    type="text", text=json.dumps(public_settings(manager), indent=2)
                )
            ]

        elif name == "update_settings":
            manager.settings = update_settings(manager.settings, arguments)
            return [
                TextContent(
                    type="text", text=json.dumps(public_settings(manager), indent=2)
                )
            ]

        else:
            return [
                TextContent(
                    type="text", text=f"Unknown tool: {name}"
                )
            ]

    except Exception as e:
        logger.exception("Tool %s failed", name)
        return [
            TextContent(
                type="text", text=f"Error: {str(e)}"
            )
        ]


# -------------------------------------------------------------------------
# Main Entry Point
# -------------------------------------------------------------------------


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def run() -> None:
    """Console entry point."""
    import asyncio

    # stdout carries the protocol
    logging.basicConfig(
        level=os.getenv("CHARACTER_MEMORY_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(main())


if __name__ == "__main__":
    run()
