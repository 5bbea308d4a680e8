"""Example of using Character Memory through MCP.

This demonstrates how a chat front end would forward sent messages to the
MCP server and force a memory update on demand.
"""

import asyncio
import json
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client


async def run_example():
    """Run example MCP interactions."""
    # Connect to the MCP server
    server_params = StdioServerParameters(
        command="character-memory-mcp",
        env={
            "CHARACTER_MEMORY_DB_PATH": "example_memory.db",
            "CHARACTER_MEMORY_USER_NAME": "Tom",
            "CHARACTER_MEMORY_MESSAGES_BEFORE_SUMMARIZE": "4",
            "CHARACTER_MEMORY_USE_SEPARATE_MODEL": "true",
            "CHARACTER_MEMORY_SEPARATE_MODEL_ENDPOINT": "http://localhost:5001/v1/chat/completions",
        },
    )

    async with stdio_client(server_params) as (read, write):
        async with ClientSession(read, write) as session:
            # Initialize connection
            await session.initialize()

            # List available tools
            tools = await session.list_tools()
            print(f"Available tools: {[t.name for t in tools.tools]}")

            print("\n=== Registering character ===")
            result = await session.call_tool(
                "register_character",
                {"id": "mara", "name": "Mara", "notes": "Mara runs the boatyard."},
            )
            print(result.content[0].text)

            print("\n=== Settings ===")
            settings = await session.call_tool("get_settings", {})
            print(json.dumps(json.loads(settings.content[0].text), indent=2))

            print("\n=== Chatting ===")
            for text, is_user in [
                ("Can you fix my boat before the storm?", True),
                ("For you, Tom? I'll have it done by Friday.", False),
                ("Thank you. I also lost my father's compass.", True),
                ("That's terrible. We'll look for it together.", False),
            ]:
                result = await session.call_tool(
                    "record_message", {"text": text, "is_user": is_user}
                )
                print(f"  {text!r}: {result.content[0].text}")

            print("\n=== Forcing an update ===")
            result = await session.call_tool("memoryupdate", {})
            print(result.content[0].text)

            print("\n=== Mara's notes ===")
            notes = await session.call_tool("get_character_notes", {})
            print(notes.content[0].text)


if __name__ == "__main__":
    asyncio.run(run_example())
