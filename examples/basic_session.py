"""Basic chat session with automatic character memory updates.

This example demonstrates:
- Registering a character and the user persona on the reference host
- Recording chat messages until the threshold fires a memory update
- Forcing an update with the ``memoryupdate`` command
- Reading back the appended notes

The host model is a StaticGenerator so the example runs offline. Swap in
OpenAIGenerator (needs OPENAI_API_KEY) or point the settings at any
OpenAI-compatible endpoint for real summaries.
"""

import logging

from character_memory import MemoryManager, Settings, SQLiteHost
from character_memory.generation import StaticGenerator


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    generator = StaticGenerator(
        "Mara agreed to repair Tom's boat before the storm. "
        "Tom admitted he lost his father's compass."
    )
    host = SQLiteHost(
        "session.db",
        user_name="Tom",
        persona_description="Tom is a young fisherman.",
        generator=generator,
    )
    settings = Settings(messages_before_summarize=4)
    # Real model instead of the static one:
    # settings.use_separate_model = True
    # settings.separate_model_endpoint = "http://localhost:5001/v1/chat/completions"

    manager = MemoryManager(host, settings)

    try:
        if host.current_character_id() is None:
            host.register_character("mara", "Mara", notes="Mara runs the boatyard.")

        chat = [
            ("Can you fix my boat before the storm?", True),
            ("For you, Tom? I'll have it done by Friday.", False),
            ("Thank you. I also lost my father's compass.", True),
            ("That's terrible. We'll look for it together.", False),
        ]

        for text, is_user in chat:
            host.add_message(text, is_user=is_user)
            result = manager.on_message_sent()
            print(f"{'Tom' if is_user else 'Mara'}: {text}")
            if result is not None:
                print(f"  -> memory update: {result.status}")

        # Nothing new this time: the same summary is already in the notes
        print(manager.force_update())
        print(f"  -> memory update: {manager.last_result.status}")

        print("\n--- Mara's notes ---")
        print(host.get_character("mara").notes)
    finally:
        host.close()


if __name__ == "__main__":
    main()
