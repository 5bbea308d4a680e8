"""Host capability interface and a SQLite-backed reference host."""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Protocol

from character_memory.errors import PersistenceError, SummarizationError
from character_memory.generation import TextGenerator
from character_memory.models import CharacterRecord, ChatMessage

logger = logging.getLogger(__name__)


class Host(Protocol):
    """What the memory manager needs from the chat application it runs in."""

    def chat_history(self) -> list[ChatMessage]:
        """Messages of the active chat, oldest first."""
        ...

    def character_name(self) -> str:
        ...

    def user_name(self) -> str:
        ...

    def current_character_id(self) -> str | None:
        ...

    def persona_description(self) -> str:
        """The user's persona text, or an empty string."""
        ...

    def generate_quiet(self, system_prompt: str, user_prompt: str, max_length: int) -> str:
        """Run a background prompt through the host's current model."""
        ...

    def get_character(self, character_id: str) -> CharacterRecord:
        """Fetch a character record. Raises PersistenceError."""
        ...

    def save_character(self, record: CharacterRecord) -> None:
        """Write a character record back. Raises PersistenceError."""
        ...

    def notify(self, message: str, is_error: bool = False) -> None:
        """Show a short user-visible notification."""
        ...


class SQLiteHost:
    """Standalone host keeping characters, chat and session in SQLite."""

    def __init__(
        self,
        db_path: str = ":memory:",
        user_name: str | None = None,
        persona_description: str | None = None,
        generator: TextGenerator | None = None,
    ):
        self.db_path = db_path
        self.db = sqlite3.connect(db_path)
        self.db.row_factory = sqlite3.Row
        self._init_schema()
        self.generator = generator
        self.notifications: list[tuple[str, bool]] = []

        if user_name is not None or persona_description is not None:
            self.set_user(
                user_name if user_name is not None else self.user_name(),
                persona_description if persona_description is not None else self.persona_description(),
            )

    def _init_schema(self) -> None:
        """Initialize database schema."""
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path) as f:
            schema = f.read()
        self.db.executescript(schema)
        self.db.commit()

    def close(self) -> None:
        """Close database connection."""
        self.db.close()

    def __enter__(self) -> SQLiteHost:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    def _get_session(self, key: str, default: str = "") -> str:
        try:
            row = self.db.execute(
                "SELECT value FROM session WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read session {key}: {e}") from e
        if row is None or row["value"] is None:
            return default
        return row["value"]

    def _set_session(self, key: str, value: str | None) -> None:
        self.db.execute(
            """
            INSERT INTO session (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """,
            (key, value),
        )
        self.db.commit()

    def set_user(self, name: str, persona_description: str = "") -> None:
        """Set the user's display name and persona text."""
        self._set_session("user_name", name)
        self._set_session("persona_description", persona_description)

    def user_name(self) -> str:
        return self._get_session("user_name", "User")

    def persona_description(self) -> str:
        return self._get_session("persona_description", "")

    def select_character(self, character_id: str) -> None:
        """Make a registered character the one being chatted with."""
        if self._fetch_character_row(character_id) is None:
            raise ValueError(f"Character not found: {character_id}")
        self._set_session("current_character_id", character_id)

    def current_character_id(self) -> str | None:
        return self._get_session("current_character_id") or None

    def character_name(self) -> str:
        character_id = self.current_character_id()
        if character_id is None:
            return ""
        row = self._fetch_character_row(character_id)
        return row["name"] if row is not None else ""

    # -------------------------------------------------------------------------
    # Characters
    # -------------------------------------------------------------------------

    def register_character(
        self,
        id: str,
        name: str,
        notes: str = "",
        extra: dict | None = None,
    ) -> str:
        """Register a character.

        The first registered character becomes the active one.

        Args:
            id: Unique identifier for the character
            name: Display name
            notes: Initial character notes
            extra: Any other JSON data kept on the record

        Returns:
            The character id
        """
        self.db.execute(
            """
            INSERT INTO characters (id, name, notes, extra)
            VALUES (?, ?, ?, ?)
            """,
            (id, name, notes, json.dumps(extra) if extra else None),
        )
        self.db.commit()

        if self.current_character_id() is None:
            self.select_character(id)
        return id

    def _fetch_character_row(self, character_id: str) -> sqlite3.Row | None:
        try:
            return self.db.execute(
                "SELECT * FROM characters WHERE id = ?", (character_id,)
            ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to get character data: {e}") from e

    def get_character(self, character_id: str) -> CharacterRecord:
        row = self._fetch_character_row(character_id)
        if row is None:
            raise PersistenceError(f"Failed to get character data: {character_id} not found")
        return CharacterRecord(
            id=row["id"],
            name=row["name"],
            notes=row["notes"],
            extra=json.loads(row["extra"]) if row["extra"] else {},
        )

    def save_character(self, record: CharacterRecord) -> None:
        try:
            cursor = self.db.execute(
                "UPDATE characters SET name = ?, notes = ?, extra = ? WHERE id = ?",
                (
                    record.name,
                    record.notes,
                    json.dumps(record.extra) if record.extra else None,
                    record.id,
                ),
            )
            self.db.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to save character data: {e}") from e
        if cursor.rowcount == 0:
            raise PersistenceError(f"Failed to save character data: {record.id} not found")

    # -------------------------------------------------------------------------
    # Chat
    # -------------------------------------------------------------------------

    def add_message(
        self,
        text: str,
        is_user: bool = True,
        character_id: str | None = None,
    ) -> int:
        """Append a message to a character's chat.

        Args:
            text: Message text
            is_user: True if the user sent it, False if the character did
            character_id: Defaults to the active character

        Returns:
            The message id
        """
        character_id = character_id or self.current_character_id()
        if character_id is None:
            raise ValueError("No active character")

        cursor = self.db.execute(
            "INSERT INTO messages (character_id, is_user, text) VALUES (?, ?, ?)",
            (character_id, int(is_user), text),
        )
        self.db.commit()
        return cursor.lastrowid

    def chat_history(self) -> list[ChatMessage]:
        character_id = self.current_character_id()
        if character_id is None:
            return []
        try:
            rows = self.db.execute(
                "SELECT is_user, text FROM messages WHERE character_id = ? ORDER BY id",
                (character_id,),
            ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read chat history: {e}") from e
        return [
            ChatMessage(speaker_is_character=not row["is_user"], text=row["text"])
            for row in rows
        ]

    # -------------------------------------------------------------------------
    # Generation and notifications
    # -------------------------------------------------------------------------

    def generate_quiet(self, system_prompt: str, user_prompt: str, max_length: int) -> str:
        if self.generator is None:
            raise SummarizationError("Host text generation is unavailable")
        return self.generator.generate(system_prompt, user_prompt, max_length)

    def notify(self, message: str, is_error: bool = False) -> None:
        self.notifications.append((message, is_error))
        if is_error:
            logger.warning("%s", message)
        else:
            logger.info("%s", message)
