"""Character Memory - Keep character notes up to date from chat summaries."""

from character_memory.models import (
    Settings,
    ChatMessage,
    CharacterRecord,
    MemoryUpdateBlock,
    CycleResult,
)
from character_memory.errors import (
    MemoryManagerError,
    TransportError,
    SummarizationError,
    ResponseFormatError,
    PersistenceError,
)
from character_memory.host import Host, SQLiteHost
from character_memory.manager import MemoryManager
from character_memory.novelty import find_new_information
from character_memory.notes import apply_update
from character_memory.summarizer import summarize

__version__ = "0.1.0"

__all__ = [
    "MemoryManager",
    "Host",
    "SQLiteHost",
    "Settings",
    "ChatMessage",
    "CharacterRecord",
    "MemoryUpdateBlock",
    "CycleResult",
    "MemoryManagerError",
    "TransportError",
    "SummarizationError",
    "ResponseFormatError",
    "PersistenceError",
    "find_new_information",
    "apply_update",
    "summarize",
]
