"""Append memory update blocks to character notes."""

import logging

from character_memory.errors import MemoryManagerError
from character_memory.host import Host
from character_memory.models import MemoryUpdateBlock

logger = logging.getLogger(__name__)


def apply_update(
    host: Host,
    character_id: str,
    current_notes: str,
    block: MemoryUpdateBlock,
) -> bool:
    """Persist ``current_notes + block`` as the character's notes.

    Fetches the record, overwrites its notes and writes it back. The two
    calls are not transactional.

    Returns:
        True if the record was saved, False otherwise
    """
    updated_notes = current_notes + block.render()

    try:
        record = host.get_character(character_id)
        record.notes = updated_notes
        host.save_character(record)
    except MemoryManagerError as e:
        logger.error("Error updating character notes for %s: %s", character_id, e)
        return False
    except Exception:
        logger.exception("Unexpected error updating character notes for %s", character_id)
        return False

    logger.info(
        "Appended %d sentence(s) to notes of %s", len(block.sentences), character_id
    )
    return True
