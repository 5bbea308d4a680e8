"""Detect which summary sentences are not yet in a character's notes.

This is a substring heuristic, not semantic deduplication: a sentence that
is already in the notes with slightly different wording is reported as new.
"""

import re
from datetime import datetime

from character_memory.models import MemoryUpdateBlock

TIMESTAMP_FORMAT = "%b %d, %Y, %I:%M %p"

# ". " style sentence ends and line breaks
_SENTENCE_BOUNDARY = re.compile(r"\.\s+|\n")


def format_timestamp(now: datetime | None = None) -> str:
    """Render the header timestamp of a memory update block."""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def split_sentences(text: str, min_length: int = 10) -> list[str]:
    """Split text into candidate sentences, dropping short fragments."""
    sentences = []
    for fragment in _SENTENCE_BOUNDARY.split(text):
        fragment = fragment.strip()
        if len(fragment) < min_length:
            continue
        sentences.append(fragment)
    return sentences


def find_new_information(
    summary: str,
    existing_notes: str,
    user_persona: str = "",
    *,
    exclude_persona: bool = True,
    min_length: int = 10,
    now: datetime | None = None,
) -> MemoryUpdateBlock | None:
    """Return a block of summary sentences missing from the notes.

    Args:
        summary: Model summary of recent chat
        existing_notes: Current character notes
        user_persona: The user's persona text
        exclude_persona: Also treat sentences found in the persona as known
        min_length: Fragments shorter than this are ignored
        now: Timestamp for the block header (defaults to the current time)

    Returns:
        A MemoryUpdateBlock, or None when nothing is new
    """
    if not summary or not summary.strip():
        return None

    if not existing_notes:
        return MemoryUpdateBlock(timestamp=format_timestamp(now), sentences=[summary.strip()])

    notes_lower = existing_notes.lower()
    persona_lower = user_persona.lower() if exclude_persona and user_persona else ""

    new_sentences = []
    for sentence in split_sentences(summary, min_length):
        lowered = sentence.lower()
        if lowered in notes_lower:
            continue
        if persona_lower and lowered in persona_lower:
            continue
        new_sentences.append(sentence)

    if not new_sentences:
        return None

    return MemoryUpdateBlock(timestamp=format_timestamp(now), sentences=new_sentences)
