"""Message-count trigger policy and the memory update cycle."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from character_memory.errors import MemoryManagerError, PersistenceError
from character_memory.host import Host
from character_memory.models import CycleResult, Settings
from character_memory.notes import apply_update
from character_memory.novelty import find_new_information
from character_memory.summarizer import summarize

logger = logging.getLogger(__name__)

DISABLED_MESSAGE = (
    "Character Memory Manager is disabled. Enable it in the extensions settings first."
)
TRIGGERED_MESSAGE = "Memory update process triggered."
IN_PROGRESS_MESSAGE = "Memory update already in progress."


@dataclass
class TriggerState:
    """Counter and in-flight guard of one manager."""

    counter: int = 0
    processing: bool = False


class MemoryManager:
    """Counts chat messages and keeps character notes up to date."""

    def __init__(
        self,
        host: Host,
        settings: Settings | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.host = host
        self.settings = settings or Settings()
        self.settings.validate()
        self.state = TriggerState()
        self.http_client = http_client
        self.last_result: CycleResult | None = None

    @property
    def threshold(self) -> int:
        return self.settings.messages_before_summarize

    # -------------------------------------------------------------------------
    # Triggers
    # -------------------------------------------------------------------------

    def on_message_sent(self) -> CycleResult | None:
        """Count a sent message and run a cycle once the threshold is hit.

        Returns:
            The cycle result if a cycle ran, otherwise None
        """
        if not self.settings.enabled:
            return None
        if self.state.processing:
            logger.debug("Cycle in flight, dropping message event")
            return None
        if not self.host.chat_history():
            return None

        self.state.counter += 1
        return self._check_and_run()

    def force_update(self) -> str:
        """Run a cycle now, regardless of the counter (``memoryupdate``)."""
        if not self.settings.enabled:
            return DISABLED_MESSAGE
        if self.state.processing:
            return IN_PROGRESS_MESSAGE

        self.state.counter = self.threshold
        self._check_and_run()
        return TRIGGERED_MESSAGE

    def _check_and_run(self) -> CycleResult | None:
        if self.state.counter < self.threshold:
            return None

        self.state.processing = True
        try:
            result = self.run_cycle()
        finally:
            self.state.counter = 0
            self.state.processing = False

        self.last_result = result
        return result

    # -------------------------------------------------------------------------
    # Cycle
    # -------------------------------------------------------------------------

    def _notify(self, message: str, is_error: bool = False) -> None:
        if self.settings.show_notifications:
            self.host.notify(message, is_error=is_error)

    def run_cycle(self) -> CycleResult:
        """Summarize recent chat and append anything new to the notes.

        Every error is logged and reported through a single
        failure notification; the notes are only written after the summary
        and the novelty check both succeeded.
        """
        self._notify("Updating character memories...")
        settings = self.settings

        try:
            history = self.host.chat_history()
            if not history:
                return CycleResult(status="skipped")

            character_id = self.host.current_character_id()
            if character_id is None:
                raise PersistenceError("No active character")

            summary = summarize(
                history[-self.threshold:],
                self.host.character_name(),
                self.host.user_name(),
                settings.summarization_prompt,
                settings.use_separate_model,
                settings.separate_model_endpoint,
                settings.separate_model_api_key,
                host=self.host,
                model=settings.separate_model_name,
                max_tokens=settings.max_tokens,
                temperature=settings.temperature,
                host_max_length=settings.host_max_length,
                http_client=self.http_client,
            )

            record = self.host.get_character(character_id)
            block = find_new_information(
                summary,
                record.notes,
                self.host.persona_description(),
                exclude_persona=settings.exclude_persona_facts,
                min_length=settings.min_sentence_length,
            )

            if block is None:
                logger.info("No new information for %s", character_id)
                self._notify("No new information to add to character memories.")
                return CycleResult(status="no_new_information")

            if not apply_update(self.host, character_id, record.notes, block):
                raise PersistenceError("Could not save character notes")
        except MemoryManagerError as e:
            logger.error("Error in character memory manager: %s", e)
            self._notify(f"Failed to update character memories: {e}", is_error=True)
            return CycleResult(status="failed", error=str(e))
        except Exception as e:
            logger.exception("Unexpected error in character memory manager")
            self._notify(f"Failed to update character memories: {e}", is_error=True)
            return CycleResult(status="failed", error=str(e))

        self._notify("Character memories updated with new information!")
        return CycleResult(status="updated", block=block)
