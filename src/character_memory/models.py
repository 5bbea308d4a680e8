"""Data models for Character Memory."""

from dataclasses import dataclass, field

DEFAULT_SUMMARIZATION_PROMPT = (
    "Pause your chat with the user and summarize the last X messages in this array. "
    "Provide a summarized listicle of any interesting events, relationship dynamics, "
    "promises made or deeds performed including summaries of any noteworthy "
    "conversations between {{user}} and {{char}}."
)

DEFAULT_THRESHOLD = 20

BULLET = "•"


@dataclass
class Settings:
    """Configuration for MemoryManager."""

    enabled: bool = True
    messages_before_summarize: int = DEFAULT_THRESHOLD
    show_notifications: bool = True
    use_separate_model: bool = False
    separate_model_endpoint: str = ""  # full chat-completions URL
    separate_model_api_key: str = ""
    summarization_prompt: str = DEFAULT_SUMMARIZATION_PROMPT
    separate_model_name: str = "gpt-3.5-turbo"
    max_tokens: int = 500
    temperature: float = 0.7
    host_max_length: int = 2000
    min_sentence_length: int = 10
    exclude_persona_facts: bool = True

    def validate(self) -> None:
        """Raise ValueError if any field is out of range."""
        if self.messages_before_summarize < 1:
            raise ValueError(
                f"messages_before_summarize must be >= 1, got {self.messages_before_summarize}"
            )
        if self.max_tokens < 1:
            raise ValueError(f"max_tokens must be >= 1, got {self.max_tokens}")
        if self.min_sentence_length < 0:
            raise ValueError(
                f"min_sentence_length must be >= 0, got {self.min_sentence_length}"
            )


@dataclass(frozen=True)
class ChatMessage:
    """A single chat line as seen by the summarizer."""

    speaker_is_character: bool
    text: str

    @property
    def is_user(self) -> bool:
        return not self.speaker_is_character


@dataclass
class CharacterRecord:
    """A character as persisted by the host."""

    id: str
    name: str
    notes: str = ""
    extra: dict = field(default_factory=dict)


@dataclass
class MemoryUpdateBlock:
    """Timestamped group of sentences appended to character notes."""

    timestamp: str
    sentences: list[str] = field(default_factory=list)

    def render(self) -> str:
        """Serialize the block exactly as it is appended to the notes."""
        bullets = "\n".join(f"{BULLET} {sentence}" for sentence in self.sentences)
        return f"\n\n--- Memory Update ({self.timestamp}) ---\n{bullets}"


@dataclass
class CycleResult:
    """Outcome of one trigger -> summarize -> diff -> persist cycle."""

    status: str  # 'updated', 'no_new_information', 'failed', 'skipped'
    block: MemoryUpdateBlock | None = None
    error: str | None = None
