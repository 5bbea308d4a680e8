"""Text generation backends a host can use for quiet (background) prompts."""

from typing import Protocol

import openai
from openai import OpenAI

from character_memory.errors import SummarizationError, TransportError


class TextGenerator(Protocol):
    """Protocol for text generation backends."""

    def generate(self, system_prompt: str, user_prompt: str, max_tokens: int) -> str:
        """Generate a completion for a system + user prompt pair."""
        ...


class OpenAIGenerator:
    """OpenAI chat-completions generation backend."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        client: OpenAI | None = None,
    ):
        self.model = model
        self.temperature = temperature
        self.client = client or OpenAI()

    def generate(self, system_prompt: str, user_prompt: str, max_tokens: int) -> str:
        """Generate a completion with the configured model."""
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=max_tokens,
                temperature=self.temperature,
            )
        except openai.OpenAIError as e:
            raise TransportError(f"Generation request failed: {e}") from e

        if not response.choices or response.choices[0].message.content is None:
            raise SummarizationError("Generation returned no content")
        return response.choices[0].message.content


class StaticGenerator:
    """Deterministic, dependency-free generation backend.

    Intended for tests and offline runs: returns the same text for every
    prompt and records what it was asked.
    """

    def __init__(self, text: str):
        self.text = text
        self.calls: list[tuple[str, str, int]] = []

    def generate(self, system_prompt: str, user_prompt: str, max_tokens: int) -> str:
        self.calls.append((system_prompt, user_prompt, max_tokens))
        return self.text
