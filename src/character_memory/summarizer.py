"""Chat summarization through the host model or an external endpoint."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from character_memory.errors import (
    MemoryManagerError,
    ResponseFormatError,
    SummarizationError,
    TransportError,
)
from character_memory.host import Host
from character_memory.models import ChatMessage

logger = logging.getLogger(__name__)


def format_messages(
    messages: list[ChatMessage],
    character_name: str,
    user_name: str,
) -> str:
    """Render messages as "speaker: text" lines."""
    lines = []
    for message in messages:
        speaker = character_name if message.speaker_is_character else user_name
        lines.append(f"{speaker}: {message.text}")
    return "\n".join(lines)


def render_prompt(template: str, character_name: str, user_name: str, count: int) -> str:
    """Fill {{char}}, {{user}} and {{count}} in a prompt template."""
    return (
        template.replace("{{char}}", character_name)
        .replace("{{user}}", user_name)
        .replace("{{count}}", str(count))
    )


def parse_completion_payload(payload: Any) -> str:
    """Extract generated text from a completion response body.

    Understands the OpenAI chat and legacy completion shapes as well as the
    flat ``output`` / ``response`` / ``text`` bodies many local servers use.
    """
    if isinstance(payload, dict):
        choices = payload.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            first = choices[0]
            message = first.get("message")
            if isinstance(message, dict) and isinstance(message.get("content"), str):
                return message["content"]
            if isinstance(first.get("text"), str):
                return first["text"]

        for key in ("output", "response", "text"):
            if isinstance(payload.get(key), str):
                return payload[key]

    raise ResponseFormatError("Unexpected API response format")


def call_external_model(
    system_prompt: str,
    user_prompt: str,
    endpoint: str,
    api_key: str = "",
    model: str = "gpt-3.5-turbo",
    max_tokens: int = 500,
    temperature: float = 0.7,
    http_client: httpx.Client | None = None,
) -> str:
    """POST a chat-completions request to exactly ``endpoint``.

    The Authorization header is only sent when ``api_key`` is non-empty.
    Requests are never retried. A client is opened (and closed) per call
    unless ``http_client`` is given.
    """
    body = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "max_tokens": max_tokens,
        "temperature": temperature,
    }
    headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}

    try:
        if http_client is None:
            with httpx.Client() as client:
                response = client.post(endpoint, json=body, headers=headers)
        else:
            response = http_client.post(endpoint, json=body, headers=headers)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise TransportError(
            f"API error: {e.response.status_code} {e.response.reason_phrase}"
        ) from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise TransportError(f"API error: {e}") from e

    try:
        payload = response.json()
    except ValueError as e:
        raise ResponseFormatError("External model did not return JSON") from e

    return parse_completion_payload(payload)


def call_host_model(host: Host, system_prompt: str, user_prompt: str, max_length: int) -> str:
    """Run the prompt through the host's current model."""
    try:
        return host.generate_quiet(system_prompt, user_prompt, max_length)
    except MemoryManagerError:
        raise
    except Exception as e:
        raise SummarizationError(f"Host generation failed: {e}") from e


def summarize(
    messages: list[ChatMessage],
    character_name: str,
    user_name: str,
    prompt_template: str,
    use_external: bool = False,
    endpoint: str = "",
    api_key: str = "",
    *,
    host: Host | None = None,
    model: str = "gpt-3.5-turbo",
    max_tokens: int = 500,
    temperature: float = 0.7,
    host_max_length: int = 2000,
    http_client: httpx.Client | None = None,
) -> str:
    """Summarize a slice of chat.

    Args:
        messages: Messages to summarize, oldest first
        character_name: Substituted for {{char}} and used as speaker name
        user_name: Substituted for {{user}} and used as speaker name
        prompt_template: System prompt template
        use_external: Prefer the external endpoint when one is configured
        endpoint: Full chat-completions URL
        api_key: Bearer token for the endpoint (optional)
        host: Host whose model is used when the endpoint is not
        model: Model name sent to the external endpoint
        max_tokens: Completion budget for the external endpoint
        temperature: Sampling temperature for the external endpoint
        host_max_length: Length hint for host generation
        http_client: Transport override for the external endpoint

    Returns:
        The summary text

    Raises:
        TransportError: The endpoint could not be reached or answered non-2xx
        ResponseFormatError: The endpoint answered with an unknown body
        SummarizationError: Host generation is unavailable or failed
    """
    formatted = format_messages(messages, character_name, user_name)
    system_prompt = render_prompt(prompt_template, character_name, user_name, len(messages))

    if use_external and endpoint.strip():
        logger.debug("Summarizing %d messages via %s", len(messages), endpoint)
        return call_external_model(
            system_prompt,
            formatted,
            endpoint.strip(),
            api_key=api_key,
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            http_client=http_client,
        )

    if host is None:
        raise SummarizationError("No host available for summarization")
    logger.debug("Summarizing %d messages via host model", len(messages))
    return call_host_model(host, system_prompt, formatted, host_max_length)
