"""Tests for chat summarization."""

import json

import httpx
import pytest

from character_memory import (
    ChatMessage,
    ResponseFormatError,
    SummarizationError,
    TransportError,
    summarize,
)
from character_memory.summarizer import (
    call_external_model,
    format_messages,
    parse_completion_payload,
    render_prompt,
)

ENDPOINT = "https://llm.example.com/v1/chat/completions"

MESSAGES = [
    ChatMessage(speaker_is_character=False, text="Hi there"),
    ChatMessage(speaker_is_character=True, text="Hello, traveller"),
]


def mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_format_messages():
    assert format_messages(MESSAGES, "Zee", "Al") == "Al: Hi there\nZee: Hello, traveller"


def test_render_prompt_substitutes_all_placeholders():
    prompt = render_prompt("Summarize {{count}} msgs for {{user}} and {{char}}", "Zee", "Al", 5)

    assert prompt == "Summarize 5 msgs for Al and Zee"


def test_render_prompt_replaces_every_occurrence():
    prompt = render_prompt("{{char}} {{char}} / {{user}}{{user}}", "Zee", "Al", 1)

    assert prompt == "Zee Zee / AlAl"


@pytest.mark.parametrize(
    "payload",
    [
        {"choices": [{"message": {"role": "assistant", "content": "summary"}}]},
        {"choices": [{"text": "summary"}]},
        {"output": "summary"},
        {"response": "summary"},
        {"text": "summary"},
    ],
)
def test_parse_completion_payload_shapes(payload):
    assert parse_completion_payload(payload) == "summary"


@pytest.mark.parametrize("payload", [{}, {"choices": []}, {"data": "x"}, ["summary"], None])
def test_parse_completion_payload_unknown(payload):
    with pytest.raises(ResponseFormatError):
        parse_completion_payload(payload)


def test_external_request_shape():
    """The endpoint receives an OpenAI chat-completions body and bearer auth."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "It went well."}}]})

    result = call_external_model(
        "sys", "user text", ENDPOINT, api_key="sk-test", http_client=mock_client(handler)
    )

    assert result == "It went well."
    assert seen["url"] == ENDPOINT
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"] == {
        "model": "gpt-3.5-turbo",
        "messages": [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "user text"},
        ],
        "max_tokens": 500,
        "temperature": 0.7,
    }


def test_external_request_without_key_has_no_auth_header():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json={"response": "ok"})

    assert call_external_model("sys", "u", ENDPOINT, http_client=mock_client(handler)) == "ok"
    assert seen["auth"] is None


def test_external_http_error_is_transport_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503, json={"error": {"message": "overloaded"}})

    with pytest.raises(TransportError):
        call_external_model("sys", "u", ENDPOINT, http_client=mock_client(handler))
    assert len(calls) == 1  # no retries


def test_external_connection_error_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportError):
        call_external_model("sys", "u", ENDPOINT, http_client=mock_client(handler))


def test_external_non_json_is_response_format_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    with pytest.raises(ResponseFormatError):
        call_external_model("sys", "u", ENDPOINT, http_client=mock_client(handler))


def test_summarize_uses_external_endpoint_when_configured(host):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["messages"][0]["content"] == "2 for Al/Zee"
        assert body["messages"][1]["content"] == "Al: Hi there\nZee: Hello, traveller"
        return httpx.Response(200, json={"output": "external summary"})

    result = summarize(
        MESSAGES,
        "Zee",
        "Al",
        "{{count}} for {{user}}/{{char}}",
        use_external=True,
        endpoint=ENDPOINT,
        host=host,
        http_client=mock_client(handler),
    )

    assert result == "external summary"
    assert host.generator.calls == []


def test_summarize_falls_back_to_host_without_endpoint(host):
    """An enabled external model with no endpoint uses the host model."""
    result = summarize(
        MESSAGES, "Zee", "Al", "Summarize {{count}}", use_external=True, endpoint="", host=host
    )

    assert result == host.generator.text
    assert host.generator.calls == [("Summarize 2", "Al: Hi there\nZee: Hello, traveller", 2000)]


def test_summarize_host_unavailable():
    from character_memory import SQLiteHost

    with SQLiteHost(":memory:") as bare_host:
        with pytest.raises(SummarizationError):
            summarize(MESSAGES, "Zee", "Al", "p", host=bare_host)


def test_summarize_wraps_host_failures(host):
    class BrokenGenerator:
        def generate(self, system_prompt, user_prompt, max_tokens):
            raise RuntimeError("model crashed")

    host.generator = BrokenGenerator()

    with pytest.raises(SummarizationError, match="model crashed"):
        summarize(MESSAGES, "Zee", "Al", "p", host=host)


def test_summarize_whitespace_endpoint_uses_host(host):
    """A blank endpoint is treated as not configured."""
    result = summarize(
        MESSAGES, "Zee", "Al", "p", use_external=True, endpoint="   ", host=host
    )

    assert result == host.generator.text
    assert len(host.generator.calls) == 1


def test_summarize_strips_endpoint(host):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json={"output": "ok"})

    with mock_client(handler) as client:
        summarize(
            MESSAGES, "Zee", "Al", "p",
            use_external=True, endpoint=f"  {ENDPOINT}\n", host=host, http_client=client,
        )

    assert seen == [ENDPOINT]
    assert host.generator.calls == []


def test_external_invalid_url_without_key_is_transport_error():
    """No client and no key: a malformed URL still fails as a transport error."""
    with pytest.raises(TransportError):
        call_external_model("sys", "user", "http://[bad", api_key="")
