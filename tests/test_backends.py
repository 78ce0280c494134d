"""Tests for provider backends.

HTTP backends run against httpx.MockTransport; the Gemini backend runs
against a mocked google-genai client.
"""

import json
from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from google.genai import errors as genai_errors

from devhub_ai.config import OrchestratorConfig
from devhub_ai.llm.providers import (
    AnthropicBackend,
    GeminiBackend,
    GroqBackend,
    OpenAIBackend,
    create_backend,
    extract_json,
)
from devhub_ai.registry import KeyRing
from devhub_ai.types import (
    AuthenticationError,
    ChatMessage,
    InvalidConfigError,
    MessageRole,
    ProviderRequestFailedError,
    ProviderTimeoutError,
    RateLimitError,
)

SCHEMA = {"type": "object", "properties": {"score": {"type": "integer"}}}


class Recorder:
    """httpx.MockTransport handler that records requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def body(self):
        return json.loads(self.requests[-1].content)


def sse(*events):
    """Build a server-sent-event body from (event, data) pairs."""
    lines = []
    for event, data in events:
        if event:
            lines.append(f"event: {event}")
        lines.append(f"data: {data if isinstance(data, str) else json.dumps(data)}")
        lines.append("")
    return ("\n".join(lines) + "\n").encode()


def make_backend(cls, make_descriptor, recorder, keys=("sk-1",), config=None, **descriptor_kwargs):
    descriptor = make_descriptor(cls.BACKEND, backend=cls.BACKEND, **descriptor_kwargs)
    ring = keys if isinstance(keys, KeyRing) else KeyRing(list(keys), name=descriptor.id)
    return cls(
        descriptor,
        ring,
        config or OrchestratorConfig(),
        transport=httpx.MockTransport(recorder),
    )


def strained_ring():
    """A one-key ring whose key has just entered failure cooldown."""
    ring = KeyRing(["sk-1"], max_failures=2)
    ring.report_failure("sk-1")
    ring.report_failure("sk-1")
    assert ring.stats().in_cooldown == 1
    return ring


def completion(content, **extra):
    return httpx.Response(
        200,
        json={
            "model": "gpt-4o-mini",
            "choices": [{"message": {"role": "assistant", "content": content}}],
            **extra,
        },
    )


class TestOpenAIBackend:
    """Test OpenAIBackend request shapes and parsing."""

    @pytest.mark.asyncio
    async def test_generate_text(self, make_descriptor):
        """Test request URL, headers, body and result."""
        recorder = Recorder(completion(
            "Hello!",
            usage={"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7},
        ))
        history = [ChatMessage(MessageRole.USER, "earlier"), ChatMessage(MessageRole.ASSISTANT, "ok")]

        async with make_backend(OpenAIBackend, make_descriptor, recorder) as backend:
            result = await backend.generate_text("gpt-4o-mini", "Hi", history=history)

        request = recorder.requests[0]
        assert str(request.url) == "https://api.openai.com/v1/chat/completions"
        assert request.headers["authorization"] == "Bearer sk-1"
        assert recorder.body == {
            "model": "gpt-4o-mini",
            "messages": [
                {"role": "user", "content": "earlier"},
                {"role": "assistant", "content": "ok"},
                {"role": "user", "content": "Hi"},
            ],
            "max_tokens": 4096,
        }
        assert result.text == "Hello!"
        assert result.provider == "openai"
        assert result.token_usage.total_tokens == 7

    @pytest.mark.asyncio
    async def test_temperature_and_base_url(self, make_descriptor):
        """Test temperature is sent and base_url overrides the endpoint."""
        recorder = Recorder(completion("ok"))
        config = OrchestratorConfig(temperature=0.3)
        descriptor = replace(
            make_descriptor("local", backend="openai"), base_url="http://localhost:8000/v1"
        )

        backend = OpenAIBackend(
            descriptor, KeyRing(["k"]), config, transport=httpx.MockTransport(recorder)
        )
        async with backend:
            await backend.generate_text("tiny", "Hi")

        assert str(recorder.requests[0].url) == "http://localhost:8000/v1/chat/completions"
        assert recorder.body["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_stream_text(self, make_descriptor):
        """Test SSE deltas are yielded until [DONE]."""
        body = sse(
            (None, {"choices": [{"delta": {"role": "assistant"}}]}),
            (None, {"choices": [{"delta": {"content": "Hel"}}]}),
            (None, {"choices": [{"delta": {"content": "lo"}}]}),
            (None, "[DONE]"),
            (None, {"choices": [{"delta": {"content": "ignored"}}]}),
        )
        recorder = Recorder(httpx.Response(200, content=body))

        async with make_backend(OpenAIBackend, make_descriptor, recorder) as backend:
            chunks = [c async for c in backend.stream_text("gpt-4o-mini", "Hi")]

        assert chunks == ["Hel", "lo"]
        assert recorder.body["stream"] is True

    @pytest.mark.asyncio
    async def test_completed_stream_reports_success(self, make_descriptor):
        """Test reaching [DONE] records the key as healthy."""
        body = sse(
            (None, {"choices": [{"delta": {"content": "ok"}}]}),
            (None, "[DONE]"),
        )
        recorder = Recorder(httpx.Response(200, content=body))
        ring = strained_ring()

        async with make_backend(OpenAIBackend, make_descriptor, recorder, keys=ring) as backend:
            chunks = [c async for c in backend.stream_text("gpt-4o-mini", "Hi")]

        assert chunks == ["ok"]
        assert ring.stats().in_cooldown == 0

    @pytest.mark.asyncio
    async def test_generate_object_uses_json_schema(self, make_descriptor):
        """Test structured output requests the json_schema response format."""
        recorder = Recorder(completion('{"score": 4}'))

        async with make_backend(OpenAIBackend, make_descriptor, recorder) as backend:
            raw = await backend.generate_object("gpt-4o-mini", "Rate", SCHEMA, schema_name="Verdict")

        assert recorder.body["response_format"] == {
            "type": "json_schema",
            "json_schema": {"name": "Verdict", "schema": SCHEMA},
        }
        assert extract_json(raw) == {"score": 4}


class TestHTTPErrors:
    """Test status mapping and key reporting."""

    @pytest.mark.asyncio
    async def test_rate_limit_rotates_key(self, make_descriptor):
        """Test 429 raises RateLimitError and moves to the next key."""
        recorder = Recorder(
            httpx.Response(429, headers={"retry-after": "7"}, json={"error": {"message": "slow"}}),
            completion("ok"),
        )

        async with make_backend(
            OpenAIBackend, make_descriptor, recorder, keys=("k1", "k2")
        ) as backend:
            with pytest.raises(RateLimitError) as exc_info:
                await backend.generate_text("m", "Hi")
            assert exc_info.value.retry_after == 7
            assert exc_info.value.status_code == 429

            await backend.generate_text("m", "Hi")

        assert recorder.requests[1].headers["authorization"] == "Bearer k2"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_errors(self, make_descriptor, status):
        """Test 401/403 raise AuthenticationError."""
        recorder = Recorder(httpx.Response(status, json={"error": "nope"}))

        async with make_backend(OpenAIBackend, make_descriptor, recorder) as backend:
            with pytest.raises(AuthenticationError) as exc_info:
                await backend.generate_text("m", "Hi")
        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    async def test_server_error(self, make_descriptor):
        """Test other statuses raise ProviderRequestFailedError with the message."""
        recorder = Recorder(httpx.Response(500, json={"error": {"message": "overloaded"}}))

        async with make_backend(OpenAIBackend, make_descriptor, recorder) as backend:
            with pytest.raises(ProviderRequestFailedError, match="overloaded") as exc_info:
                await backend.generate_text("m", "Hi")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_timeout(self, make_descriptor):
        """Test httpx timeouts raise ProviderTimeoutError."""
        recorder = Recorder(httpx.ReadTimeout("too slow"))

        async with make_backend(OpenAIBackend, make_descriptor, recorder) as backend:
            with pytest.raises(ProviderTimeoutError):
                await backend.generate_text("m", "Hi")

    @pytest.mark.asyncio
    async def test_network_error(self, make_descriptor):
        """Test connection errors raise ProviderRequestFailedError."""
        recorder = Recorder(httpx.ConnectError("refused"))

        async with make_backend(OpenAIBackend, make_descriptor, recorder) as backend:
            with pytest.raises(ProviderRequestFailedError, match="refused"):
                await backend.generate_text("m", "Hi")

    @pytest.mark.asyncio
    async def test_malformed_response(self, make_descriptor):
        """Test a response without choices is a provider failure."""
        recorder = Recorder(httpx.Response(200, json={"unexpected": True}))

        async with make_backend(OpenAIBackend, make_descriptor, recorder) as backend:
            with pytest.raises(ProviderRequestFailedError, match="no choices"):
                await backend.generate_text("m", "Hi")

    @pytest.mark.asyncio
    async def test_malformed_json_reports_key(self, make_descriptor):
        """Test a non-JSON body counts against the key."""
        recorder = Recorder(httpx.Response(200, content=b"<html>bad gateway</html>"))
        ring = KeyRing(["sk-1"], max_failures=1)

        async with make_backend(OpenAIBackend, make_descriptor, recorder, keys=ring) as backend:
            with pytest.raises(ProviderRequestFailedError, match="malformed JSON"):
                await backend.generate_text("m", "Hi")

        assert ring.stats().in_cooldown == 1

    @pytest.mark.asyncio
    async def test_missing_key(self, make_descriptor):
        """Test a backend without credentials fails before any request."""
        recorder = Recorder(completion("never"))

        async with make_backend(OpenAIBackend, make_descriptor, recorder, keys=()) as backend:
            with pytest.raises(ProviderRequestFailedError, match="no API key"):
                await backend.generate_text("m", "Hi")
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_stream_error_status(self, make_descriptor):
        """Test an error status on a stream raises on iteration."""
        recorder = Recorder(httpx.Response(429, json={"error": "slow down"}))

        async with make_backend(OpenAIBackend, make_descriptor, recorder) as backend:
            with pytest.raises(RateLimitError):
                async for _ in backend.stream_text("m", "Hi"):
                    pass


class TestGroqBackend:
    """Test GroqBackend."""

    @pytest.mark.asyncio
    async def test_json_mode_with_instructions(self, make_descriptor):
        """Test Groq uses json_object mode plus schema instructions."""
        recorder = Recorder(completion('{"score": 2}'))

        async with make_backend(GroqBackend, make_descriptor, recorder, keys=("gsk",)) as backend:
            await backend.generate_object("llama-3.3-70b-versatile", "Rate", SCHEMA)

        assert str(recorder.requests[0].url) == "https://api.groq.com/openai/v1/chat/completions"
        assert recorder.body["response_format"] == {"type": "json_object"}
        prompt = recorder.body["messages"][-1]["content"]
        assert prompt.startswith("Rate")
        assert json.dumps(SCHEMA) in prompt


class TestAnthropicBackend:
    """Test AnthropicBackend."""

    @pytest.mark.asyncio
    async def test_generate_text(self, make_descriptor):
        """Test headers, system lifting and text extraction."""
        recorder = Recorder(httpx.Response(200, json={
            "model": "claude-3-5-sonnet-20241022",
            "content": [{"type": "text", "text": "Hi "}, {"type": "text", "text": "there"}],
            "usage": {"input_tokens": 3, "output_tokens": 2},
        }))
        history = [ChatMessage(MessageRole.SYSTEM, "Be brief"), ChatMessage(MessageRole.USER, "yo")]

        async with make_backend(AnthropicBackend, make_descriptor, recorder) as backend:
            result = await backend.generate_text("claude-3-5-sonnet-20241022", "Hi", history=history)

        request = recorder.requests[0]
        assert str(request.url) == "https://api.anthropic.com/v1/messages"
        assert request.headers["x-api-key"] == "sk-1"
        assert request.headers["anthropic-version"] == "2023-06-01"
        assert "authorization" not in request.headers
        assert recorder.body["system"] == "Be brief"
        assert recorder.body["messages"] == [
            {"role": "user", "content": "yo"},
            {"role": "user", "content": "Hi"},
        ]
        assert result.text == "Hi there"
        assert result.token_usage.total_tokens == 5

    @pytest.mark.asyncio
    async def test_stream_text(self, make_descriptor):
        """Test text deltas are yielded until message_stop."""
        body = sse(
            ("message_start", {"type": "message_start"}),
            ("content_block_delta", {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "Hel"}}),
            ("ping", {"type": "ping"}),
            ("content_block_delta", {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "lo"}}),
            ("message_stop", {"type": "message_stop"}),
        )
        recorder = Recorder(httpx.Response(200, content=body))

        async with make_backend(AnthropicBackend, make_descriptor, recorder) as backend:
            chunks = [c async for c in backend.stream_text("claude", "Hi")]

        assert chunks == ["Hel", "lo"]

    @pytest.mark.asyncio
    async def test_completed_stream_reports_success(self, make_descriptor):
        """Test reaching message_stop records the key as healthy."""
        body = sse(
            ("content_block_delta", {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "ok"}}),
            ("message_stop", {"type": "message_stop"}),
        )
        recorder = Recorder(httpx.Response(200, content=body))
        ring = strained_ring()

        async with make_backend(AnthropicBackend, make_descriptor, recorder, keys=ring) as backend:
            chunks = [c async for c in backend.stream_text("claude", "Hi")]

        assert chunks == ["ok"]
        assert ring.stats().in_cooldown == 0

    @pytest.mark.asyncio
    async def test_stream_error_event(self, make_descriptor):
        """Test an error event raises ProviderRequestFailedError."""
        body = sse(("error", {"type": "error", "error": {"message": "overloaded"}}))
        recorder = Recorder(httpx.Response(200, content=body))

        async with make_backend(AnthropicBackend, make_descriptor, recorder) as backend:
            with pytest.raises(ProviderRequestFailedError, match="overloaded"):
                async for _ in backend.stream_text("claude", "Hi"):
                    pass

    @pytest.mark.asyncio
    async def test_generate_object_forces_tool(self, make_descriptor):
        """Test structured output is a forced tool call returning its input."""
        recorder = Recorder(httpx.Response(200, json={
            "content": [{"type": "tool_use", "name": "Verdict", "input": {"score": 9}}],
        }))

        async with make_backend(AnthropicBackend, make_descriptor, recorder) as backend:
            raw = await backend.generate_object("claude", "Rate", SCHEMA, schema_name="Verdict")

        assert raw == {"score": 9}
        assert recorder.body["tools"][0]["input_schema"] == SCHEMA
        assert recorder.body["tool_choice"] == {"type": "tool", "name": "Verdict"}


class TestGeminiBackend:
    """Test GeminiBackend against a mocked genai client."""

    def _client(self, **model_methods):
        client = MagicMock()
        for name, value in model_methods.items():
            setattr(client.aio.models, name, value)
        return client

    @pytest.mark.asyncio
    async def test_generate_text(self, make_descriptor):
        """Test contents, config and result mapping."""
        response = MagicMock(text="Hola", usage_metadata=None)
        client = self._client(generate_content=AsyncMock(return_value=response))
        descriptor = make_descriptor("gemini", backend="gemini")

        with patch("devhub_ai.llm.providers.gemini_api.genai.Client", return_value=client) as client_cls:
            backend = GeminiBackend(descriptor, KeyRing(["g-key"]))
            history = [ChatMessage(MessageRole.SYSTEM, "Be kind"), ChatMessage(MessageRole.ASSISTANT, "hey")]
            result = await backend.generate_text("gemini-2.5-flash", "Hi", history=history)

        client_cls.assert_called_once_with(api_key="g-key")
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert [c.role for c in kwargs["contents"]] == ["model", "user"]
        assert kwargs["config"].system_instruction == "Be kind"
        assert result.text == "Hola"
        assert result.provider == "gemini"

    @pytest.mark.asyncio
    async def test_rate_limit(self, make_descriptor):
        """Test a 429 APIError becomes RateLimitError."""
        error = genai_errors.ClientError(429, {"error": {"code": 429, "message": "quota", "status": "RESOURCE_EXHAUSTED"}})
        client = self._client(generate_content=AsyncMock(side_effect=error))

        with patch("devhub_ai.llm.providers.gemini_api.genai.Client", return_value=client):
            backend = GeminiBackend(make_descriptor("gemini", backend="gemini"), KeyRing(["g-key"]))
            with pytest.raises(RateLimitError):
                await backend.generate_text("gemini-2.5-flash", "Hi")

        assert backend.keys.stats().rate_limited == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_reports_key(self, make_descriptor):
        """Test failures outside APIError still count against the key."""
        client = self._client(generate_content=AsyncMock(side_effect=RuntimeError("socket closed")))
        ring = KeyRing(["g-key"], max_failures=1)

        with patch("devhub_ai.llm.providers.gemini_api.genai.Client", return_value=client):
            backend = GeminiBackend(make_descriptor("gemini", backend="gemini"), ring)
            with pytest.raises(RuntimeError, match="socket closed"):
                await backend.generate_text("gemini-2.5-flash", "Hi")

        assert ring.stats().in_cooldown == 1

    @pytest.mark.asyncio
    async def test_generate_object_requests_json(self, make_descriptor):
        """Test structured output asks for application/json."""
        response = MagicMock(text='{"score": 1}', usage_metadata=None)
        client = self._client(generate_content=AsyncMock(return_value=response))

        with patch("devhub_ai.llm.providers.gemini_api.genai.Client", return_value=client):
            backend = GeminiBackend(make_descriptor("gemini", backend="gemini"), KeyRing(["g-key"]))
            raw = await backend.generate_object("gemini-2.5-flash", "Rate", SCHEMA)

        config = client.aio.models.generate_content.call_args.kwargs["config"]
        assert config.response_mime_type == "application/json"
        assert raw == '{"score": 1}'


class TestFactory:
    """Test create_backend()."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "backend_name, backend_class",
        [("openai", OpenAIBackend), ("groq", GroqBackend), ("anthropic", AnthropicBackend)],
    )
    async def test_backend_by_name(self, make_descriptor, backend_name, backend_class):
        """Test the catalog backend name picks the implementation."""
        backend = create_backend(make_descriptor("p", backend=backend_name), ["k1", "k2"])
        async with backend:
            assert type(backend) is backend_class
            assert len(backend.keys) == 2

    def test_key_ring_uses_config(self, make_descriptor):
        """Test ring cooldowns come from the config."""
        config = OrchestratorConfig(max_key_failures=1, failure_cooldown=100)
        with patch("devhub_ai.llm.providers.gemini_api.genai.Client"):
            backend = create_backend(make_descriptor("g", backend="gemini"), ["k1", "k2"], config)
        backend.keys.report_failure("k1")
        assert backend.keys.stats().in_cooldown == 1

    def test_unknown_backend(self, make_descriptor):
        """Test unknown backend names raise InvalidConfigError."""
        with pytest.raises(InvalidConfigError, match="unknown backend"):
            create_backend(make_descriptor("p", backend="carrier-pigeon"), ["k"])
