import asyncio
from types import SimpleNamespace

import pytest

from config import Settings
from errors import ExternalServiceError
from services.ai_stream import SYSTEM_PROMPT, OpenAIStreamAdapter, build_streamer


def _event(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class FakeCompletionStream:
    """Async-iterable like openai's AsyncStream; raises `error` once `events` run out."""

    def __init__(self, events, error=None):
        self.events = list(events)
        self.error = error
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for event in self.events:
            yield event
        if self.error is not None:
            raise self.error

    async def close(self):
        self.closed = True


class FakeOpenAI:
    """Only the parts of AsyncOpenAI the adapter touches."""

    def __init__(self, stream=None, create_error=None):
        self.stream = stream
        self.create_error = create_error
        self.calls = []
        self.closed = False
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.create_error is not None:
            raise self.create_error
        return self.stream

    async def close(self):
        self.closed = True


def _drain(adapter, prompt="Plan Rome"):
    seen = []

    async def run():
        async for text in adapter.stream(prompt):
            seen.append(text)

    return seen, run


def test_stream_yields_delta_text_and_closes_response():
    response = FakeCompletionStream([_event("Day 1"), SimpleNamespace(choices=[]), _event(None), _event(": Rome")])
    client = FakeOpenAI(stream=response)
    seen, run = _drain(OpenAIStreamAdapter(client, model="gpt-4o-mini", temperature=0.3))

    asyncio.run(run())

    assert seen == ["Day 1", ": Rome"]
    assert response.closed
    call = client.calls[0]
    assert call["stream"] is True
    assert call["model"] == "gpt-4o-mini"
    assert call["temperature"] == 0.3
    assert call["messages"] == [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "Plan Rome"},
    ]


def test_failure_mid_stream_becomes_external_service_error():
    response = FakeCompletionStream([_event("hi")], error=RuntimeError("connection reset"))
    seen, run = _drain(OpenAIStreamAdapter(FakeOpenAI(stream=response), model="m"))

    with pytest.raises(ExternalServiceError) as exc:
        asyncio.run(run())

    assert seen == ["hi"]
    assert "connection reset" in str(exc.value)
    assert exc.value.provider == "openai"
    assert response.closed


def test_failure_opening_stream_becomes_external_service_error():
    seen, run = _drain(OpenAIStreamAdapter(FakeOpenAI(create_error=ValueError("401 invalid key")), model="m"))

    with pytest.raises(ExternalServiceError):
        asyncio.run(run())

    assert seen == []


def test_early_exit_closes_response():
    response = FakeCompletionStream([_event("a"), _event("b"), _event("c")])
    adapter = OpenAIStreamAdapter(FakeOpenAI(stream=response), model="m")

    async def first_only():
        chunks = adapter.stream("Plan Rome")
        try:
            return await chunks.__anext__()
        finally:
            await chunks.aclose()

    assert asyncio.run(first_only()) == "a"
    assert response.closed


def test_aclose_closes_client():
    client = FakeOpenAI()

    asyncio.run(OpenAIStreamAdapter(client, model="m").aclose())

    assert client.closed


@pytest.mark.parametrize("key", ["", "   ", "demo-key", "your-openai-api-key-here"])
def test_placeholder_keys_disable_ai(key):
    assert build_streamer(Settings(OPENAI_API_KEY=key)) is None


def test_real_key_builds_adapter():
    streamer = build_streamer(Settings(OPENAI_API_KEY="sk-test-123", OPENAI_MODEL="gpt-4o", OPENAI_TEMPERATURE=0.2))

    assert isinstance(streamer, OpenAIStreamAdapter)
    assert streamer.model == "gpt-4o"
    assert streamer.temperature == 0.2
    asyncio.run(streamer.aclose())
