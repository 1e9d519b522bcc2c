# tests/conftest.py
import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from errors import ExternalServiceError
from main import app, get_orchestrator
from services.orchestrator import GenerationOrchestrator


class ScriptedStreamer:
    """Stands in for the OpenAI adapter: yields fixed chunks, optionally failing after `fail_after` of them."""

    def __init__(self, chunks, fail_after=None):
        self.chunks = list(chunks)
        self.fail_after = fail_after
        self.prompts = []
        self.closed = False

    async def stream(self, prompt):
        self.prompts.append(prompt)
        try:
            for i, chunk in enumerate(self.chunks):
                if self.fail_after is not None and i == self.fail_after:
                    raise ExternalServiceError("429 quota exceeded")
                yield chunk
            if self.fail_after is not None and self.fail_after >= len(self.chunks):
                raise ExternalServiceError("connection reset")
        finally:
            self.closed = True


@pytest.fixture
def scripted_streamer():
    return ScriptedStreamer


@pytest.fixture
def parse_frames():
    def _parse(body):
        return [json.loads(line) for line in body.split("\n") if line.strip()]
    return _parse


@pytest.fixture
def collect():
    """Drain an async iterator of frames from sync test code."""
    def _collect(frames):
        async def _run():
            return [f async for f in frames]
        return asyncio.run(_run())
    return _collect


@pytest.fixture
def make_client():
    def _make(streamer=None):
        orchestrator = GenerationOrchestrator(streamer=streamer, fallback_delay_s=0)
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        return TestClient(app, raise_server_exceptions=False)
    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()
