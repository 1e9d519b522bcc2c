# services/ai_stream.py
from __future__ import annotations

import logging
from typing import AsyncIterator, Optional, Protocol

import httpx
from openai import AsyncOpenAI

from config import Settings
from errors import ExternalServiceError
from models import TripParams
from request_context import get_request_id

log = logging.getLogger("llm")

DEFAULT_INTERESTS = "General sightseeing, culture, food"

SYSTEM_PROMPT = """You are an expert, friendly travel planner.

Write itineraries as readable markdown for a mobile app:
- Start every day with a bold header on its own line, exactly like: **Day 1: Arrival & Old Town**
- Under each day, put one activity per line, each line starting with an emoji such as 🌅 🏛️ 🍽️ 🎨 🏞️ 🎭 🛍️ ☕ ✈️ 📍 or a "•" bullet.
- Keep sections after the days (restaurants, transport, budget, culture, weather, packing) under their own bold headings.
"""

def build_prompt(params: TripParams) -> str:
    interests = params.interests_text or DEFAULT_INTERESTS
    return f"""Create a detailed travel itinerary for: {params.destination}

Duration: {params.duration} days
Budget: ${params.budget} per person
Interests: {interests}

Please provide:
1. Day-by-day detailed itinerary with specific activities and timings
2. Recommended restaurants and local cuisines
3. Transportation tips
4. Budget breakdown
5. Cultural insights and local tips
6. Weather considerations
7. Packing suggestions

Format the response with clear headings, emojis, and helpful details. Make it engaging and practical."""

class TextStreamer(Protocol):
    """Anything that turns a prompt into a lazy sequence of text chunks."""

    def stream(self, prompt: str) -> AsyncIterator[str]:
        """Yield text pieces as they arrive; raise ExternalServiceError on any failure."""
        ...

class OpenAIStreamAdapter:
    """
    Streams chat completion deltas from OpenAI.

    Holds only read-only configuration, so one instance (and its client) is
    shared by every request.
    """

    def __init__(self, client: AsyncOpenAI, model: str, temperature: float = 0.7) -> None:
        self._client = client
        self.model = model
        self.temperature = temperature

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        rid = get_request_id()
        chunks = 0
        response = None
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                stream=True,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
            log.info("LLM stream opened", extra={"request_id": rid, "model": self.model})
            async for event in response:
                if not event.choices:
                    continue
                text = event.choices[0].delta.content
                if text:
                    chunks += 1
                    yield text
        except Exception as e:
            log.warning("LLM stream failed", extra={"request_id": rid, "model": self.model, "chunks": chunks}, exc_info=True)
            raise ExternalServiceError(f"{type(e).__name__}: {e}") from e
        finally:
            # Also runs when the caller stops iterating early (client gone)
            if response is not None:
                await response.close()

        log.info("LLM stream complete", extra={"request_id": rid, "model": self.model, "chunks": chunks})

    async def aclose(self) -> None:
        """Close the OpenAI client and the httpx pool behind it."""
        await self._client.close()

def build_streamer(settings: Settings) -> Optional[OpenAIStreamAdapter]:
    """The OpenAI adapter when a usable key is configured, otherwise None (demo mode)."""
    if not settings.has_ai_credential:
        log.info("No OpenAI API key configured; itineraries will use the fallback generator")
        return None
    client = AsyncOpenAI(
        api_key=settings.OPENAI_API_KEY,
        http_client=httpx.AsyncClient(timeout=settings.OPENAI_TIMEOUT_S),
        max_retries=1,
    )
    return OpenAIStreamAdapter(client, model=settings.OPENAI_MODEL, temperature=settings.OPENAI_TEMPERATURE)
