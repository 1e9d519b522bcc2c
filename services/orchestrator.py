# services/orchestrator.py
from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from enum import Enum
from typing import AsyncIterator, List, Optional

from errors import ExternalServiceError
from models import (
    Itinerary,
    ItineraryFrame,
    MetricsFrame,
    StreamFrame,
    TokenFrame,
    TripParams,
    UsageMetrics,
)
from request_context import get_request_id, new_itinerary_id
from services.ai_stream import TextStreamer, build_prompt
from services.fallback_generator import FALLBACK_USAGE, fallback_fragments, fallback_itinerary
from services.metrics import estimate_usage
from services.stream_dispatcher import CancellationToken
from services.text_parser import extract_days

log = logging.getLogger("app")

class GenerationState(str, Enum):
    STREAMING_AI = "streaming_ai"
    STREAMING_FALLBACK = "streaming_fallback"
    FINALIZING = "finalizing"
    CLOSED = "closed"

class GenerationOrchestrator:
    """
    Produces the frames for one validated request.

    With a streamer, AI chunks are forwarded as tokens and then parsed into
    days; if the streamer raises ExternalServiceError (even mid-stream) the
    fallback text follows whatever tokens were already sent. Without a
    streamer the fallback runs directly. Either way the frames end with one
    itinerary summary and one metrics frame, unless the request is cancelled.
    """

    def __init__(self, streamer: Optional[TextStreamer] = None, fallback_delay_s: float = 0.2) -> None:
        self.streamer = streamer
        self.fallback_delay_s = fallback_delay_s

    @property
    def ai_enabled(self) -> bool:
        return self.streamer is not None

    async def aclose(self) -> None:
        close = getattr(self.streamer, "aclose", None)
        if close is not None:
            await close()

    def _enter(self, state: GenerationState, **extra) -> None:
        log.info(f"Generation state -> {state.value}", extra={"request_id": get_request_id(), "state": state.value, **extra})

    async def generate(
        self,
        params: TripParams,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamFrame]:
        cancel = cancel_token or CancellationToken()
        log.info(f"Generating itinerary for: {params.destination}", extra={"ai_enabled": self.ai_enabled})

        if self.streamer is None:
            async for frame in self._fallback(params, cancel):
                yield frame
            return

        self._enter(GenerationState.STREAMING_AI)
        prompt = build_prompt(params)
        parts: List[str] = []
        try:
            async with aclosing(self.streamer.stream(prompt)) as chunks:
                async for chunk in chunks:
                    if cancel.cancelled:
                        self._enter(GenerationState.CLOSED, reason="cancelled", chunks=len(parts))
                        return
                    parts.append(chunk)
                    yield TokenFrame(token=chunk)
        except ExternalServiceError as e:
            log.warning("AI generation failed; falling back to demo itinerary", extra={
                "provider": e.provider,
                "error": str(e),
                "tokens_already_sent": len(parts),
            })
            async for frame in self._fallback(params, cancel):
                yield frame
            return

        full_text = "".join(parts)
        itinerary = Itinerary(
            id=new_itinerary_id(),
            destination=params.destination,
            duration=params.duration,
            budget=params.budget,
            description=f"AI-generated trip to {params.destination}",
            full_text=full_text,
            days=extract_days(full_text),
            interests=list(params.interests),
        )
        async for frame in self._finalize(itinerary, estimate_usage(prompt, full_text), cancel):
            yield frame

    async def _fallback(self, params: TripParams, cancel: CancellationToken) -> AsyncIterator[StreamFrame]:
        self._enter(GenerationState.STREAMING_FALLBACK)
        for i, fragment in enumerate(fallback_fragments(params)):
            if i and self.fallback_delay_s > 0:
                await asyncio.sleep(self.fallback_delay_s)
            if cancel.cancelled:
                self._enter(GenerationState.CLOSED, reason="cancelled", fragments=i)
                return
            yield TokenFrame(token=fragment)

        async for frame in self._finalize(fallback_itinerary(params, new_itinerary_id()), FALLBACK_USAGE, cancel):
            yield frame

    async def _finalize(
        self,
        itinerary: Itinerary,
        metrics: UsageMetrics,
        cancel: CancellationToken,
    ) -> AsyncIterator[StreamFrame]:
        if cancel.cancelled:
            self._enter(GenerationState.CLOSED, reason="cancelled")
            return
        self._enter(GenerationState.FINALIZING, days=len(itinerary.days), total_tokens=metrics.total_tokens)
        yield ItineraryFrame(itinerary=itinerary)
        yield MetricsFrame(metrics=metrics)
        self._enter(GenerationState.CLOSED)
