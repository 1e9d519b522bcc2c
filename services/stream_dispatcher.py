# services/stream_dispatcher.py
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Optional

from fastapi.responses import StreamingResponse

from errors import StreamProtocolError
from models import ItineraryFrame, MetricsFrame, StreamFrame, TokenFrame
from request_context import get_request_id

log = logging.getLogger("stream")

STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"
STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
}

class CancellationToken:
    """Set once the client is gone; generation loops poll it between units of work."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

class StreamPhase(str, Enum):
    TOKENS = "tokens"
    FINALIZING = "finalizing"
    CLOSED = "closed"

class StreamDispatcher:
    """
    Owns the outbound stream for one request.

    Frames are written as newline-delimited JSON in this order: any number of
    token frames, one itinerary frame, one metrics frame. Anything else is a
    StreamProtocolError. Before each write the disconnect probe is consulted;
    once the client is gone the cancellation token is set, the frame source is
    closed and nothing more is written.
    """

    def __init__(
        self,
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        self.cancel_token = cancel_token or CancellationToken()
        self._is_disconnected = is_disconnected
        self.phase = StreamPhase.TOKENS
        self.frames_written = 0

    def _advance(self, frame: StreamFrame) -> None:
        if self.phase is StreamPhase.CLOSED:
            raise StreamProtocolError("frame emitted after the stream was closed")
        if isinstance(frame, TokenFrame):
            if self.phase is not StreamPhase.TOKENS:
                raise StreamProtocolError("token emitted after the itinerary summary")
        elif isinstance(frame, ItineraryFrame):
            if self.phase is not StreamPhase.TOKENS:
                raise StreamProtocolError("itinerary summary emitted twice")
            self.phase = StreamPhase.FINALIZING
        elif isinstance(frame, MetricsFrame):
            if self.phase is not StreamPhase.FINALIZING:
                raise StreamProtocolError("metrics emitted before the itinerary summary")
            self.phase = StreamPhase.CLOSED
        else:
            raise StreamProtocolError(f"unknown frame type {type(frame).__name__}")

    async def _client_gone(self) -> bool:
        if self.cancel_token.cancelled:
            return True
        if self._is_disconnected is not None and await self._is_disconnected():
            log.info("Client disconnected from itinerary generation", extra={
                "request_id": get_request_id(),
                "frames_written": self.frames_written,
            })
            self.cancel_token.cancel()
            return True
        return False

    async def dispatch(self, frames: AsyncIterator[StreamFrame]) -> AsyncIterator[str]:
        try:
            async for frame in frames:
                if await self._client_gone():
                    break
                self._advance(frame)
                self.frames_written += 1
                yield frame.to_line()
        finally:
            aclose = getattr(frames, "aclose", None)
            if aclose is not None:
                await aclose()
            if self.phase is not StreamPhase.CLOSED and not self.cancel_token.cancelled:
                log.error("Stream ended without itinerary and metrics frames", extra={
                    "phase": self.phase.value,
                    "frames_written": self.frames_written,
                })
            else:
                log.info("Stream closed", extra={
                    "phase": self.phase.value,
                    "frames_written": self.frames_written,
                    "cancelled": self.cancel_token.cancelled,
                })

    def response(self, frames: AsyncIterator[StreamFrame]) -> StreamingResponse:
        """Headers are fixed here; they can't change once the first byte is sent."""
        return StreamingResponse(
            self.dispatch(frames),
            media_type=STREAM_MEDIA_TYPE,
            headers=STREAM_HEADERS,
        )
