# errors.py
from __future__ import annotations


class TripPlannerError(Exception):
    """Base class for errors raised by the itinerary generation pipeline."""


class ValidationError(TripPlannerError):
    """The request can't be served; reported as a 400 before any stream is opened."""

    status_code = 400

    def __init__(self, message: str = "Destination or prompt is required") -> None:
        super().__init__(message)
        self.message = message


class ExternalServiceError(TripPlannerError):
    """The AI text-generation call failed (credentials, quota, network, bad payload)."""

    def __init__(self, message: str, *, provider: str = "openai") -> None:
        super().__init__(message)
        self.provider = provider


class StreamProtocolError(TripPlannerError):
    """A frame was produced out of order, e.g. a token after the itinerary summary."""
