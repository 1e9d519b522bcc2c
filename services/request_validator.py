# services/request_validator.py
from __future__ import annotations

import logging

from errors import ValidationError
from models import (
    DEFAULT_BUDGET,
    DEFAULT_DURATION,
    UNKNOWN_DESTINATION,
    GenerationRequest,
    TripParams,
)
from security import (
    MAX_DESTINATION_LENGTH,
    clean_interests,
    screen_prompt,
    screen_text,
)

log = logging.getLogger("app")

MISSING_DESTINATION_MESSAGE = "Destination or prompt is required"

def _or_default(value: str | None, default: str) -> str:
    # "" and "0" fall back like a missing value
    if value is None:
        return default
    value = value.strip()
    if not value or value == "0":
        return default
    return value

def validate_request(req: GenerationRequest) -> TripParams:
    """
    Resolve a raw request into TripParams.

    Must run before any streaming header is written: a ValidationError here
    becomes a plain 400 JSON response.
    """
    destination = screen_text(req.destination, MAX_DESTINATION_LENGTH, "destination")
    prompt = screen_prompt(req.prompt)

    if not destination and not prompt:
        log.info("Rejected generation request without destination or prompt")
        raise ValidationError(MISSING_DESTINATION_MESSAGE)

    params = TripParams(
        destination=destination or prompt or UNKNOWN_DESTINATION,
        duration=_or_default(req.duration, DEFAULT_DURATION),
        budget=_or_default(req.budget, DEFAULT_BUDGET),
        interests=clean_interests(req.interests),
        prompt=prompt,
    )
    log.info("Generation request validated", extra={
        "destination": params.destination,
        "duration": params.duration,
        "budget": params.budget,
        "interests_count": len(params.interests),
        "from_prompt": destination is None,
    })
    return params
