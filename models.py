from __future__ import annotations

import json
from typing import Any, List, Optional, Union

from pydantic import (
    BaseModel,
    Field,
    ConfigDict,
    field_validator,
    conint,
)

DEFAULT_DURATION = "3"
DEFAULT_BUDGET = "1000"
UNKNOWN_DESTINATION = "Unknown Destination"
MAX_ACTIVITIES_PER_DAY = 5

# -----------------------------
# Request
# -----------------------------

def _canonical_str(v):
    """2 -> "2", 2.0 -> "2", 2.5 -> "2.5"; strings pass through untouched."""
    if v is None or isinstance(v, str):
        return v
    if isinstance(v, bool):
        raise ValueError("must be a string or a number")
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)

class GenerationRequest(BaseModel):
    """Raw body of POST /generate-itinerary. Every field is optional on the wire."""
    model_config = ConfigDict(extra="ignore")

    destination: Optional[str] = None
    duration: Optional[Union[str, int, float]] = Field(default=None, description="Trip length in days")
    budget: Optional[Union[str, int, float]] = Field(default=None, description="Budget per person in USD")
    interests: Optional[List[Any]] = Field(default=None, description="Non-string entries are dropped during validation")
    prompt: Optional[str] = Field(default=None, description="Free-text request, used when destination is missing")

    @field_validator("duration", "budget")
    @classmethod
    def _numbers_to_str(cls, v):
        return _canonical_str(v)

class TripParams(BaseModel):
    """Request after validation: final destination chosen and defaults resolved once."""
    model_config = ConfigDict(frozen=True)

    destination: str
    duration: str = DEFAULT_DURATION
    budget: str = DEFAULT_BUDGET
    interests: List[str] = Field(default_factory=list)
    prompt: Optional[str] = None

    @property
    def interests_text(self) -> str:
        return ", ".join(self.interests)

# -----------------------------
# Response
# -----------------------------

class DayPlan(BaseModel):
    model_config = ConfigDict(extra="forbid")

    day: conint(ge=1)
    title: str = ""
    activities: List[str] = Field(default_factory=list, max_length=MAX_ACTIVITIES_PER_DAY)

    @field_validator("activities")
    @classmethod
    def _no_blank_activities(cls, v: List[str]) -> List[str]:
        if any(not a.strip() for a in v):
            raise ValueError("activities must be non-empty strings")
        return v

class Itinerary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    destination: str
    duration: str
    budget: str
    description: str
    full_text: Optional[str] = Field(default=None, serialization_alias="fullText")
    days: List[DayPlan] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)

class UsageMetrics(BaseModel):
    """Approximate token counts. Derived from character length, not a tokenizer."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    prompt_tokens: conint(ge=0) = Field(serialization_alias="promptTokens")
    completion_tokens: conint(ge=0) = Field(serialization_alias="completionTokens")
    total_tokens: conint(ge=0) = Field(serialization_alias="totalTokens")

# -----------------------------
# Stream frames
# -----------------------------

class _Frame(BaseModel):
    def to_line(self) -> str:
        """One newline-terminated JSON object, UTF-8 text left unescaped."""
        payload = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        return json.dumps(payload, ensure_ascii=False) + "\n"

class TokenFrame(_Frame):
    token: str

class ItineraryFrame(_Frame):
    itinerary: Itinerary

class MetricsFrame(_Frame):
    metrics: UsageMetrics

StreamFrame = Union[TokenFrame, ItineraryFrame, MetricsFrame]
