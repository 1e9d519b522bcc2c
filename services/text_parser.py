# services/text_parser.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Tuple

from models import DayPlan, MAX_ACTIVITIES_PER_DAY

log = logging.getLogger("llm")

# Leading glyphs that mark a line as an activity. Emoji are stored without the
# U+FE0F variation selector; it is stripped along with the marker.
ACTIVITY_MARKERS: Tuple[str, ...] = (
    "🌅", "🏛", "🍽", "🎨", "🏞", "🎭", "🛍", "☕", "✈", "📍",
    "•", "-", "–",
)

_VARIATION_SELECTOR = "\ufe0f"
_RULE_CHARS = set("-–—*_=")

# A whole line holding "Day N", optionally bold/underscored or under a markdown heading,
# then an optional separator and a short title.
DAY_HEADER_RE = re.compile(
    r"^[ \t]*(?:#{1,6}[ \t]*)?(?:\*\*|__)?[ \t]*Day[ \t]+(\d+)\b(?P<title>[^\n]*)$",
    re.IGNORECASE | re.MULTILINE,
)

_TITLE_STRIP = " \t\r:.-–—*_#"

SKELETON_DAYS = (
    (1, "Arrival & Exploration", ("Check-in", "City tour", "Local dining")),
    (2, "Adventure & Culture", ("Museums", "Activities", "Entertainment")),
    (3, "Relaxation & Departure", ("Shopping", "Cafes", "Check-out")),
)

@dataclass(frozen=True)
class DayHeader:
    start: int
    end: int
    day: int
    title: str

def skeleton_days() -> List[DayPlan]:
    return [DayPlan(day=d, title=t, activities=list(a)) for d, t, a in SKELETON_DAYS]

def find_day_headers(text: str) -> List[DayHeader]:
    """
    Collect every day header in one forward scan, in the order they appear.

    Headers numbered below 1 are kept here so they still end the previous
    day's segment; extract_days emits no DayPlan for them.
    """
    return [
        DayHeader(
            start=m.start(),
            end=m.end(),
            day=int(m.group(1)),
            title=m.group("title").strip(_TITLE_STRIP),
        )
        for m in DAY_HEADER_RE.finditer(text)
    ]

def parse_activity(line: str) -> str | None:
    """Return the activity text if the line starts with a marker, else None."""
    s = line.strip()
    for marker in ACTIVITY_MARKERS:
        if s.startswith(marker):
            rest = s[len(marker):].lstrip(_VARIATION_SELECTOR).strip()
            if not rest or set(rest) <= _RULE_CHARS:
                return None
            return rest
    return None

def extract_activities(segment: str, limit: int = MAX_ACTIVITIES_PER_DAY) -> List[str]:
    activities: List[str] = []
    for line in segment.splitlines():
        activity = parse_activity(line)
        if activity:
            activities.append(activity)
            if len(activities) == limit:
                break
    return activities

def extract_days(text: str) -> List[DayPlan]:
    """
    Split itinerary text into DayPlans.

    Each day's content runs from the end of its header to the start of the
    next header (or end of text). Days come back in the order the headers were
    found; repeated day numbers are kept, "Day 0" segments are dropped. Text
    that yields no day at all gets a generic 3-day skeleton.
    """
    headers = find_day_headers(text)

    days: List[DayPlan] = []
    for i, header in enumerate(headers):
        if header.day < 1:
            continue
        seg_end = headers[i + 1].start if i + 1 < len(headers) else len(text)
        days.append(DayPlan(
            day=header.day,
            title=header.title,
            activities=extract_activities(text[header.end:seg_end]),
        ))

    if not days:
        log.info("No day headers found in generated text; using skeleton days", extra={"text_length": len(text)})
        return skeleton_days()
    return days
