# services/fallback_generator.py
from __future__ import annotations

from typing import List

from models import DayPlan, Itinerary, TripParams, UsageMetrics

DEFAULT_HIGHLIGHTS = "Cultural sites, outdoor activities"

# Fixed figures reported for the demo itinerary; nothing is counted
FALLBACK_USAGE = UsageMetrics(prompt_tokens=50, completion_tokens=300, total_tokens=350)

FALLBACK_DAYS = (
    (1, "Arrival & City Exploration", ("Check into hotel", "Visit landmarks", "Try local cuisine")),
    (2, "Cultural & Adventure Activities", ("Museums", "Outdoor activities", "Local entertainment")),
    (3, "Local Experiences & Departure", ("Shopping", "Cafes", "Departure preparations")),
)

def fallback_fragments(params: TripParams) -> List[str]:
    """The demo itinerary text, one entry per streamed token."""
    dest = params.destination
    highlights = params.interests_text or DEFAULT_HIGHLIGHTS
    return [
        f"🏝️ **Welcome to your {dest} adventure!**\n\n",
        f"📅 **{params.duration}-Day Itinerary for {dest}**\n\n",
        f"💰 **Budget**: ${params.budget} per person\n\n",

        "**Day 1: Arrival & City Exploration**\n",
        f"🌅 Morning: Arrive in {dest} and check into your hotel\n",
        f"🏛️ Afternoon: Visit the main landmarks and historic sites of {dest}\n",
        "🍽️ Evening: Try local cuisine at recommended restaurants\n",
        f"📍 Must-visit: {dest} city center, local markets\n\n",

        "**Day 2: Cultural & Adventure Activities**\n",
        f"🎨 Morning: Museums and cultural attractions in {dest}\n",
        "🏞️ Afternoon: Outdoor activities and nature spots\n",
        "🎭 Evening: Local entertainment and nightlife\n",
        f"📍 Highlights: {highlights}\n\n",

        "**Day 3: Local Experiences & Departure**\n",
        f"🛍️ Morning: Shopping for {dest} souvenirs\n",
        "☕ Afternoon: Relax at local cafes and final sightseeing\n",
        f"✈️ Evening: Departure preparations, farewell to {dest}\n\n",

        "**📍 Key Locations:**\n",
        f"• Central Plaza, {dest}\n",
        f"• Historic District, {dest}\n",
        f"• Local Market Square, {dest}\n",
        f"• Scenic Viewpoint, {dest}\n\n",

        "**💡 Pro Tips:**\n",
        "• Book accommodations in advance\n",
        "• Try local transportation options\n",
        "• Don't forget travel insurance\n",
        "• Learn basic local phrases\n\n",

        "**📱 Useful Apps:**\n",
        "• Google Maps for navigation\n",
        "• Google Translate for communication\n",
        "• Local weather app\n\n",

        f"Have an amazing trip to {dest}! 🎉",
    ]

def fallback_days() -> List[DayPlan]:
    # Fixed structure, independent of the streamed fragments
    return [DayPlan(day=d, title=t, activities=list(a)) for d, t, a in FALLBACK_DAYS]

def fallback_itinerary(params: TripParams, itinerary_id: int) -> Itinerary:
    return Itinerary(
        id=itinerary_id,
        destination=params.destination,
        duration=params.duration,
        budget=params.budget,
        description=f"A wonderful trip to {params.destination}",
        days=fallback_days(),
        interests=list(params.interests),
    )
