"""Prompt templates and the structured output contract for the itinerary model."""
from __future__ import annotations

import json
from typing import Any, Dict

ITINERARY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "destination": {"type": "string", "description": "The name of the city/location"},
        "coordinates": {
            "type": "object",
            "properties": {
                "lat": {"type": "number", "description": "Latitude of the destination"},
                "lng": {"type": "number", "description": "Longitude of the destination"},
            },
            "required": ["lat", "lng"],
        },
        "summary": {"type": "string", "description": "A brief 2-sentence summary of the trip vibe."},
        "days": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "dayTitle": {
                        "type": "string",
                        "description": "Theme of the day (e.g., 'Historical Walk')",
                    },
                    "activities": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "time": {"type": "string", "description": "Time of day (e.g., 9:00 AM)"},
                                "activity": {"type": "string", "description": "Name of the activity"},
                                "description": {
                                    "type": "string",
                                    "description": "Short details about the activity",
                                },
                                "emoji": {"type": "string", "description": "A relevant emoji for the activity"},
                            },
                            "required": ["time", "activity", "description", "emoji"],
                        },
                    },
                },
                "required": ["dayTitle", "activities"],
            },
        },
    },
    "required": ["destination", "coordinates", "summary", "days"],
}

itinerary_prompt = """You are an expert travel planner. Plan a {days}-day travel itinerary for {destination}.

TRAVELLER INTERESTS:
{interests}

REQUIREMENTS:
- Produce exactly {days} entries in "days", one per day, in order.
- Give every day a short themed "dayTitle" and at least one activity.
- Every activity needs a time of day, a name, a short description and one relevant emoji.
- Ensure the coordinates are accurate for the city center.
- Write a brief 2-sentence "summary" capturing the vibe of the trip.

OUTPUT FORMAT:
Return strictly valid JSON matching this JSON schema, with no commentary and no markdown fences:
{schema}
"""


def build_itinerary_prompt(destination: str, days: int, interests: str) -> str:
    """Render the instruction sent to the generative model."""

    return itinerary_prompt.format(
        destination=destination,
        days=days,
        interests=interests,
        schema=json.dumps(ITINERARY_SCHEMA, indent=2),
    )
