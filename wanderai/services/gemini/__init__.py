"""Gemini itinerary generation.

Public API:
    - ItineraryGenerator: Prompt builder, model call and strict output validation
    - create_itinerary_generator: Factory building the generator from settings
    - parse_itinerary: Strict JSON-to-Itinerary parser
"""
from wanderai.services.gemini.client import (
    ItineraryGenerator,
    create_itinerary_generator,
    parse_itinerary,
)

__all__ = [
    "ItineraryGenerator",
    "create_itinerary_generator",
    "parse_itinerary",
]
