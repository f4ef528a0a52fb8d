"""External service integrations for itinerary planning.

- Identity: Firebase Authentication (email/password)
- Gemini: Structured itinerary generation
- Weather: Open-Meteo current conditions
- Firestore: Owner-scoped session history

Each service module exports the client class and a ``create_*`` factory that
builds it from :class:`wanderai.core.config.ApiSettings`.
"""
from wanderai.services.firestore import SessionStore, create_session_store
from wanderai.services.gemini import ItineraryGenerator, create_itinerary_generator, parse_itinerary
from wanderai.services.identity import IdentityProvider, Subscription, create_identity_provider
from wanderai.services.weather import WeatherClient, create_weather_client

__all__ = [
    # Identity
    "IdentityProvider",
    "Subscription",
    "create_identity_provider",
    # Gemini
    "ItineraryGenerator",
    "create_itinerary_generator",
    "parse_itinerary",
    # Weather
    "WeatherClient",
    "create_weather_client",
    # Firestore
    "SessionStore",
    "create_session_store",
]
