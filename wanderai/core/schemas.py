"""Pydantic data models for the itinerary generation pipeline.

Attributes are snake_case in Python while every external representation
(model output, Firestore documents, HTTP payloads) is camelCase, so all
models share :class:`CamelModel` and are dumped with ``by_alias=True``.

Key models:
- Principal: the authenticated actor, owned by the identity adapter
- GenerationRequest: one form submission
- Itinerary: the structured multi-day plan returned by the model
- Weather: optional live conditions for the destination
- Session: the persisted (prompt, itinerary, weather) record
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from wanderai.core.types import Lat, Lon, NonEmptyStr, TripDays

# WMO weather interpretation codes as returned by Open-Meteo.
WMO_CONDITIONS = {
    0: "Clear",
    1: "Mainly Clear",
    2: "Partly Cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing Rime Fog",
    51: "Light Drizzle",
    53: "Moderate Drizzle",
    55: "Dense Drizzle",
    56: "Freezing Drizzle",
    57: "Heavy Freezing Drizzle",
    61: "Slight Rain",
    63: "Moderate Rain",
    65: "Heavy Rain",
    66: "Freezing Rain",
    67: "Heavy Freezing Rain",
    71: "Slight Snow",
    73: "Moderate Snow",
    75: "Heavy Snow",
    77: "Snow Grains",
    80: "Slight Showers",
    81: "Moderate Showers",
    82: "Violent Showers",
    85: "Slight Snow Showers",
    86: "Heavy Snow Showers",
    95: "Thunderstorms",
    96: "Thunderstorms with Hail",
    99: "Heavy Thunderstorms with Hail",
}


def utc_now() -> datetime:
    """Current UTC time truncated to the millisecond precision stored in Firestore."""

    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def format_timestamp(value: datetime) -> str:
    """Render ``value`` as an ISO-8601 UTC string with millisecond precision."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases for snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Principal(CamelModel):
    """The authenticated identity on whose behalf actions are performed.

    Tokens issued by the identity provider travel with the principal so the
    document store can verify the caller, but they are never serialised.
    """

    model_config = ConfigDict(frozen=True)

    uid: str
    email: str = ""
    display_name: str = "Traveler"
    created_at: datetime
    id_token: Optional[str] = Field(default=None, exclude=True, repr=False)
    refresh_token: Optional[str] = Field(default=None, exclude=True, repr=False)
    token_expires_at: Optional[datetime] = Field(default=None, exclude=True, repr=False)

    @staticmethod
    def fallback_display_name(email: str, display_name: Optional[str]) -> str:
        """Pick the name shown for a user who never set one."""

        if display_name:
            return display_name
        if email:
            return email.split("@")[0]
        return "Traveler"

    @field_serializer("created_at")
    def _serialize_created_at(self, value: datetime) -> str:
        return format_timestamp(value)


class GenerationRequest(CamelModel):
    """Form submission driving one run of the pipeline."""

    destination: NonEmptyStr
    days: TripDays
    interests: NonEmptyStr

    @property
    def prompt(self) -> str:
        """Human readable description stored with the session history."""

        return f"Trip to {self.destination} for {self.days} days. Interests: {self.interests}"


class Coordinates(CamelModel):
    """WGS84 position of the destination, as reported by the model."""

    lat: Lat
    lng: Lon


class Activity(CamelModel):
    time: NonEmptyStr = Field(description="Time of day (e.g., 9:00 AM)")
    activity: NonEmptyStr = Field(description="Name of the activity")
    description: NonEmptyStr = Field(description="Short details about the activity")
    emoji: NonEmptyStr = Field(description="A relevant emoji for the activity")


class DayPlan(CamelModel):
    day_title: str = Field(description="Theme of the day (e.g., 'Historical Walk')")
    activities: List[Activity] = Field(description="Activities in chronological order")


class Itinerary(CamelModel):
    """Structured multi-day travel plan produced by the generative model."""

    destination: str = Field(description="The name of the city/location")
    coordinates: Coordinates
    summary: str = Field(description="A brief 2-sentence summary of the trip vibe.")
    days: List[DayPlan] = Field(min_length=1)


class Weather(CamelModel):
    """Current conditions at the destination."""

    temperature: float = Field(description="Air temperature at 2m, degrees Celsius")
    weather_code: int = Field(description="WMO weather interpretation code")
    wind_speed: float = Field(description="Wind speed at 10m, km/h")

    @property
    def temperature_label(self) -> str:
        return f"{self.temperature:g}°C"

    @property
    def wind_label(self) -> str:
        return f"{self.wind_speed:g} km/h"

    @property
    def condition(self) -> str:
        return WMO_CONDITIONS.get(self.weather_code, "Unknown")


class Session(CamelModel):
    """A persisted prompt/itinerary/weather record attributed to one owner."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    prompt: str
    response: Itinerary
    weather: Optional[Weather] = None
    created_at: datetime

    @field_serializer("created_at")
    def _serialize_created_at(self, value: datetime) -> str:
        return format_timestamp(value)


__all__ = [
    "Activity",
    "CamelModel",
    "Coordinates",
    "DayPlan",
    "GenerationRequest",
    "Itinerary",
    "Principal",
    "Session",
    "WMO_CONDITIONS",
    "Weather",
    "format_timestamp",
    "utc_now",
]
