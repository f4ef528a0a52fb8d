"""Open-Meteo response payloads."""
from __future__ import annotations

from pydantic import BaseModel, Field

CURRENT_FIELDS = "temperature_2m,weather_code,wind_speed_10m"


class CurrentConditions(BaseModel):
    temperature_2m: float = Field(description="Air temperature at 2m, degrees Celsius")
    weather_code: int = Field(description="WMO weather interpretation code")
    wind_speed_10m: float = Field(description="Wind speed at 10m, km/h")


class ForecastResponse(BaseModel):
    """Subset of the ``/v1/forecast`` body requested with ``current=...``."""

    latitude: float | None = None
    longitude: float | None = None
    current: CurrentConditions
