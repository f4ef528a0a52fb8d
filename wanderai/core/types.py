"""Shared type aliases used across the itinerary models."""
from __future__ import annotations

from typing import Annotated

from pydantic import Field, StringConstraints

Lat = Annotated[float, Field(ge=-90, le=90)]
Lon = Annotated[float, Field(ge=-180, le=180)]
TripDays = Annotated[int, Field(ge=1, le=14)]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
