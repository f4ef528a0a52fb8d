from typing import Optional

from pydantic import Field

from wanderai.core.errors import GenerationErrorKind
from wanderai.core.orchestrator import PipelineStage, ViewState
from wanderai.core.schemas import CamelModel, GenerationRequest, Itinerary, Weather
from wanderai.core.types import NonEmptyStr


class ItineraryRequest(GenerationRequest):
    """Request payload used to start a new itinerary run."""


class SignInRequest(CamelModel):
    email: NonEmptyStr
    password: str


class SignUpRequest(CamelModel):
    email: NonEmptyStr
    password: str = Field(description="At least 6 characters")
    display_name: NonEmptyStr


class WeatherDisplay(CamelModel):
    """Pre-formatted values for the weather widget."""

    temperature: str = Field(description="e.g. 22°C")
    wind_speed: str = Field(description="e.g. 10 km/h")
    condition: str = Field(description="Human readable WMO condition")


class ItineraryResponse(CamelModel):
    """Snapshot of the pipeline returned by the itinerary endpoints."""

    status: PipelineStage = Field(..., description="Current pipeline stage")
    view: ViewState = Field(default=ViewState.DASHBOARD, description="Surface the front end should show")
    loading: bool = Field(default=False, description="True while a run is in flight")
    request: Optional[GenerationRequest] = Field(default=None, description="Submission of the current run")
    itinerary: Optional[Itinerary] = Field(default=None, description="Generated itinerary")
    weather: Optional[Weather] = Field(default=None, description="Current weather at the destination")
    weather_display: Optional[WeatherDisplay] = Field(default=None, description="Formatted weather values")
    error: Optional[str] = Field(default=None, description="User-facing error message")
    error_kind: Optional[GenerationErrorKind] = Field(default=None, description="Generation failure kind")
    session_id: Optional[str] = Field(default=None, description="History entry created by the run")
