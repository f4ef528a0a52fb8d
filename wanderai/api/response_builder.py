from typing import Optional

from wanderai.api.schemas import ItineraryResponse, WeatherDisplay
from wanderai.core.orchestrator import PipelineSnapshot
from wanderai.core.schemas import Weather


def _weather_display(weather: Optional[Weather]) -> Optional[WeatherDisplay]:
    if weather is None:
        return None
    return WeatherDisplay(
        temperature=weather.temperature_label,
        wind_speed=weather.wind_label,
        condition=weather.condition,
    )


def _snapshot_to_response(snapshot: PipelineSnapshot) -> ItineraryResponse:
    return ItineraryResponse(
        status=snapshot.stage,
        view=snapshot.view,
        loading=snapshot.loading,
        request=snapshot.request,
        itinerary=snapshot.itinerary,
        weather=snapshot.weather,
        weather_display=_weather_display(snapshot.weather),
        error=snapshot.error,
        error_kind=snapshot.error_kind,
        session_id=snapshot.session.id if snapshot.session else None,
    )
