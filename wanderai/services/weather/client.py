"""Best-effort current weather lookup against the public Open-Meteo API."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from wanderai.core.config import DEFAULT_WEATHER_URL, ApiSettings
from wanderai.core.schemas import Coordinates, Weather
from wanderai.services.weather.schemas import CURRENT_FIELDS, ForecastResponse

logger = logging.getLogger(__name__)


class WeatherClient:
    """Thin async wrapper around the keyless Open-Meteo forecast endpoint.

    Enrichment must never abort the pipeline, so :meth:`fetch_weather`
    swallows every failure and returns ``None`` after logging it.
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_WEATHER_URL,
        timeout_s: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url
        self._client = client or httpx.AsyncClient(
            headers={"accept": "application/json"},
            timeout=httpx.Timeout(timeout_s, connect=5.0),
        )

    async def aclose(self) -> None:
        """Close the underlying HTTPX client."""

        await self._client.aclose()

    async def __aenter__(self) -> "WeatherClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self._client.aclose()

    async def fetch_weather(self, coordinates: Coordinates) -> Optional[Weather]:
        """Return current conditions at ``coordinates`` or ``None`` on any failure."""

        params: Dict[str, Any] = {
            "latitude": coordinates.lat,
            "longitude": coordinates.lng,
            "current": CURRENT_FIELDS,
        }
        try:
            response = await self._client.get(self.base_url, params=params)
            response.raise_for_status()
            payload = ForecastResponse.model_validate(response.json())
        except Exception as exc:
            logger.warning(f"Failed to fetch weather for {coordinates.lat},{coordinates.lng}: {exc}")
            return None

        current = payload.current
        weather = Weather(
            temperature=current.temperature_2m,
            weather_code=current.weather_code,
            wind_speed=current.wind_speed_10m,
        )
        logger.info(f"Weather at {coordinates.lat},{coordinates.lng}: {weather.temperature_label}, {weather.condition}")
        return weather


def create_weather_client(settings: ApiSettings) -> WeatherClient:
    """Instantiate the weather client using project settings."""

    return WeatherClient(base_url=settings.weather_base_url)
