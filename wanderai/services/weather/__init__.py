"""Open-Meteo weather enrichment.

Public API:
    - WeatherClient: Async client returning current conditions or ``None``
    - create_weather_client: Factory building the client from settings
"""
from wanderai.services.weather.client import WeatherClient, create_weather_client

__all__ = [
    "WeatherClient",
    "create_weather_client",
]
