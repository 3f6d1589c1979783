from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .config import settings

KELVIN_OFFSET = 273.15


class WeatherClientError(Exception):
    pass


@dataclass
class Weather:
    city: str
    description: Optional[str]
    temperature_celsius: float


def kelvin_to_celsius(kelvin: float) -> float:
    return round(kelvin - KELVIN_OFFSET, 2)


def _parse_weather(city: str, data: Dict[str, Any]) -> Weather:
    try:
        temp = (data.get("main") or {}).get("temp")
        if temp is None:
            raise WeatherClientError(f"Weather API response for '{city}' has no main.temp")

        # an empty condition list is passed through as None
        conditions = data.get("weather") or []
        description = conditions[0].get("description") if conditions else None
        temperature = kelvin_to_celsius(float(temp))
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise WeatherClientError(f"Unexpected weather API response for '{city}': {e!r}") from e

    return Weather(
        city=city,
        description=description,
        temperature_celsius=temperature,
    )


async def fetch_weather(city: str, api_key: str, client: Optional[httpx.AsyncClient] = None) -> Weather:
    """Fetch current conditions for ``city`` with a single request.

    Temperatures come back from the provider in Kelvin and are converted
    to Celsius here. Any failure is raised as ``WeatherClientError``.
    """
    if not api_key:
        raise WeatherClientError("OpenWeatherMap API key is not configured")

    params = {"q": city, "appid": api_key}

    async def _fetch(c: httpx.AsyncClient) -> httpx.Response:
        return await c.get(settings.openweather_url, params=params, timeout=settings.weather_timeout)

    if client is None:
        async with httpx.AsyncClient() as local_client:
            try:
                resp = await _fetch(local_client)
            except httpx.RequestError as e:
                raise WeatherClientError(f"Network error while fetching weather for '{city}': {e}") from e
    else:
        try:
            resp = await _fetch(client)
        except httpx.RequestError as e:
            raise WeatherClientError(f"Network error while fetching weather for '{city}': {e}") from e

    if not resp.is_success:
        raise WeatherClientError(f"Weather API returned {resp.status_code}: {resp.text}")

    try:
        data = resp.json()
    except ValueError as e:
        raise WeatherClientError(f"Weather API returned invalid JSON for '{city}'") from e

    return _parse_weather(city, data)


def format_weather_message(weather: Weather) -> str:
    return (
        f"Weather in {weather.city}:\n"
        f"{weather.description}\n"
        f"Temperature: {weather.temperature_celsius:.2f}°C"
    )
