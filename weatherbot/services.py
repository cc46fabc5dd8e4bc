"""
OpenWeatherMap gateway.

Usage:
    gateway = get_gateway()
    current = await gateway.current_weather("London")
    place = await gateway.geocode("London")
    samples = await gateway.forecast(place.lat, place.lon)
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import get_settings
from .errors import CityNotFoundError, UpstreamError
from .models import CurrentWeather, GeoLocation, WeatherSample

logger = logging.getLogger(__name__)


USER_AGENT = {"User-Agent": "WeatherBot-Webhook/1.0"}

CURRENT_WEATHER_PATH = "/data/2.5/weather"
GEOCODE_PATH = "/geo/1.0/direct"
FORECAST_PATH = "/data/2.5/forecast"


class OpenWeatherGateway:
    """Async client for the OpenWeatherMap current, geocoding and 5-day/3-hour endpoints."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.openweathermap.org",
        timeout: float = 8.0,
    ):
        """
        Args:
            api_key: OpenWeatherMap `appid`
            base_url: API root, without trailing slash
            timeout: per-request timeout in seconds
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def _get(self, path: str, params: Dict[str, Any], city: Optional[str] = None) -> Any:
        """GET a provider endpoint; a 404 on a city lookup becomes CityNotFoundError."""
        url = f"{self.base_url}{path}"
        params = dict(params)
        if self.api_key:
            params["appid"] = self.api_key

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                r = await client.get(url, params=params, headers=USER_AGENT)
                r.raise_for_status()
                return r.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404 and city is not None:
                raise CityNotFoundError(city)
            logger.error(f"OpenWeather HTTP error {e.response.status_code}: {path}")
            raise UpstreamError(f"Weather provider error: HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"OpenWeather request failed: {path}: {e!r}")
            raise UpstreamError(f"Weather provider error: {e}")
        except ValueError as e:
            logger.error(f"OpenWeather returned invalid JSON: {path}")
            raise UpstreamError(f"Weather provider returned invalid JSON: {e}")

    async def current_weather(self, city: str) -> CurrentWeather:
        data = await self._get(CURRENT_WEATHER_PATH, {"q": city, "units": "metric"}, city=city)
        try:
            return CurrentWeather(
                city=data["name"],
                country=(data.get("sys") or {}).get("country", ""),
                sample=WeatherSample.from_openweather(data),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise UpstreamError(f"Malformed current weather payload: {e}")

    async def geocode(self, city: str) -> GeoLocation:
        """Resolve a city name to coordinates (best match only)."""
        data = await self._get(GEOCODE_PATH, {"q": city, "limit": 1}, city=city)
        if not data:
            raise CityNotFoundError(city)
        try:
            first = data[0]
            return GeoLocation(
                lat=first["lat"],
                lon=first["lon"],
                name=first.get("name") or city,
                country=first.get("country") or "",
            )
        except (KeyError, TypeError, ValueError, AttributeError, IndexError) as e:
            raise UpstreamError(f"Malformed geocoding payload: {e}")

    async def forecast(self, lat: float, lon: float) -> List[WeatherSample]:
        """Up to 5 days of 3-hour forecast slots, in provider order."""
        data = await self._get(FORECAST_PATH, {"lat": lat, "lon": lon, "units": "metric"})
        try:
            return [WeatherSample.from_openweather(item) for item in (data.get("list") or [])]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise UpstreamError(f"Malformed forecast payload: {e}")


# Singleton instance
_gateway: Optional[OpenWeatherGateway] = None


def get_gateway() -> OpenWeatherGateway:
    """Get or create the gateway singleton from settings."""
    global _gateway
    if _gateway is None:
        settings = get_settings()
        _gateway = OpenWeatherGateway(
            api_key=settings.openweather_api_key,
            base_url=settings.openweather_base_url,
            timeout=settings.http_timeout,
        )
    return _gateway
