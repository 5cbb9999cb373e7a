"""
Weather gateway: async HTTP client for OpenWeatherMap. Input: a validated WeatherQuery.
Uses /weather for current conditions and /forecast (5 day / 3 hour samples) for the daily forecast.
One request per call, no retries; upstream failures surface as typed ToolErrors.
"""
import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from tools.base import Forecast, ForecastDay, WeatherQuery, WeatherReport, round_half_up
from tools.errors import NotFoundError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)

OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"
CURRENT_RESOURCE = "weather"
FORECAST_RESOURCE = "forecast"
MAX_FORECAST_DAYS = 5
DATE_LABEL_FORMAT = "%a %b %d %Y"


def group_forecast(samples: list[dict], limit: int = MAX_FORECAST_DAYS) -> list[ForecastDay]:
    """
    Bucket 3-hour samples by calendar date (host-local time), keeping first-seen date order.
    Each bucket keeps every temperature, plus description, humidity and wind of the sample that opened it.
    """
    buckets: dict[Any, dict] = {}
    for sample in samples:
        day = datetime.fromtimestamp(sample["dt"]).date()
        bucket = buckets.get(day)
        if bucket is None:
            bucket = buckets[day] = {
                "label": day.strftime(DATE_LABEL_FORMAT),
                "temps": [],
                "description": sample["weather"][0]["description"],
                "humidity": sample["main"]["humidity"],
                "wind_speed": sample["wind"]["speed"],
            }
        bucket["temps"].append(sample["main"]["temp"])

    days = []
    for bucket in list(buckets.values())[:limit]:
        days.append(
            ForecastDay(
                date_label=bucket["label"],
                min_temperature=round_half_up(min(bucket["temps"])),
                max_temperature=round_half_up(max(bucket["temps"])),
                description=bucket["description"],
                humidity=bucket["humidity"],
                wind_speed=bucket["wind_speed"],
            )
        )
    return days


class WeatherGateway:
    """Turns a WeatherQuery into one upstream GET and maps the JSON into a report."""

    def __init__(
        self,
        api_key: str,
        base_url: str = OPENWEATHER_BASE_URL,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._client_kwargs: dict[str, Any] = {}
        if timeout is not None:
            self._client_kwargs["timeout"] = timeout
        if transport is not None:
            self._client_kwargs["transport"] = transport

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "WeatherGateway":
        return cls(
            api_key=settings.openweather_api_key,
            base_url=settings.openweather_base_url,
            timeout=settings.upstream_timeout,
            transport=transport,
        )

    async def get_current_weather(self, query: WeatherQuery) -> WeatherReport:
        data = await self._fetch(CURRENT_RESOURCE, query)
        try:
            return WeatherReport(
                location_name=data["name"],
                temperature=round_half_up(data["main"]["temp"]),
                feels_like=round_half_up(data["main"]["feels_like"]),
                description=data["weather"][0]["description"],
                humidity=data["main"]["humidity"],
                wind_speed=data["wind"]["speed"],
                units=query.units,
            )
        except (KeyError, IndexError, TypeError) as e:
            logger.warning("Weather API %s unexpected payload: %r", CURRENT_RESOURCE, e)
            raise UpstreamError("Weather API returned an unexpected response") from e

    async def get_weather_forecast(self, query: WeatherQuery) -> Forecast:
        data = await self._fetch(FORECAST_RESOURCE, query)
        try:
            return Forecast(
                location_name=data["city"]["name"],
                days=tuple(group_forecast(data["list"])),
                units=query.units,
            )
        except (KeyError, IndexError, TypeError) as e:
            logger.warning("Weather API %s unexpected payload: %r", FORECAST_RESOURCE, e)
            raise UpstreamError("Weather API returned an unexpected response") from e

    async def _fetch(self, resource: str, query: WeatherQuery) -> dict:
        """GET one resource. Raises ValidationError, NotFoundError or UpstreamError."""
        if not query.location:
            raise ValidationError("Location is required")

        url = f"{self._base_url}/{resource}"
        params = {"q": query.location, "appid": self._api_key, "units": query.units.api_value}
        try:
            async with httpx.AsyncClient(**self._client_kwargs) as client:
                r = await client.get(url, params=params)
        except httpx.RequestError as e:
            logger.warning("Weather API %s request error: %s", resource, e)
            raise UpstreamError(f"Weather API request failed: {e}") from e

        if r.status_code == 404:
            raise NotFoundError(f'Location "{query.location}" not found')
        if not r.is_success:
            logger.warning("Weather API %s error: %s %s", resource, r.status_code, r.reason_phrase)
            raise UpstreamError(f"Weather API error: {r.status_code} {r.reason_phrase}", status=r.status_code)

        try:
            return r.json()
        except ValueError as e:
            logger.warning("Weather API %s returned non-JSON body", resource)
            raise UpstreamError("Weather API returned an invalid response", status=r.status_code) from e
