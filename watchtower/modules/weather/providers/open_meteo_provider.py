from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from watchtower.config import AppConfig, LocationConfig
from watchtower.core.errors import SourceFetchError
from watchtower.core.types import (
    DayForecast,
    FetchParams,
    SourceId,
    WeatherConditions,
    WeatherReport,
)
from watchtower.infra.http.client import HttpClient

OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_GEOCODE_URL = "https://geocoding-api.open-meteo.com/v1/search"

CURRENT_FIELDS = (
    "temperature_2m,relative_humidity_2m,apparent_temperature,is_day,"
    "weather_code,wind_speed_10m,wind_direction_10m,uv_index,visibility"
)
DAILY_FIELDS = "weather_code,temperature_2m_max,temperature_2m_min,precipitation_sum"

COMPASS_POINTS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


def describe_weather_code(code: int, is_day: bool = True) -> Tuple[str, str]:
    """Map a WMO weather code to (icon, description)."""
    if code == 0:
        return ("☀️", "Clear sky") if is_day else ("🌙", "Clear night")
    if code == 1:
        return "🌤️", "Mainly clear"
    if code == 2:
        return "⛅", "Partly cloudy"
    if code == 3:
        return "☁️", "Overcast"
    if 45 <= code <= 48:
        return "🌫️", "Fog"
    if 51 <= code <= 57:
        return "🌦️", "Drizzle"
    if 61 <= code <= 67:
        return "🌧️", "Rain"
    if 71 <= code <= 77:
        return "❄️", "Snow"
    if 80 <= code <= 82:
        return "🌦️", "Rain showers"
    if code == 95:
        return "⛈️", "Thunderstorm"
    if 96 <= code <= 99:
        return "⛈️", "Thunderstorm with hail"
    return "🌡️", "Unknown"


def wind_direction(degrees: int) -> str:
    return COMPASS_POINTS[((degrees + 22) % 360) // 45]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OpenMeteoProvider:
    source_id = SourceId.WEATHER

    def __init__(
        self,
        config: AppConfig,
        client: HttpClient,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config
        self.client = client
        self.clock = clock

    async def fetch(self, params: FetchParams) -> WeatherReport:
        query = {
            "latitude": f"{params.latitude:.4f}",
            "longitude": f"{params.longitude:.4f}",
            "current": CURRENT_FIELDS,
            "daily": DAILY_FIELDS,
            "timezone": "auto",
            "forecast_days": "10",
        }
        try:
            payload = await self.client.get_json(OPEN_METEO_FORECAST_URL, params=query)
        except httpx.HTTPStatusError as exc:
            raise SourceFetchError(f"open-meteo HTTP {exc.response.status_code}") from exc
        if not isinstance(payload, dict):
            raise SourceFetchError("decoding weather: expected an object")
        return self.parse_report(payload, city=params.city)

    def parse_report(self, payload: Dict[str, Any], city: str) -> WeatherReport:
        current = payload.get("current") or {}
        is_day = int(current.get("is_day") or 0) == 1
        icon, description = describe_weather_code(int(current.get("weather_code") or 0), is_day)
        conditions = WeatherConditions(
            city=city,
            temp_c=float(current.get("temperature_2m") or 0),
            feels_like_c=float(current.get("apparent_temperature") or 0),
            humidity=int(current.get("relative_humidity_2m") or 0),
            wind_speed_kmh=float(current.get("wind_speed_10m") or 0),
            wind_dir_deg=int(current.get("wind_direction_10m") or 0),
            description=description,
            icon=icon,
            visibility_m=float(current.get("visibility") or 0),
            uv_index=float(current.get("uv_index") or 0),
            is_day=is_day,
            updated_at=self.clock(),
        )

        daily = payload.get("daily") or {}
        dates = daily.get("time") or []
        codes = daily.get("weather_code") or []
        max_temps = daily.get("temperature_2m_max") or []
        min_temps = daily.get("temperature_2m_min") or []
        rain = daily.get("precipitation_sum") or []
        forecast: List[DayForecast] = []
        for idx, raw_date in enumerate(dates):
            if idx >= len(codes) or idx >= len(max_temps) or idx >= len(min_temps):
                break
            try:
                date = datetime.strptime(str(raw_date), "%Y-%m-%d")
            except ValueError:
                continue
            day_icon, day_description = describe_weather_code(int(codes[idx] or 0), True)
            forecast.append(
                DayForecast(
                    date=date,
                    max_c=float(max_temps[idx] or 0),
                    min_c=float(min_temps[idx] or 0),
                    rain_mm=float(rain[idx] or 0) if idx < len(rain) else 0.0,
                    icon=day_icon,
                    description=day_description,
                )
            )
        return WeatherReport(conditions=conditions, forecast=forecast)


async def geocode(client: HttpClient, city: str, country: str) -> Optional[LocationConfig]:
    """Resolve coordinates for *city*; returns None when nothing matches."""
    payload = await client.get_json(
        OPEN_METEO_GEOCODE_URL,
        params={
            "name": city,
            "country": country,
            "count": "1",
            "language": "en",
            "format": "json",
        },
    )
    results = payload.get("results") if isinstance(payload, dict) else None
    if not results:
        return None
    first = results[0]
    return LocationConfig(
        city=str(first.get("name") or city),
        country=str(first.get("country_code") or country).upper(),
        latitude=float(first["latitude"]),
        longitude=float(first["longitude"]),
    )
