from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from ...domain.errors import UpstreamServiceError
from ...domain.regions import climate_zone, resolve_region
from ...domain.weather import agricultural_advice, round_half_up, weather_condition
from ...infra.config import AppConfig, get_config
from ...observability.logging_utils import log_warning
from ...observability.otel import record_exception, start_span
from ...prompts.messages import WEATHER_FAILED, message, normalize_language
from ...schemas.models import RegionInfo, WeatherReport, WeatherRequest, WeatherResponse

CURRENT_FIELDS = (
    "temperature_2m,relative_humidity_2m,apparent_temperature,"
    "weather_code,wind_speed_10m"
)
DAILY_FIELDS = "precipitation_probability_max"


def build_weather_params(lat: float, lon: float, tz: str) -> Dict[str, Any]:
    return {
        "latitude": lat,
        "longitude": lon,
        "current": CURRENT_FIELDS,
        "daily": DAILY_FIELDS,
        "timezone": tz,
    }


def _fetch_forecast(
    client: httpx.Client, cfg: AppConfig, lat: float, lon: float, language: str
) -> Dict[str, Any]:
    with start_span("weather.fetch", {"weather.lat": lat, "weather.lon": lon}) as span:
        try:
            response = client.get(
                cfg.weather_api_url,
                params=build_weather_params(lat, lon, cfg.weather_timezone),
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            record_exception(span, exc)
            log_warning(
                "weather_fetch_failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise UpstreamServiceError(message(WEATHER_FAILED, language)) from exc
    if not isinstance(data, dict) or not isinstance(data.get("current"), dict):
        log_warning("weather_fetch_failed", error="missing current conditions")
        raise UpstreamServiceError(message(WEATHER_FAILED, language))
    return data


def _first_number(values: Any) -> float:
    if isinstance(values, list) and values and values[0] is not None:
        return float(values[0])
    return 0.0


def _number(value: Optional[float]) -> float:
    return float(value) if value is not None else 0.0


def get_weather(
    payload: WeatherRequest,
    *,
    client: httpx.Client,
    config: Optional[AppConfig] = None,
) -> WeatherResponse:
    cfg = config or get_config()
    language = normalize_language(payload.language)
    match = resolve_region(
        payload.latitude, payload.longitude, payload.region, default=cfg.default_region
    )
    region = match.region
    from_gps = payload.latitude is not None and payload.longitude is not None
    lat = payload.latitude if from_gps else region.lat
    lon = payload.longitude if from_gps else region.lon
    zone = climate_zone(lat, lon, payload.altitude)

    data = _fetch_forecast(client, cfg, lat, lon, language)
    current = data["current"]
    temp = _number(current.get("temperature_2m"))
    humidity = _number(current.get("relative_humidity_2m"))
    rain_probability = _first_number((data.get("daily") or {}).get(DAILY_FIELDS))
    condition = weather_condition(current.get("weather_code"))

    report = WeatherReport(
        temp=round_half_up(temp),
        feels_like=round_half_up(_number(current.get("apparent_temperature"))),
        humidity=humidity,
        wind_speed=round_half_up(_number(current.get("wind_speed_10m"))),
        description=condition.describe(language),
        icon=condition.icon,
        location=f"{region.city}, {region.name}",
        rain_probability=rain_probability,
        agricultural_advice=agricultural_advice(temp, humidity, rain_probability, language),
    )
    location = RegionInfo(
        region=region.id,
        regionName=region.name,
        nearestCity=region.city,
        distanceToCity=(
            round_half_up(match.distance_km) if match.distance_km is not None else None
        ),
        climateZone=zone.zone,
        climateCharacteristics=list(zone.characteristics),
        latitude=lat,
        longitude=lon,
        altitude=payload.altitude,
        source="gps" if from_gps else "region",
    )
    return WeatherResponse(
        weather=report, location=location, updated_at=datetime.now(timezone.utc)
    )
