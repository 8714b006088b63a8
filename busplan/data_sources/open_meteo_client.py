"""Helpers for fetching current, hourly and daily weather from the Open-Meteo API."""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import List, Optional

import requests
from retry_requests import retry

from busplan.config import settings
from busplan.errors import UpstreamFetchError
from busplan.timecodec import to_minutes
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="open_meteo_client")

OPEN_METEO_WEATHER_URL = settings.weather_base_url

session = retry(requests.Session(), retries=settings.weather_retries, backoff_factor=0.2)


@dataclass(frozen=True)
class CurrentWeather:
    """Current temperature and WMO weather code."""
    temperature_c: float
    weather_code: Optional[int]
    time: Optional[str] = None


@dataclass(frozen=True)
class HourlyWeatherPoint:
    """Temperature at one time of day (minutes since midnight)."""
    time_of_day: int
    temperature_c: float


@dataclass(frozen=True)
class DailyWeather:
    """Daily mean temperature and dominant weather code for one date."""
    date: dt.date
    avg_temperature_c: float
    weather_code: Optional[int]


def _get_json(params: dict, *, context: str, timeout: float | None = None) -> dict:
    """GET the forecast endpoint and return the decoded body, or raise UpstreamFetchError."""
    timeout = settings.weather_timeout_seconds if timeout is None else timeout
    try:
        resp = session.get(OPEN_METEO_WEATHER_URL, params=params, timeout=timeout)
        resp.raise_for_status()
        return resp.json()
    except requests.RequestException as exc:
        logger.warning("Open-Meteo request failed", extra={"context": context, "error": str(exc)})
        raise UpstreamFetchError(f"Open-Meteo {context} request failed: {exc}") from exc
    except ValueError as exc:
        raise UpstreamFetchError(f"Open-Meteo {context} returned invalid JSON") from exc


def fetch_current_weather(
    latitude: float,
    longitude: float,
    *,
    timezone: str = "Europe/London",
) -> CurrentWeather:
    """Fetch the current temperature (°C) and weather code."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "current_weather": "true",
        "timezone": timezone,
    }
    data = _get_json(params, context="current_weather")

    try:
        cw = data["current_weather"]
        temperature = float(cw["temperature"])
        code = cw.get("weathercode")
    except (KeyError, TypeError, ValueError) as exc:
        raise UpstreamFetchError("Malformed Open-Meteo current_weather payload") from exc

    return CurrentWeather(
        temperature_c=temperature,
        weather_code=int(code) if code is not None else None,
        time=cw.get("time"),
    )


def fetch_hourly_temperatures(
    latitude: float,
    longitude: float,
    day: dt.date,
    *,
    timezone: str = "Europe/London",
) -> List[HourlyWeatherPoint]:
    """Fetch the hourly temperature series for a single calendar date."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "hourly": "temperature_2m",
        "timezone": timezone,
        "start_date": day.isoformat(),
        "end_date": day.isoformat(),
    }
    data = _get_json(params, context="hourly")

    try:
        hourly = data["hourly"]
        times = hourly["time"]
        temps = hourly["temperature_2m"]
    except (KeyError, TypeError) as exc:
        raise UpstreamFetchError("Malformed Open-Meteo hourly payload") from exc

    out: List[HourlyWeatherPoint] = []
    for iso, temp in zip(times, temps):
        if temp is None:
            logger.debug("Skipping hour without temperature", extra={"time": iso})
            continue
        # "2025-12-03T13:00" -> "13:00"
        hhmm = str(iso).split("T")[-1][:5]
        out.append(HourlyWeatherPoint(time_of_day=to_minutes(hhmm), temperature_c=float(temp)))
    out.sort(key=lambda p: p.time_of_day)
    return out


def fetch_daily_weather(
    latitude: float,
    longitude: float,
    *,
    past_days: int = 30,
    timezone: str = "Europe/London",
) -> List[DailyWeather]:
    """Fetch mean temperature and weather code for the last ``past_days`` days."""
    if past_days <= 0:
        raise ValueError("past_days must be positive")

    params = {
        "latitude": latitude,
        "longitude": longitude,
        "daily": "temperature_2m_mean,weathercode",
        "timezone": timezone,
        "past_days": past_days,
        "forecast_days": 0,
    }
    data = _get_json(params, context="daily")

    try:
        daily = data["daily"]
        times = daily["time"]
        temps = daily["temperature_2m_mean"]
        codes = daily.get("weathercode", [None] * len(times))
    except (KeyError, TypeError) as exc:
        raise UpstreamFetchError("Malformed Open-Meteo daily payload") from exc

    out: List[DailyWeather] = []
    for day, temp, code in zip(times, temps, codes):
        if temp is None:
            logger.warning("Skipping day without mean temperature", extra={"date": day})
            continue
        out.append(
            DailyWeather(
                date=dt.date.fromisoformat(day),
                avg_temperature_c=float(temp),
                weather_code=int(code) if code is not None else None,
            )
        )
    return out
