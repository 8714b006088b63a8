"""Interfaces and helpers for weather data sources."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Callable, List, Protocol

from busplan.data_sources.open_meteo_client import CurrentWeather, DailyWeather, HourlyWeatherPoint


class WeatherDataSource(Protocol):
    """Interface for anything that can provide current, hourly and daily weather."""

    def fetch_current_weather(
        self,
        latitude: float,
        longitude: float,
        *,
        timezone: str = "Europe/London",
    ) -> CurrentWeather:
        """Return the current temperature and weather code."""
        ...

    def fetch_hourly_temperatures(
        self,
        latitude: float,
        longitude: float,
        day: dt.date,
        *,
        timezone: str = "Europe/London",
    ) -> List[HourlyWeatherPoint]:
        """Return the hourly temperature series for ``day``."""
        ...

    def fetch_daily_weather(
        self,
        latitude: float,
        longitude: float,
        *,
        past_days: int = 30,
        timezone: str = "Europe/London",
    ) -> List[DailyWeather]:
        """Return one record per past day."""
        ...


@dataclass
class CallableWeatherDataSource(WeatherDataSource):
    """Wrap three callables so they can be swapped for different backends."""

    current: Callable[..., CurrentWeather]
    hourly: Callable[..., List[HourlyWeatherPoint]]
    daily: Callable[..., List[DailyWeather]]

    def fetch_current_weather(self, *args, **kwargs) -> CurrentWeather:
        """Delegate to the configured current-weather callable."""
        return self.current(*args, **kwargs)

    def fetch_hourly_temperatures(self, *args, **kwargs) -> List[HourlyWeatherPoint]:
        """Delegate to the configured hourly-temperature callable."""
        return self.hourly(*args, **kwargs)

    def fetch_daily_weather(self, *args, **kwargs) -> List[DailyWeather]:
        """Delegate to the configured daily-weather callable."""
        return self.daily(*args, **kwargs)
