"""Weather data sources and the Open-Meteo client."""

from .base import CallableWeatherDataSource, WeatherDataSource
from .factory import build_data_source
from .open_meteo_client import (
    CurrentWeather,
    DailyWeather,
    HourlyWeatherPoint,
    fetch_current_weather,
    fetch_daily_weather,
    fetch_hourly_temperatures,
)

__all__ = [
    "build_data_source",
    "WeatherDataSource",
    "CallableWeatherDataSource",
    "CurrentWeather",
    "DailyWeather",
    "HourlyWeatherPoint",
    "fetch_current_weather",
    "fetch_daily_weather",
    "fetch_hourly_temperatures",
]
