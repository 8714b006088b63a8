"""Factory helpers for choosing a weather data source at startup."""

from __future__ import annotations

from busplan import config
from busplan.data_sources.base import CallableWeatherDataSource, WeatherDataSource
from busplan.data_sources.open_meteo_client import (
    fetch_current_weather,
    fetch_daily_weather,
    fetch_hourly_temperatures,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/factory")


DEFAULT_SOURCE_NAME = "open_meteo"


def build_data_source(settings: config.Settings | None = None) -> WeatherDataSource:
    """Instantiate the configured weather data source."""
    settings = settings or config.settings
    source = (settings.weather_source or DEFAULT_SOURCE_NAME).lower()

    if source == "open_meteo":
        logger.info("Using Open-Meteo data source")
        return CallableWeatherDataSource(
            current=fetch_current_weather,
            hourly=fetch_hourly_temperatures,
            daily=fetch_daily_weather,
        )

    raise ValueError(f"Unknown weather source '{source}'")
