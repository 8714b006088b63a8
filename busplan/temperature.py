"""Attach the nearest-hour temperature to each trip for a given date."""
from __future__ import annotations

import datetime as dt
from dataclasses import replace
from typing import List, Sequence

from busplan import config
from busplan.data_sources import HourlyWeatherPoint, WeatherDataSource, build_data_source
from busplan.errors import NoWeatherDataError
from busplan.timetable import Trip
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="temperature")


def match_temperature(boarding_minutes: int, points: Sequence[HourlyWeatherPoint]) -> float:
    """Return the temperature of the point closest to ``boarding_minutes``.

    On an exact tie the earliest point in ``points`` wins.
    """
    if not points:
        raise NoWeatherDataError("No hourly weather points to match against")

    best = points[0]
    best_diff = abs(boarding_minutes - best.time_of_day)
    for point in points[1:]:
        diff = abs(boarding_minutes - point.time_of_day)
        if diff < best_diff:
            best, best_diff = point, diff
    return best.temperature_c


def attach_temperatures(trips: Sequence[Trip], points: Sequence[HourlyWeatherPoint]) -> List[Trip]:
    """Return copies of ``trips`` with ``temperature_c`` set from ``points``."""
    if not points:
        raise NoWeatherDataError("No hourly weather points to attach")
    return [
        replace(trip, temperature_c=match_temperature(trip.boarding_minutes, points))
        for trip in trips
    ]


def fetch_hourly_points(
    day: dt.date,
    data_source: WeatherDataSource | None = None,
    settings: config.Settings | None = None,
) -> List[HourlyWeatherPoint]:
    """Fetch the hourly temperature series for ``day`` from the configured source."""
    settings = settings or config.settings
    ds = data_source or build_data_source(settings)
    points = ds.fetch_hourly_temperatures(settings.latitude, settings.longitude, day, timezone=settings.timezone)
    logger.debug("Fetched hourly temperatures", extra={"date": day.isoformat(), "points": len(points)})
    return points


def attach_weather_to_trips(
    trips: Sequence[Trip],
    day: dt.date,
    data_source: WeatherDataSource | None = None,
    settings: config.Settings | None = None,
) -> List[Trip]:
    """Fetch hourly temperatures for ``day`` and attach them to ``trips``."""
    points = fetch_hourly_points(day, data_source=data_source, settings=settings)
    return attach_temperatures(trips, points)
