"""Combine a fixed base timetable with hourly temperatures into a day plan."""
from __future__ import annotations

import datetime as dt
from typing import List, Sequence

from busplan import config
from busplan.data_sources import HourlyWeatherPoint, WeatherDataSource
from busplan.temperature import attach_temperatures, fetch_hourly_points
from busplan.timetable import SCHEDULES, Route, Trip

# Pre-chosen trips around the end of class, listed route by route.
# Times are at each route's reference stop; the 13:06 boarding trips are the picks.
BASE_DAY_PLAN = (
    (Route.ROUTE_108, "12:52", False),
    (Route.ROUTE_108, "13:08", True),
    (Route.ROUTE_108, "13:22", False),
    (Route.ROUTE_108, "13:37", False),
    (Route.ROUTE_339, "12:41", False),
    (Route.ROUTE_339, "13:06", True),
    (Route.ROUTE_339, "13:21", False),
    (Route.ROUTE_339, "13:41", False),
)


def build_base_day_plan() -> List[Trip]:
    """Return the fixed cross-route subset of trips (not sorted)."""
    trips: List[Trip] = []
    for route, reference, recommended in BASE_DAY_PLAN:
        primary, secondary = SCHEDULES[route].stop_times(reference)
        trips.append(
            Trip(route=route, arrival_primary=primary, arrival_secondary=secondary, recommended=recommended)
        )
    return trips


def assemble_day_plan(trips: Sequence[Trip], points: Sequence[HourlyWeatherPoint]) -> List[Trip]:
    """Attach temperatures and sort ascending by boarding time."""
    with_weather = attach_temperatures(trips, points)
    # sorted() is stable, so same-minute trips keep their input order
    return sorted(with_weather, key=lambda trip: trip.boarding_minutes)


def build_day_plan_with_weather(
    day: dt.date,
    data_source: WeatherDataSource | None = None,
    settings: config.Settings | None = None,
) -> List[Trip]:
    """Build the base plan and decorate it with the hourly temperatures for ``day``."""
    points = fetch_hourly_points(day, data_source=data_source, settings=settings)
    return assemble_day_plan(build_base_day_plan(), points)
