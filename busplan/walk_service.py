"""Current walking time and walk history derived from live weather."""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import List

from busplan import config
from busplan.data_sources import WeatherDataSource, build_data_source
from busplan.errors import NoWeatherDataError
from busplan.walk_model import WalkEstimate, WeatherCondition, condition_from_code, estimate_walking_time
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="walk_service")


@dataclass(frozen=True)
class WeatherSample:
    """Ambient conditions "now" and the walk they imply."""
    temperature_c: float
    condition: WeatherCondition
    estimate: WalkEstimate

    def to_payload(self) -> dict:
        return {
            "temperatureC": self.temperature_c,
            "condition": self.condition.value,
            **_estimate_fields(self.estimate),
        }


@dataclass(frozen=True)
class DailyWalkRecord:
    """Walk estimate for one past (or the current) day."""
    date: dt.date
    avg_temperature_c: float
    condition: WeatherCondition
    estimate: WalkEstimate

    def to_payload(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "avgTemperatureC": self.avg_temperature_c,
            "condition": self.condition.value,
            **_estimate_fields(self.estimate),
        }


@dataclass(frozen=True)
class WalkHistory:
    """Daily walk records, oldest first."""
    items: List[DailyWalkRecord]

    @property
    def days(self) -> int:
        return len(self.items)

    def to_payload(self) -> dict:
        return {"days": self.days, "items": [item.to_payload() for item in self.items]}


def _estimate_fields(estimate: WalkEstimate) -> dict:
    return {
        "walkingTimeMinutes": estimate.walking_time_minutes,
        "walkingTimeSeconds": estimate.walking_time_seconds,
        "weatherIndex": estimate.weather_index,
        "tempBucketIndex": estimate.temp_bucket_index,
        "segmentIndex": estimate.segment_index,
    }


def get_current_walk(
    data_source: WeatherDataSource | None = None,
    settings: config.Settings | None = None,
) -> WeatherSample:
    """Fetch current weather and convert it into a walking-time sample."""
    settings = settings or config.settings
    ds = data_source or build_data_source(settings)

    current = ds.fetch_current_weather(settings.latitude, settings.longitude, timezone=settings.timezone)
    condition = condition_from_code(current.weather_code)
    sample = WeatherSample(
        temperature_c=current.temperature_c,
        condition=condition,
        estimate=estimate_walking_time(current.temperature_c, condition),
    )
    logger.debug(
        "Computed current walk",
        extra={
            "observed_at": current.time,
            "temperature_c": sample.temperature_c,
            "condition": condition.value,
            "walking_seconds": sample.estimate.walking_time_seconds,
        },
    )
    return sample


def get_walk_history(
    days: int | None = None,
    data_source: WeatherDataSource | None = None,
    settings: config.Settings | None = None,
) -> WalkHistory:
    """Fetch the last ``days`` days of daily weather and model the walk for each."""
    settings = settings or config.settings
    ds = data_source or build_data_source(settings)
    days = settings.history_days if days is None else days

    daily = ds.fetch_daily_weather(
        settings.latitude, settings.longitude, past_days=days, timezone=settings.timezone
    )
    if not daily:
        raise NoWeatherDataError(f"No daily weather returned for the last {days} days")

    items: List[DailyWalkRecord] = []
    for record in daily:
        condition = condition_from_code(record.weather_code)
        items.append(
            DailyWalkRecord(
                date=record.date,
                avg_temperature_c=record.avg_temperature_c,
                condition=condition,
                estimate=estimate_walking_time(record.avg_temperature_c, condition),
            )
        )
    return WalkHistory(items=items)
