"""Deterministic weather-to-walking-time model.

Walking time to the boarding stop is modelled on a 24-step linear scale between
4 and 8 minutes. The step (``segment_index``) combines a coarse weather class
with a temperature bucket:

    segment_index = weather_index * 6 + temp_bucket_index      # 0..23
    walking_seconds = 240 + segment_index * 10                 # 240..480

Seconds are the authoritative unit; minutes are only rounded for display.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

BASE_WALK_SECONDS = 4 * 60
SECONDS_PER_SEGMENT = 10
TEMP_BUCKET_COUNT = 6

# Upper-inclusive bucket limits in °C; anything above the last one is bucket 5.
TEMP_BUCKET_LIMITS_C = (0.0, 5.0, 10.0, 20.0, 25.0)


class WeatherCondition(str, Enum):
    """Coarse weather classes derived from WMO weather codes."""
    CLEAR = "clear"
    CLOUDY = "cloudy"
    RAIN = "rain"
    SNOW = "snow"
    OTHER = "other"


# "other" (fog, thunderstorms, ...) is scored like cloudy.
_WEATHER_INDEX = {
    WeatherCondition.CLEAR: 0,
    WeatherCondition.CLOUDY: 1,
    WeatherCondition.RAIN: 2,
    WeatherCondition.SNOW: 3,
    WeatherCondition.OTHER: 1,
}

_RAIN_CODES = frozenset([*range(51, 58), *range(61, 68), 80, 81, 82])
_SNOW_CODES = frozenset([*range(71, 78), 85, 86])


@dataclass(frozen=True)
class WalkEstimate:
    """Classifier outputs and the resulting walking duration."""
    weather_index: int
    temp_bucket_index: int
    segment_index: int
    walking_time_seconds: int

    @property
    def walking_time_minutes(self) -> float:
        """Walking time in minutes, rounded to 2 decimals for display."""
        return round(self.walking_time_seconds / 60, 2)

    def whole_minutes(self) -> int:
        """Walking time rounded half-up to whole minutes (used for trip selection)."""
        return (self.walking_time_seconds + 30) // 60


def condition_from_code(code: Optional[int]) -> WeatherCondition:
    """Map an Open-Meteo/WMO ``weathercode`` onto a coarse condition."""
    if code is None:
        return WeatherCondition.OTHER
    try:
        code = int(code)
    except (TypeError, ValueError):
        return WeatherCondition.OTHER

    if code == 0:
        return WeatherCondition.CLEAR
    if code in (1, 2, 3):
        return WeatherCondition.CLOUDY
    if code in _RAIN_CODES:
        return WeatherCondition.RAIN
    if code in _SNOW_CODES:
        return WeatherCondition.SNOW
    return WeatherCondition.OTHER


def weather_index(condition: WeatherCondition | str) -> int:
    """Return 0..3 for clear/cloudy/rain/snow."""
    try:
        condition = WeatherCondition(condition)
    except ValueError:
        condition = WeatherCondition.OTHER
    return _WEATHER_INDEX[condition]


def temp_bucket_index(temperature_c: float) -> int:
    """Return the 0..5 temperature bucket for ``temperature_c``."""
    for idx, limit in enumerate(TEMP_BUCKET_LIMITS_C):
        if temperature_c <= limit:
            return idx
    return TEMP_BUCKET_COUNT - 1


def estimate_walking_time(temperature_c: float, condition: WeatherCondition | str) -> WalkEstimate:
    """Estimate the walk to the stop for the given temperature and condition."""
    w_idx = weather_index(condition)
    t_idx = temp_bucket_index(temperature_c)
    segment = w_idx * TEMP_BUCKET_COUNT + t_idx
    return WalkEstimate(
        weather_index=w_idx,
        temp_bucket_index=t_idx,
        segment_index=segment,
        walking_time_seconds=BASE_WALK_SECONDS + segment * SECONDS_PER_SEGMENT,
    )
