"""Static timetables for routes 108 and 339 and the recommended-trip selection.

Each route has one hardcoded list of arrival times at a *reference stop*. The
time at the other stop is derived with a fixed offset. Riders always board at
London Aquatics Centre (the *primary* stop); Stratford City is the *secondary*
stop.

Selection targets ``class_end + walk_minutes``:
  1. the first trip boarding at or after the target;
  2. failing that, the first trip boarding at or after ``class_end``;
  3. failing that, nothing is recommended.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional, Sequence

from busplan.timecodec import from_minutes, to_minutes

DEFAULT_CLASS_END = "13:00"


class Route(str, Enum):
    """Bus routes served by the planner."""
    ROUTE_108 = "108"
    ROUTE_339 = "339"


class StopRole(str, Enum):
    """Which stop a hardcoded schedule refers to."""
    PRIMARY = "primary"      # London Aquatics Centre (boarding)
    SECONDARY = "secondary"  # Stratford City Bus Station


@dataclass(frozen=True)
class Trip:
    """One scheduled bus arrival; times are minutes since midnight."""
    route: Route
    arrival_primary: int
    arrival_secondary: int
    recommended: bool = False
    temperature_c: Optional[float] = None

    @property
    def boarding_minutes(self) -> int:
        return self.arrival_primary

    def to_payload(self) -> dict:
        """Serialize to the published/HTTP JSON shape."""
        payload = {
            "route": self.route.value,
            "arrival_primary": from_minutes(self.arrival_primary),
            "arrival_secondary": from_minutes(self.arrival_secondary),
            "recommended": self.recommended,
        }
        if self.temperature_c is not None:
            payload["temperatureC"] = self.temperature_c
        return payload


@dataclass(frozen=True)
class RouteSchedule:
    """Hardcoded reference-stop times plus the offset to the other stop."""
    route: Route
    reference_times: Sequence[str]
    reference_stop: StopRole
    offset_minutes: int

    def stop_times(self, reference: str) -> tuple[int, int]:
        """Return ``(primary, secondary)`` minutes for one reference time."""
        ref = to_minutes(reference)
        other = ref + self.offset_minutes
        if self.reference_stop is StopRole.PRIMARY:
            return ref, other
        return other, ref


# 108 arrival times at Stratford City; the bus reaches Aquatics 2 minutes earlier.
TIMES_108_AT_STRATFORD = (
    "00:02", "00:17", "00:32", "00:47",
    "01:02", "01:17", "01:32", "01:47",
    "06:22", "06:37", "06:52", "07:07", "07:22", "07:37", "07:52",
    "08:07", "08:22", "08:37", "08:52", "09:07", "09:22", "09:37", "09:52",
    "10:07", "10:22", "10:37", "10:52", "11:07", "11:22", "11:37", "11:52",
    "12:07", "12:22", "12:37", "12:52",
    "13:08",
    "13:22", "13:37", "13:52",
    "14:07", "14:22", "14:37", "14:52",
    "15:07", "15:22", "15:37", "15:52",
    "16:07", "16:22", "16:37", "16:52",
    "17:07", "17:22", "17:37", "17:52",
    "18:07", "18:22", "18:37", "18:52",
    "19:07", "19:22", "19:37", "19:52",
    "20:07", "20:22", "20:37", "20:52",
    "21:07", "21:22", "21:37", "21:52",
    "22:07", "22:22", "22:37", "22:52",
    "23:07", "23:22", "23:47",
)

# 339 arrival times at London Aquatics Centre; Stratford City is 2 minutes later.
TIMES_339_AT_AQUATICS = (
    "07:42", "08:01", "08:22", "09:02", "09:23", "09:43",
    "10:02", "10:21", "10:41", "11:01", "11:21",
    "12:01", "12:21", "12:41",
    "13:06",
    "13:21", "13:41",
    "14:01", "14:21", "14:41",
    "15:01", "15:21", "15:41",
    "16:01", "16:21", "16:41",
    "17:01", "17:21", "17:41",
    "18:01", "18:21", "18:41",
    "19:01", "19:21", "19:41",
    "20:01", "20:21", "20:41",
    "21:01", "21:21", "21:41",
    "22:01", "22:21", "22:39",
)

SCHEDULES = {
    Route.ROUTE_108: RouteSchedule(
        route=Route.ROUTE_108,
        reference_times=TIMES_108_AT_STRATFORD,
        reference_stop=StopRole.SECONDARY,
        offset_minutes=-2,
    ),
    Route.ROUTE_339: RouteSchedule(
        route=Route.ROUTE_339,
        reference_times=TIMES_339_AT_AQUATICS,
        reference_stop=StopRole.PRIMARY,
        offset_minutes=2,
    ),
}


def round_walk_minutes(walk_minutes: float) -> int:
    """Round a walking duration half-up to whole minutes."""
    if walk_minutes < 0:
        raise ValueError("walk_minutes must be non-negative")
    return int(math.floor(walk_minutes + 0.5))


def choose_recommended_index(
    trips: Sequence[Trip],
    walk_minutes: float,
    *,
    class_end: str = DEFAULT_CLASS_END,
    boarding_minutes: Callable[[Trip], int] = lambda trip: trip.boarding_minutes,
) -> Optional[int]:
    """Pick the index of the trip to recommend, or None when no service remains."""
    base = to_minutes(class_end)
    target = base + round_walk_minutes(walk_minutes)

    best_idx: Optional[int] = None
    best_diff: Optional[int] = None
    for idx, trip in enumerate(trips):
        diff = boarding_minutes(trip) - target
        if diff < 0:
            continue
        # strict "<" keeps the earliest trip on equal differences
        if best_diff is None or diff < best_diff:
            best_idx, best_diff = idx, diff

    if best_idx is not None:
        return best_idx

    # walk time pushed the target past the last reachable trip
    after_base = [
        (boarding_minutes(trip), idx)
        for idx, trip in enumerate(trips)
        if boarding_minutes(trip) >= base
    ]
    if after_base:
        return min(after_base)[1]
    return None


def build_timetable(
    schedule: RouteSchedule,
    walk_minutes: float = 0,
    *,
    class_end: str = DEFAULT_CLASS_END,
) -> List[Trip]:
    """Generate the full day's trips for ``schedule`` with one trip recommended."""
    trips: List[Trip] = []
    for reference in schedule.reference_times:
        primary, secondary = schedule.stop_times(reference)
        trips.append(
            Trip(
                route=schedule.route,
                arrival_primary=primary % (24 * 60),
                arrival_secondary=secondary % (24 * 60),
            )
        )
    trips.sort(key=lambda trip: trip.arrival_primary)

    idx = choose_recommended_index(trips, walk_minutes, class_end=class_end)
    if idx is not None:
        trips[idx] = replace(trips[idx], recommended=True)
    return trips


def build_timetable_for_route(
    route: Route | str,
    walk_minutes: float = 0,
    *,
    class_end: str = DEFAULT_CLASS_END,
) -> List[Trip]:
    """Generate the timetable for one of the hardcoded routes."""
    schedule = SCHEDULES[Route(route)]
    return build_timetable(schedule, walk_minutes, class_end=class_end)


def best_trip(trips: Sequence[Trip]) -> Optional[Trip]:
    """Return the recommended trip, if any."""
    return next((trip for trip in trips if trip.recommended), None)
