import datetime as dt
import unittest

from busplan.data_sources import CallableWeatherDataSource, HourlyWeatherPoint
from busplan.day_plan import assemble_day_plan, build_base_day_plan, build_day_plan_with_weather
from busplan.errors import NoWeatherDataError
from busplan.timecodec import from_minutes
from busplan.timetable import Route


def _hourly(*_args, **_kwargs):
    return [HourlyWeatherPoint(time_of_day=h * 60, temperature_c=float(h)) for h in range(24)]


class TestDayPlan(unittest.TestCase):
    def test_base_plan_is_route_by_route(self):
        trips = build_base_day_plan()
        routes = [t.route for t in trips]
        self.assertEqual(routes, sorted(routes, key=lambda r: r.value))
        times = [t.arrival_primary for t in trips]
        self.assertNotEqual(times, sorted(times))

    def test_base_plan_marks_1306_trip_per_route(self):
        trips = build_base_day_plan()
        for route in Route:
            picks = [t for t in trips if t.route is route and t.recommended]
            self.assertEqual(len(picks), 1)
            self.assertEqual(from_minutes(picks[0].arrival_primary), "13:06")

    def test_assemble_sorts_out_of_order_input(self):
        trips = list(reversed(build_base_day_plan()))
        out = assemble_day_plan(trips, _hourly())
        times = [t.arrival_primary for t in out]
        self.assertEqual(times, sorted(times))
        self.assertEqual(len(out), len(trips))
        self.assertTrue(all(t.temperature_c is not None for t in out))

    def test_assemble_requires_weather(self):
        with self.assertRaises(NoWeatherDataError):
            assemble_day_plan(build_base_day_plan(), [])

    def test_build_with_weather(self):
        ds = CallableWeatherDataSource(current=None, hourly=_hourly, daily=None)
        out = build_day_plan_with_weather(dt.date(2025, 12, 3), data_source=ds)
        first = out[0]
        self.assertEqual(from_minutes(first.arrival_primary), "12:41")
        self.assertEqual(first.route, Route.ROUTE_339)
        self.assertEqual(first.temperature_c, 13.0)


if __name__ == "__main__":
    unittest.main()
