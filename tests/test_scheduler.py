import datetime as dt
import json
import threading
import time
import unittest

from busplan.config import Settings
from busplan.data_sources import CallableWeatherDataSource, CurrentWeather, DailyWeather
from busplan.distribution import InMemoryPublisher
from busplan.errors import PublishError, UpstreamFetchError
from busplan.scheduler import Artifact, PublicationCadence, PublicationScheduler


def _settings(**overrides) -> Settings:
    base = dict(mqtt_enabled=False, mqtt_qos=1, history_days=2, class_end="13:00")
    base.update(overrides)
    return Settings(**base)


def _current(temp=12.0, code=0):
    return lambda *a, **k: CurrentWeather(temperature_c=temp, weather_code=code)


def _daily(*_args, past_days=2, **_kwargs):
    return [
        DailyWeather(date=dt.date(2025, 12, 1) + dt.timedelta(days=i), avg_temperature_c=3.0, weather_code=3)
        for i in range(past_days)
    ]


def _failing(*_args, **_kwargs):
    raise UpstreamFetchError("provider down")


class TestRunCycle(unittest.TestCase):
    def setUp(self):
        self.settings = _settings()
        self.publisher = InMemoryPublisher()

    def _scheduler(self, current=None, daily=_daily, settings=None):
        ds = CallableWeatherDataSource(current=current or _current(), hourly=None, daily=daily)
        return PublicationScheduler(self.publisher, data_source=ds, settings=settings or self.settings)

    def test_current_walk_published_retained(self):
        result = self._scheduler().run_cycle(Artifact.CURRENT_WALK)

        self.assertTrue(result.ok)
        msg = self.publisher.retained(self.settings.topic_walk)
        self.assertIsNotNone(msg)
        self.assertTrue(msg.retain)
        self.assertEqual(msg.qos, 1)
        payload = json.loads(msg.payload)
        self.assertEqual(payload["walkingTimeSeconds"], 270)

    def test_timetable_publishes_full_list_and_best(self):
        result = self._scheduler(current=_current(temp=12.0, code=0)).run_cycle(Artifact.TIMETABLE_108)

        self.assertTrue(result.ok)
        full = json.loads(self.publisher.retained(self.settings.topic_timetable_108).payload)
        best = json.loads(self.publisher.retained(self.settings.topic_best_108).payload)
        self.assertEqual(len(full), 78)
        self.assertEqual([t for t in full if t["recommended"]], [best])
        # 12°C clear -> segment 3 -> 270s -> 5 whole minutes -> 13:05 target
        self.assertEqual(best["arrival_primary"], "13:06")
        self.assertEqual(best["arrival_secondary"], "13:08")
        self.assertIsNone(self.publisher.retained(self.settings.topic_timetable_339))

    def test_best_only_skipped_when_nothing_recommended(self):
        settings = _settings(class_end="23:59")
        scheduler = self._scheduler(settings=settings)
        self.publisher.publish(settings.topic_best_339, '{"previous": true}')

        result = scheduler.run_cycle(Artifact.TIMETABLE_339)

        self.assertTrue(result.ok)
        self.assertEqual(len(result.messages), 1)
        self.assertIsNotNone(self.publisher.retained(settings.topic_timetable_339))
        self.assertEqual(self.publisher.retained(settings.topic_best_339).payload, '{"previous": true}')

    def test_walk_history(self):
        self._scheduler().run_cycle(Artifact.WALK_HISTORY)
        payload = json.loads(self.publisher.retained(self.settings.topic_walk_history).payload)
        self.assertEqual(payload["days"], 2)
        self.assertEqual(payload["items"][0]["condition"], "cloudy")

    def test_failed_fetch_keeps_previous_retained_value(self):
        self._scheduler().run_cycle(Artifact.CURRENT_WALK)
        before = self.publisher.retained(self.settings.topic_walk)

        result = self._scheduler(current=_failing).run_cycle(Artifact.CURRENT_WALK)

        self.assertFalse(result.ok)
        self.assertIsInstance(result.error, UpstreamFetchError)
        self.assertEqual(self.publisher.retained(self.settings.topic_walk), before)
        self.assertEqual(len(self.publisher.messages(self.settings.topic_walk)), 1)

    def test_failure_in_timetable_publishes_nothing(self):
        result = self._scheduler(current=_failing).run_cycle(Artifact.TIMETABLE_339)
        self.assertFalse(result.ok)
        self.assertEqual(self.publisher.messages(), [])

    def test_unexpected_error_is_captured(self):
        def broken(*_a, **_k):
            raise RuntimeError("bug")

        scheduler = self._scheduler(daily=broken)
        result = scheduler.run_cycle(Artifact.WALK_HISTORY)
        self.assertFalse(result.ok)
        self.assertIs(scheduler.last_results[Artifact.WALK_HISTORY], result)

    def test_publish_error_does_not_raise(self):
        class RejectingPublisher(InMemoryPublisher):
            def publish(self, topic, payload, *, qos=1, retain=True):
                raise PublishError("no connection")

        ds = CallableWeatherDataSource(current=_current(), hourly=None, daily=_daily)
        scheduler = PublicationScheduler(RejectingPublisher(), data_source=ds, settings=self.settings)
        result = scheduler.run_cycle(Artifact.CURRENT_WALK)
        self.assertTrue(result.ok)

    def test_failed_full_timetable_publish_skips_best(self):
        class FailingTopicPublisher(InMemoryPublisher):
            def __init__(self, failing_topic):
                super().__init__()
                self.failing_topic = failing_topic

            def publish(self, topic, payload, *, qos=1, retain=True):
                if topic == self.failing_topic:
                    raise PublishError("no connection")
                super().publish(topic, payload, qos=qos, retain=retain)

        publisher = FailingTopicPublisher(self.settings.topic_timetable_108)
        ds = CallableWeatherDataSource(current=_current(), hourly=None, daily=_daily)
        scheduler = PublicationScheduler(publisher, data_source=ds, settings=self.settings)

        result = scheduler.run_cycle(Artifact.TIMETABLE_108)
        self.assertTrue(result.ok)
        self.assertIsNone(publisher.retained(self.settings.topic_timetable_108))
        self.assertIsNone(publisher.retained(self.settings.topic_best_108))
        self.assertEqual(publisher.messages(), [])


class TestStartStop(unittest.TestCase):
    def test_start_publishes_all_artifacts_once(self):
        settings = _settings()
        publisher = InMemoryPublisher()
        ds = CallableWeatherDataSource(current=_current(), hourly=None, daily=_daily)
        scheduler = PublicationScheduler(publisher, data_source=ds, settings=settings)

        scheduler.start()
        scheduler.stop(timeout=5)

        for topic in (
            settings.topic_walk,
            settings.topic_timetable_108,
            settings.topic_timetable_339,
            settings.topic_best_108,
            settings.topic_best_339,
            settings.topic_walk_history,
        ):
            with self.subTest(topic=topic):
                self.assertEqual(len(publisher.messages(topic)), 1)
        self.assertFalse(scheduler.running)

    def test_connect_callback_starts_scheduler(self):
        settings = _settings()
        publisher = InMemoryPublisher()
        ds = CallableWeatherDataSource(current=_current(), hourly=None, daily=_daily)
        scheduler = PublicationScheduler(publisher, data_source=ds, settings=settings)
        publisher.add_connect_callback(scheduler.start)

        publisher.connect()
        scheduler.stop(timeout=5)

        self.assertEqual(len(publisher.messages(settings.topic_walk_history)), 1)

    def test_slow_cadence_does_not_block_others(self):
        settings = _settings()
        publisher = InMemoryPublisher()
        release = threading.Event()
        walk_done = threading.Event()

        def slow_daily(*args, **kwargs):
            release.wait(5)
            return _daily(*args, **kwargs)

        class SignallingPublisher(InMemoryPublisher):
            def publish(self, topic, payload, *, qos=1, retain=True):
                super().publish(topic, payload, qos=qos, retain=retain)
                if topic == settings.topic_walk:
                    walk_done.set()

        publisher = SignallingPublisher()
        ds = CallableWeatherDataSource(current=_current(), hourly=None, daily=slow_daily)
        scheduler = PublicationScheduler(publisher, data_source=ds, settings=settings)

        scheduler.start()
        try:
            self.assertTrue(walk_done.wait(5))
            self.assertEqual(publisher.messages(settings.topic_walk_history), [])
        finally:
            release.set()
            scheduler.stop(timeout=5)
        self.assertEqual(len(publisher.messages(settings.topic_walk_history)), 1)

    def test_cadence_repeats_on_interval(self):
        settings = _settings()
        publisher = InMemoryPublisher()
        ds = CallableWeatherDataSource(current=_current(), hourly=None, daily=_daily)
        cadences = [PublicationCadence(Artifact.CURRENT_WALK, interval_seconds=0.01)]
        scheduler = PublicationScheduler(publisher, data_source=ds, settings=settings, cadences=cadences)

        scheduler.start()
        time.sleep(0.2)
        scheduler.stop(timeout=5)

        self.assertGreater(len(publisher.messages(settings.topic_walk)), 1)
        self.assertEqual(publisher.messages(settings.topic_walk_history), [])

    def test_start_is_idempotent_while_running(self):
        settings = _settings()
        publisher = InMemoryPublisher()
        ds = CallableWeatherDataSource(current=_current(), hourly=None, daily=_daily)
        cadences = [PublicationCadence(Artifact.CURRENT_WALK, interval_seconds=60)]
        scheduler = PublicationScheduler(publisher, data_source=ds, settings=settings, cadences=cadences)

        scheduler.start()
        scheduler.start()
        scheduler.stop(timeout=5)

        self.assertEqual(len(publisher.messages(settings.topic_walk)), 1)


if __name__ == "__main__":
    unittest.main()
