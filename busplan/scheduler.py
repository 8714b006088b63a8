"""Periodic recomputation and retained publication of walk and timetable artifacts.

Every artifact has its own cadence and worker thread:

    current_walk     every 5 minutes
    timetable_108    every hour  (+ best-only trip)
    timetable_339    every hour  (+ best-only trip)
    walk_history     every 6 hours

A cycle computes its artifact from scratch into an ``ArtifactResult`` and only
publishes when the computation succeeded. A failed cycle is logged and skipped;
the broker keeps serving the last retained value until the next tick.
"""
from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from busplan import config
from busplan.data_sources import WeatherDataSource, build_data_source
from busplan.distribution import PublishedMessage, Publisher
from busplan.errors import BusPlanError
from busplan.timetable import Route, best_trip, build_timetable_for_route
from busplan.walk_service import get_current_walk, get_walk_history
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="scheduler")


class Artifact(str, Enum):
    """Independently refreshed publications."""
    CURRENT_WALK = "current_walk"
    TIMETABLE_108 = "timetable_108"
    TIMETABLE_339 = "timetable_339"
    WALK_HISTORY = "walk_history"


TIMETABLE_ROUTES = {
    Artifact.TIMETABLE_108: Route.ROUTE_108,
    Artifact.TIMETABLE_339: Route.ROUTE_339,
}


@dataclass(frozen=True)
class PublicationCadence:
    """How often an artifact is recomputed and how it is published."""
    artifact: Artifact
    interval_seconds: float
    retain: bool = True
    qos: int = 1


@dataclass(frozen=True)
class ArtifactResult:
    """Outcome of one compute step: messages to publish, or the error that stopped it."""
    artifact: Artifact
    messages: Tuple[PublishedMessage, ...] = ()
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Topics:
    """Channel names for every artifact."""
    timetable: Dict[Route, str]
    best: Dict[Route, str]
    walk: str
    walk_history: str

    @classmethod
    def from_settings(cls, settings: config.Settings) -> "Topics":
        return cls(
            timetable={
                Route.ROUTE_108: settings.topic_timetable_108,
                Route.ROUTE_339: settings.topic_timetable_339,
            },
            best={
                Route.ROUTE_108: settings.topic_best_108,
                Route.ROUTE_339: settings.topic_best_339,
            },
            walk=settings.topic_walk,
            walk_history=settings.topic_walk_history,
        )


def default_cadences(settings: config.Settings) -> List[PublicationCadence]:
    """Build the four cadences from configuration."""
    qos = settings.mqtt_qos
    return [
        PublicationCadence(Artifact.CURRENT_WALK, settings.current_walk_interval_seconds, qos=qos),
        PublicationCadence(Artifact.TIMETABLE_108, settings.timetable_interval_seconds, qos=qos),
        PublicationCadence(Artifact.TIMETABLE_339, settings.timetable_interval_seconds, qos=qos),
        PublicationCadence(Artifact.WALK_HISTORY, settings.walk_history_interval_seconds, qos=qos),
    ]


def _message(topic: str, payload, cadence: PublicationCadence) -> PublishedMessage:
    return PublishedMessage(topic=topic, payload=json.dumps(payload), qos=cadence.qos, retain=cadence.retain)


def _guarded(artifact: Artifact, compute: Callable[[], Sequence[PublishedMessage]]) -> ArtifactResult:
    """Run ``compute`` and capture any failure in the result instead of raising."""
    try:
        return ArtifactResult(artifact=artifact, messages=tuple(compute()))
    except Exception as exc:
        return ArtifactResult(artifact=artifact, error=exc)


def compute_current_walk(
    cadence: PublicationCadence,
    topics: Topics,
    data_source: WeatherDataSource,
    settings: config.Settings,
) -> ArtifactResult:
    """Current weather sample and walking time."""
    def _compute():
        sample = get_current_walk(data_source, settings)
        return [_message(topics.walk, sample.to_payload(), cadence)]

    return _guarded(cadence.artifact, _compute)


def compute_timetable(
    cadence: PublicationCadence,
    topics: Topics,
    data_source: WeatherDataSource,
    settings: config.Settings,
) -> ArtifactResult:
    """Full timetable for one route plus, when one exists, the recommended trip."""
    route = TIMETABLE_ROUTES[cadence.artifact]

    def _compute():
        walk = get_current_walk(data_source, settings)
        trips = build_timetable_for_route(route, walk.estimate.whole_minutes(), class_end=settings.class_end)
        messages = [_message(topics.timetable[route], [t.to_payload() for t in trips], cadence)]
        best = best_trip(trips)
        if best is not None:
            messages.append(_message(topics.best[route], best.to_payload(), cadence))
        else:
            logger.info("No trip recommended; skipping best-only publish", extra={"route": route.value})
        return messages

    return _guarded(cadence.artifact, _compute)


def compute_walk_history(
    cadence: PublicationCadence,
    topics: Topics,
    data_source: WeatherDataSource,
    settings: config.Settings,
) -> ArtifactResult:
    """Daily walk estimates for the configured number of past days."""
    def _compute():
        history = get_walk_history(settings.history_days, data_source, settings)
        return [_message(topics.walk_history, history.to_payload(), cadence)]

    return _guarded(cadence.artifact, _compute)


_COMPUTE_STEPS = {
    Artifact.CURRENT_WALK: compute_current_walk,
    Artifact.TIMETABLE_108: compute_timetable,
    Artifact.TIMETABLE_339: compute_timetable,
    Artifact.WALK_HISTORY: compute_walk_history,
}


@dataclass
class PublicationScheduler:
    """Runs one worker thread per cadence and publishes each artifact's results."""
    publisher: Publisher
    data_source: Optional[WeatherDataSource] = None
    settings: Optional[config.Settings] = None
    cadences: Optional[List[PublicationCadence]] = None
    last_results: Dict[Artifact, ArtifactResult] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.settings = self.settings or config.settings
        self.data_source = self.data_source or build_data_source(self.settings)
        self.cadences = self.cadences or default_cadences(self.settings)
        self.topics = Topics.from_settings(self.settings)
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []

    @property
    def running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def _cadence(self, artifact: Artifact) -> PublicationCadence:
        for cadence in self.cadences:
            if cadence.artifact == artifact:
                return cadence
        raise KeyError(f"No cadence configured for {artifact.value}")

    def compute(self, artifact: Artifact) -> ArtifactResult:
        """Compute one artifact without publishing it."""
        cadence = self._cadence(Artifact(artifact))
        step = _COMPUTE_STEPS[cadence.artifact]
        return step(cadence, self.topics, self.data_source, self.settings)

    def run_cycle(self, artifact: Artifact) -> ArtifactResult:
        """Compute one artifact and publish it if, and only if, it was fully computed."""
        result = self.compute(artifact)
        with self._lock:
            self.last_results[result.artifact] = result

        if not result.ok:
            if isinstance(result.error, BusPlanError):
                logger.warning(
                    "Skipping publish after failed cycle",
                    extra={"artifact": result.artifact.value, "error": str(result.error)},
                )
            else:
                logger.error(
                    "Unexpected error computing artifact",
                    exc_info=result.error,
                    extra={"artifact": result.artifact.value},
                )
            return result

        for message in result.messages:
            try:
                self.publisher.publish(message.topic, message.payload, qos=message.qos, retain=message.retain)
            except Exception as exc:
                # later messages derive from this one
                logger.error(
                    "Failed to publish message; skipping rest of artifact",
                    extra={"artifact": result.artifact.value, "topic": message.topic, "error": str(exc)},
                )
                break
            logger.info("Published artifact", extra={"artifact": result.artifact.value, "topic": message.topic})
        return result

    def _worker(self, cadence: PublicationCadence) -> None:
        # publish immediately, then once per interval until stopped
        self.run_cycle(cadence.artifact)
        while not self._stop.wait(cadence.interval_seconds):
            self.run_cycle(cadence.artifact)

    def start(self) -> None:
        """Publish every artifact once and start the independent cadences."""
        with self._lock:
            if self.running:
                logger.info("Scheduler already running; ignoring start")
                return
            self._stop.clear()
            self._threads = [
                threading.Thread(
                    target=self._worker,
                    args=(cadence,),
                    name=f"cadence-{cadence.artifact.value}",
                    daemon=True,
                )
                for cadence in self.cadences
            ]
            for thread in self._threads:
                thread.start()
        logger.info("Scheduler started", extra={"cadences": [c.artifact.value for c in self.cadences]})

    def stop(self, timeout: float | None = None) -> None:
        """Signal all cadences to stop and wait for in-flight cycles."""
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout)
        logger.info("Scheduler stopped")
