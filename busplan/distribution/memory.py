"""In-memory publisher with retained values, intended for development and tests."""

import threading
from collections import deque
from typing import Deque, Dict, List, Optional

from busplan.distribution.base import ConnectCallback, PublishedMessage, Publisher
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="distribution/in_memory_publisher")

DEFAULT_HISTORY_LIMIT = 256


class InMemoryPublisher(Publisher):
    """Thread-safe publisher keeping the last retained value per topic.

    Only the most recent ``history_limit`` messages are kept for inspection.
    """

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self._lock = threading.Lock()
        self._retained: Dict[str, PublishedMessage] = {}
        self._history: Deque[PublishedMessage] = deque(maxlen=history_limit)
        self._callbacks: List[ConnectCallback] = []
        self.connected = False

    def add_connect_callback(self, callback: ConnectCallback) -> None:
        self._callbacks.append(callback)

    def connect(self) -> None:
        """Mark as connected and run connect callbacks synchronously."""
        self.connected = True
        logger.debug("In-memory publisher connected")
        for callback in list(self._callbacks):
            callback()

    def publish(self, topic: str, payload: str, *, qos: int = 1, retain: bool = True) -> None:
        message = PublishedMessage(topic=topic, payload=payload, qos=qos, retain=retain)
        with self._lock:
            self._history.append(message)
            if retain:
                self._retained[topic] = message

    def retained(self, topic: str) -> Optional[PublishedMessage]:
        """Return what a subscriber joining now would receive for ``topic``."""
        with self._lock:
            return self._retained.get(topic)

    def messages(self, topic: str | None = None) -> List[PublishedMessage]:
        """Return recently published messages, optionally filtered by topic."""
        with self._lock:
            return [m for m in self._history if topic is None or m.topic == topic]

    def close(self) -> None:
        self.connected = False
