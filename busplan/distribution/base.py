"""Shared protocol and types for distribution (publish/subscribe) backends."""

from dataclasses import dataclass
from typing import Callable, Protocol

ConnectCallback = Callable[[], None]


@dataclass(frozen=True)
class PublishedMessage:
    """A single message as handed to the distribution channel."""
    topic: str
    payload: str
    qos: int = 1
    retain: bool = True


class Publisher(Protocol):
    """Protocol for distribution backends."""

    def add_connect_callback(self, callback: ConnectCallback) -> None:
        """Register a callable to run every time the connection is established."""

    def connect(self) -> None:
        """Open the connection; callbacks fire once it is established."""

    def publish(self, topic: str, payload: str, *, qos: int = 1, retain: bool = True) -> None:
        """Publish one message, raising PublishError if it is rejected."""

    def close(self) -> None:
        """Close the connection without raising if it is already closed."""
