"""Distribution backends for retained publications."""

from busplan import config

from .base import ConnectCallback, PublishedMessage, Publisher
from .memory import InMemoryPublisher
from .mqtt import MqttPublisher


def build_publisher(settings: config.Settings | None = None) -> Publisher:
    """Return an MQTT publisher, or an in-memory one when MQTT is disabled."""
    settings = settings or config.settings
    if not settings.mqtt_enabled:
        return InMemoryPublisher()
    return MqttPublisher(
        settings.mqtt_broker,
        settings.mqtt_port,
        username=settings.mqtt_username,
        password=settings.mqtt_password,
        client_id=settings.mqtt_client_id,
        keepalive=settings.mqtt_keepalive_seconds,
    )


__all__ = [
    "build_publisher",
    "ConnectCallback",
    "PublishedMessage",
    "Publisher",
    "InMemoryPublisher",
    "MqttPublisher",
]
