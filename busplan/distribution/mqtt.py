"""MQTT publisher built on paho-mqtt."""

from typing import List

import paho.mqtt.client as mqtt

from busplan.distribution.base import ConnectCallback, Publisher
from busplan.errors import PublishError
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="distribution/mqtt_publisher")


class MqttPublisher(Publisher):
    """Publishes retained messages to an MQTT broker.

    The paho network loop runs on its own thread and reconnects automatically;
    connect callbacks fire on every (re)connection.
    """

    def __init__(
        self,
        broker: str,
        port: int = 1883,
        *,
        username: str | None = None,
        password: str | None = None,
        client_id: str = "",
        keepalive: int = 60,
        client: mqtt.Client | None = None,
    ) -> None:
        self.broker = broker
        self.port = port
        self.keepalive = keepalive
        self._callbacks: List[ConnectCallback] = []
        self.client = client or mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)
        if username:
            self.client.username_pw_set(username, password)
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        auth = f"{username}:{password or ''}@" if username else ""
        self._display_url = mask_url(f"mqtt://{auth}{broker}:{port}")

    def add_connect_callback(self, callback: ConnectCallback) -> None:
        self._callbacks.append(callback)

    def connect(self) -> None:
        """Start the network loop and connect in the background."""
        logger.info("Connecting to MQTT broker", extra={"broker": self._display_url})
        self.client.connect_async(self.broker, self.port, keepalive=self.keepalive)
        self.client.loop_start()

    def _on_connect(self, client, userdata, flags, reason_code, properties) -> None:
        if reason_code.is_failure:
            logger.error("MQTT connection refused", extra={"broker": self._display_url, "reason": str(reason_code)})
            return
        logger.info("Connected to MQTT broker", extra={"broker": self._display_url})
        for callback in list(self._callbacks):
            try:
                callback()
            except Exception:
                logger.exception("MQTT connect callback failed")

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties) -> None:
        logger.warning("Disconnected from MQTT broker", extra={"reason": str(reason_code)})

    def publish(self, topic: str, payload: str, *, qos: int = 1, retain: bool = True) -> None:
        info = self.client.publish(topic, payload, qos=qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise PublishError(f"Publish to {topic} failed: {mqtt.error_string(info.rc)}")

    def close(self) -> None:
        self.client.loop_stop()
        self.client.disconnect()
