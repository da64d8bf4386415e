"""Sensor bus backed by a Signal K MQTT gateway."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, cast

import paho.mqtt.client as mqtt

from skwindy.bus import Subscription, UpdateCallback, dispatch_update
from skwindy.config import ReporterConfig


def path_to_topic(prefix: str, path: str) -> str:
    """``environment.wind.gust`` -> ``<prefix>/environment/wind/gust``."""
    suffix = path.replace(".", "/")
    prefix = prefix.strip("/")
    return f"{prefix}/{suffix}" if prefix else suffix


def topic_to_path(prefix: str, topic: str) -> str | None:
    prefix = prefix.strip("/")
    if prefix:
        if not topic.startswith(f"{prefix}/"):
            return None
        topic = topic[len(prefix) + 1 :]
    return topic.replace("/", ".") if topic else None


def decode_payload(payload: bytes) -> Any:
    """Decode a gateway payload: JSON when possible, else the stripped text."""
    text = payload.decode("utf-8", errors="replace").strip()
    if not text:
        return None
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(value, dict) and "value" in value:
        return value["value"]
    return value


class MqttSensorBus:
    """Threaded paho-mqtt client that feeds values onto an asyncio loop.

    Latest values and callbacks are only touched on the loop thread; the
    network thread hands messages over with ``call_soon_threadsafe``.
    ``period_ms`` is recorded; the gateway decides the publish rate.
    """

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        host: str,
        port: int = 1883,
        topic_prefix: str = "vessels/self",
        keepalive: int = 60,
        client_id: str = "",
        username: str | None = None,
        password: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._host = host
        self._port = port
        self._prefix = topic_prefix
        self._keepalive = keepalive
        self._client_id = client_id
        self._username = username
        self._password = password
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._values: dict[str, Any] = {}
        self._subscriptions: list[Subscription] = []

    @classmethod
    def from_config(cls, config: ReporterConfig, loop: asyncio.AbstractEventLoop) -> MqttSensorBus:
        if not config.mqtt_host:
            raise ValueError("mqtt_host is not configured")
        return cls(
            loop=loop,
            host=config.mqtt_host,
            port=config.mqtt_port,
            topic_prefix=config.mqtt_topic_prefix,
            client_id=f"skwindy-{config.station_id}",
        )

    @property
    def is_running(self) -> bool:
        return self._running

    def get_current_value(self, path: str) -> Any | None:
        return self._values.get(path)

    def subscribe(self, path: str, period_ms: int, on_update: UpdateCallback) -> None:
        self._subscriptions.append(Subscription(path=path, period_ms=period_ms, on_update=on_update))

    def _deliver(self, path: str, value: Any) -> None:
        if value is None:
            self._values.pop(path, None)
        else:
            self._values[path] = value
        dispatch_update(self._subscriptions, path, value)

    def start(self) -> None:
        """Connect and subscribe to every path under the prefix."""
        self.stop()
        wildcard = path_to_topic(self._prefix, "#")
        self._logger.debug("MQTT bus start host=%s port=%s topic=%s", self._host, self._port, wildcard)

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=self._client_id,
        )
        client.enable_logger(self._logger)
        if self._username:
            client.username_pw_set(self._username, self._password)

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected, subscribing topic=%s", wildcard)
            c.subscribe(wildcard, qos=0)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            path = topic_to_path(self._prefix, msg.topic)
            if path is None:
                return
            try:
                value = decode_payload(msg.payload)
            except Exception:
                self._logger.debug("MQTT payload decode failure topic=%s", msg.topic, exc_info=True)
                return
            self._loop.call_soon_threadsafe(self._deliver, path, value)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect(self._host, self._port, keepalive=self._keepalive)
        client.loop_start()

        self._client = client
        self._running = True

    def stop(self) -> None:
        """Stop and disconnect the client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")
