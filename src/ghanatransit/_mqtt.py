"""Forward store change events to an MQTT broker.

Lets out-of-process subscribers follow an owner's changes on
``<topic_prefix>/<collection>/<owner_key>`` without polling.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, cast

import paho.mqtt.client as mqtt

from ghanatransit.config import TransitConfig
from ghanatransit.exceptions import TransitBridgeError
from ghanatransit.state.bus import ChangeBus, Unsubscribe
from ghanatransit.state.events import ChangeEvent, Collection, channel_name


def _default_client_factory() -> mqtt.Client:
    return mqtt.Client(
        callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
        protocol=mqtt.MQTTv311,
    )


class MqttChangeForwarder:
    """Threaded paho-mqtt publisher fed by the in-process bus."""

    def __init__(
        self,
        bus: ChangeBus,
        *,
        host: str,
        port: int = 1883,
        topic_prefix: str = "ghanatransit",
        keepalive: int = 60,
        tls: bool = False,
        client_factory: Callable[[], mqtt.Client] = _default_client_factory,
        logger: logging.Logger | None = None,
    ) -> None:
        self._bus = bus
        self._host = host
        self._port = port
        self._topic_prefix = topic_prefix.strip("/")
        self._keepalive = keepalive
        self._tls = tls
        self._client_factory = client_factory
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._watches: dict[str, list[Unsubscribe]] = {}
        self._watch_counts: dict[str, int] = {}

    @classmethod
    def from_config(cls, bus: ChangeBus, config: TransitConfig, **kwargs: Any) -> MqttChangeForwarder:
        return cls(
            bus,
            host=config.mqtt_host,
            port=config.mqtt_port,
            topic_prefix=config.mqtt_topic_prefix,
            keepalive=config.mqtt_keepalive,
            tls=config.mqtt_tls,
            **kwargs,
        )

    @property
    def is_running(self) -> bool:
        """Whether the MQTT network loop is running."""
        return self._running

    def topic_for(self, event: ChangeEvent) -> str:
        return f"{self._topic_prefix}/{event.collection.value}/{event.owner_key}"

    def start(self) -> None:
        """Connect to the broker and start the paho network loop."""
        self.stop()
        self._logger.debug("MQTT forwarder start requested host=%s port=%s", self._host, self._port)

        client = self._client_factory()
        client.enable_logger(self._logger)
        if self._tls:
            client.tls_set()

        def on_connect(
            _c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected successfully reason=%s", reason_code)

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
        client.on_disconnect = on_disconnect

        client.connect(self._host, self._port, keepalive=self._keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Disconnect and stop the network loop if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    def publish(self, event: ChangeEvent) -> None:
        """Publish *event* as JSON on its owner topic."""
        topic = self.topic_for(event)
        client = self._client
        if client is None or not self._running:
            raise TransitBridgeError("MQTT forwarder is not running", topic=topic)
        info = client.publish(topic, event.model_dump_json(by_alias=True), qos=0)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise TransitBridgeError(f"MQTT publish failed rc={info.rc}", topic=topic, rc=info.rc)
        self._logger.debug("Forwarded %s to topic=%s", event.kind, topic)

    def watch(self, owner_key: str) -> Unsubscribe:
        """Forward every collection channel of *owner_key*; returns an unwatch callable.

        Watches are reference counted: the owner stays forwarded until every
        returned unwatch has been called. Each unwatch is idempotent.
        """
        if owner_key not in self._watches:
            self._watches[owner_key] = [
                self._bus.subscribe(channel_name(collection, owner_key), self.publish) for collection in Collection
            ]
        self._watch_counts[owner_key] = self._watch_counts.get(owner_key, 0) + 1
        released = False

        def _unwatch() -> None:
            nonlocal released
            if released:
                return
            released = True
            remaining = self._watch_counts.get(owner_key, 0) - 1
            if remaining > 0:
                self._watch_counts[owner_key] = remaining
                return
            self._watch_counts.pop(owner_key, None)
            for unsubscribe in self._watches.pop(owner_key, []):
                unsubscribe()
            self._logger.debug("Stopped forwarding owner=%s", owner_key)

        return _unwatch

    def is_watching(self, owner_key: str) -> bool:
        return owner_key in self._watches

    def watched_owners(self) -> list[str]:
        return list(self._watches)
