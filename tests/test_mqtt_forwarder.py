from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import pytest

from ghanatransit._mqtt import MqttChangeForwarder
from ghanatransit.config import TransitConfig
from ghanatransit.exceptions import TransitBridgeError
from ghanatransit.models import Profile
from ghanatransit.state.bus import EventBus
from ghanatransit.state.events import ChangeEvent, ChangeKind, Collection
from ghanatransit.state.store import ReactiveStore


@dataclass
class _PublishInfo:
    rc: int = 0


class _FakeMqttClient:
    def __init__(self, rc: int = 0) -> None:
        self.rc = rc
        self.connected_to: tuple[str, int, int] | None = None
        self.loop_running = False
        self.tls = False
        self.published: list[tuple[str, str, int]] = []
        self.on_connect: Any = None
        self.on_disconnect: Any = None

    def enable_logger(self, _logger: logging.Logger) -> None:
        pass

    def tls_set(self) -> None:
        self.tls = True

    def connect(self, host: str, port: int, keepalive: int = 60) -> None:
        self.connected_to = (host, port, keepalive)

    def loop_start(self) -> None:
        self.loop_running = True

    def loop_stop(self) -> None:
        self.loop_running = False

    def disconnect(self) -> None:
        self.connected_to = None

    def publish(self, topic: str, payload: str, qos: int = 0) -> _PublishInfo:
        self.published.append((topic, payload, qos))
        return _PublishInfo(rc=self.rc)


def _forwarder(bus: EventBus, client: _FakeMqttClient, **kwargs: Any) -> MqttChangeForwarder:
    return MqttChangeForwarder(bus, host="broker.local", client_factory=lambda: client, **kwargs)  # type: ignore[arg-type,return-value]


def test_start_and_stop_manage_network_loop() -> None:
    client = _FakeMqttClient()
    forwarder = _forwarder(EventBus(), client, port=8883, keepalive=30, tls=True)

    forwarder.start()
    assert forwarder.is_running
    assert client.connected_to == ("broker.local", 8883, 30)
    assert client.loop_running and client.tls

    forwarder.stop()
    assert not forwarder.is_running
    assert client.connected_to is None
    assert not client.loop_running


def test_watched_owner_changes_are_published() -> None:
    bus = EventBus()
    store = ReactiveStore(bus=bus)
    client = _FakeMqttClient()
    forwarder = _forwarder(bus, client, topic_prefix="gt/")
    forwarder.start()
    forwarder.watch("u1")

    store.add_points("u1", 10)
    store.add_activity("u1", {"activity_type": "login", "description": "Signed in"})
    store.add_points("u2", 10)

    topics = [topic for topic, _payload, _qos in client.published]
    assert topics == ["gt/profile/u1", "gt/activities/u1"]
    payload = json.loads(client.published[0][1])
    assert payload["kind"] == "UPDATE"
    assert payload["entity"] == {"id": "u1", "loyalty_points": 330}


def test_watch_shares_one_subscription_per_owner() -> None:
    bus = EventBus()
    forwarder = _forwarder(bus, _FakeMqttClient())

    forwarder.watch("u1")
    forwarder.watch("u1")

    assert bus.handler_count("bookings:u1") == 1
    assert forwarder.watched_owners() == ["u1"]


def test_unwatch_detaches_only_after_last_watcher_releases() -> None:
    bus = EventBus()
    forwarder = _forwarder(bus, _FakeMqttClient())

    first = forwarder.watch("u1")
    second = forwarder.watch("u1")

    first()
    first()
    assert forwarder.is_watching("u1")
    assert bus.handler_count("profile:u1") == 1

    second()
    assert not forwarder.is_watching("u1")
    assert all(bus.handler_count(f"{c.value}:u1") == 0 for c in Collection)
    assert forwarder.watched_owners() == []


def test_rewatch_after_release_forwards_again() -> None:
    bus = EventBus()
    client = _FakeMqttClient()
    forwarder = _forwarder(bus, client)
    forwarder.start()

    stale = forwarder.watch("u1")
    stale()
    forwarder.watch("u1")
    stale()
    ReactiveStore(bus=bus).add_points("u1", 1)

    assert [topic for topic, _payload, _qos in client.published] == ["ghanatransit/profile/u1"]


def _event() -> ChangeEvent:
    return ChangeEvent(
        kind=ChangeKind.UPDATE,
        collection=Collection.PROFILE,
        owner_key="u1",
        entity=Profile(id="u1", loyalty_points=1),
    )


def test_publish_before_start_raises() -> None:
    forwarder = _forwarder(EventBus(), _FakeMqttClient())
    with pytest.raises(TransitBridgeError):
        forwarder.publish(_event())


def test_rejected_publish_raises_but_bus_keeps_delivering() -> None:
    bus = EventBus()
    client = _FakeMqttClient(rc=4)
    forwarder = _forwarder(bus, client)
    forwarder.start()

    with pytest.raises(TransitBridgeError) as excinfo:
        forwarder.publish(_event())
    assert excinfo.value.rc == 4
    assert excinfo.value.topic == "ghanatransit/profile/u1"

    forwarder.watch("u1")
    seen: list[ChangeEvent] = []
    bus.subscribe("profile:u1", seen.append)
    ReactiveStore(bus=bus).add_points("u1", 1)
    assert len(seen) == 1


def test_from_config() -> None:
    client = _FakeMqttClient()
    config = TransitConfig(mqtt_host="mq.example", mqtt_port=1884, mqtt_keepalive=15)
    forwarder = MqttChangeForwarder.from_config(EventBus(), config, client_factory=lambda: client)

    forwarder.start()

    assert client.connected_to == ("mq.example", 1884, 15)
    assert forwarder.topic_for(_event()) == "ghanatransit/profile/u1"
