"""Runtime configuration for ghanatransit."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from ghanatransit._constants import DEFAULT_LOYALTY_POINTS
from ghanatransit.exceptions import TransitConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_int(env_key: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise TransitConfigError(f"{env_key} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class TransitConfig:
    """Store, HTTP and realtime bridge configuration.

    Parameters
    ----------
    default_loyalty_points : int
        Loyalty balance every new owner's profile is seeded with.
    http_host : str
        Interface the demo HTTP server binds to.
    http_port : int
        Port the demo HTTP server listens on.
    mqtt_enabled : bool
        Forward store change events to an MQTT broker.
    mqtt_host : str
        MQTT broker host name.
    mqtt_port : int
        MQTT broker port.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    mqtt_topic_prefix : str
        Prefix of every published topic
        (``<prefix>/<collection>/<owner_key>``).
    mqtt_tls : bool
        Connect to the broker over TLS.
    """

    default_loyalty_points: int = DEFAULT_LOYALTY_POINTS
    http_host: str = "127.0.0.1"
    http_port: int = 8080
    mqtt_enabled: bool = False
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_keepalive: int = 60
    mqtt_topic_prefix: str = "ghanatransit"
    mqtt_tls: bool = False

    def __post_init__(self) -> None:
        if self.default_loyalty_points < 0:
            raise TransitConfigError("default_loyalty_points must be non-negative")
        for name in ("http_port", "mqtt_port"):
            port = getattr(self, name)
            if not 0 <= port <= 65535:
                raise TransitConfigError(f"{name} out of range: {port}")
        if not self.mqtt_topic_prefix.strip("/"):
            raise TransitConfigError("mqtt_topic_prefix must be non-empty")

    @classmethod
    def from_env(cls, **overrides: Any) -> TransitConfig:
        """Create configuration from environment variables.

        Reads optional ``GHANATRANSIT_*`` variables. Explicit keyword
        arguments override environment values.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "GHANATRANSIT_HTTP_HOST": "http_host",
            "GHANATRANSIT_MQTT_HOST": "mqtt_host",
            "GHANATRANSIT_MQTT_TOPIC_PREFIX": "mqtt_topic_prefix",
        }
        _ENV_INT_MAP = {
            "GHANATRANSIT_DEFAULT_LOYALTY_POINTS": "default_loyalty_points",
            "GHANATRANSIT_HTTP_PORT": "http_port",
            "GHANATRANSIT_MQTT_PORT": "mqtt_port",
            "GHANATRANSIT_MQTT_KEEPALIVE": "mqtt_keepalive",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_int(env_key, val)

        if "mqtt_enabled" not in overrides:
            config_kwargs["mqtt_enabled"] = _env_bool(env.get("GHANATRANSIT_MQTT_ENABLED"), False)
        if "mqtt_tls" not in overrides:
            config_kwargs["mqtt_tls"] = _env_bool(env.get("GHANATRANSIT_MQTT_TLS"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
