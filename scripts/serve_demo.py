#!/usr/bin/env python3
"""Run the dashboard API against an in-memory demo store.

The bearer token is taken verbatim as the owner key, so any token works
and each distinct token gets its own seeded profile.

Usage
-----
::

    export GHANATRANSIT_HTTP_PORT=8080          # optional
    export GHANATRANSIT_MQTT_ENABLED=1          # optional, forward changes to MQTT
    python scripts/serve_demo.py --seed-owner u1 -v

    curl -H "Authorization: Bearer u1" http://127.0.0.1:8080/api/user/dashboard

Options::

    --seed-owner KEY     Book a confirmed trip for KEY (booking, activity, points, notification)
    --verbose, -v        Enable debug logging
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

from aiohttp import web

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from ghanatransit import EventBus, ReactiveStore, TransitConfig  # noqa: E402
from ghanatransit._mqtt import MqttChangeForwarder  # noqa: E402
from ghanatransit.flows import book_trip  # noqa: E402
from ghanatransit.web import create_app  # noqa: E402

_logger = logging.getLogger("serve_demo")


def _seed(store: ReactiveStore, owner_key: str) -> None:
    tomorrow = (datetime.now(UTC) + timedelta(days=1)).date().isoformat()
    book_trip(
        store,
        owner_key,
        {
            "route_from": "Accra",
            "route_to": "Kumasi",
            "departure_date": tomorrow,
            "departure_time": "08:00",
            "status": "confirmed",
            "total_price": 120,
            "booking_reference": "GT-001",
            "passengers": 1,
            "class": "VIP",
            "bus_number": "GT-204",
            "seat_numbers": ["12A"],
            "payment_method": "momo",
            "driver_name": "Kwame Mensah",
            "driver_phone": "+233 20 123 4567",
        },
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the GhanaTransit dashboard API from an in-memory store.")
    parser.add_argument("--seed-owner", action="append", default=[], help="Owner key to pre-populate")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO)

    config = TransitConfig.from_env()
    bus = EventBus()
    store = ReactiveStore.from_config(config, bus=bus)

    forwarder: MqttChangeForwarder | None = None
    if config.mqtt_enabled:
        forwarder = MqttChangeForwarder.from_config(bus, config)
        forwarder.start()

    def _forward_owner(owner_key: str) -> None:
        # Demo owners stay forwarded for the life of the process.
        if forwarder is not None and not forwarder.is_watching(owner_key):
            forwarder.watch(owner_key)

    async def resolve_token(token: str) -> str | None:
        _forward_owner(token)
        return token

    for owner_key in args.seed_owner:
        _forward_owner(owner_key)
        _seed(store, owner_key)
        _logger.info("Seeded demo data for owner=%s", owner_key)

    try:
        web.run_app(create_app(store, resolve_token), host=config.http_host, port=config.http_port)
    finally:
        if forwarder is not None:
            forwarder.stop()


if __name__ == "__main__":
    main()
