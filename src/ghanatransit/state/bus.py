"""Named-channel publish/subscribe.

:class:`ChangeBus` is the interface the store publishes through.
:class:`EventBus` is the synchronous in-process implementation; a
broker- or changefeed-backed bus can replace it without touching callers
as long as it keeps the ``"<collection>:<owner_key>"`` channel names.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

_logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]
Unsubscribe = Callable[[], None]


class ChangeBus(Protocol):
    def subscribe(self, channel: str, handler: Handler) -> Unsubscribe: ...

    def unsubscribe(self, channel: str, handler: Handler) -> None: ...

    def emit(self, channel: str, payload: Any) -> None: ...


class _Registration:
    """One subscription; identity distinguishes repeated subscriptions of a handler."""

    __slots__ = ("handler",)

    def __init__(self, handler: Handler) -> None:
        self.handler = handler


class EventBus:
    """Synchronous in-process bus.

    Handlers run on the emitting thread in subscription order. A handler
    that raises is logged and skipped; the remaining handlers still
    receive the payload.
    """

    def __init__(self) -> None:
        self._channels: dict[str, list[_Registration]] = {}

    def subscribe(self, channel: str, handler: Handler) -> Unsubscribe:
        """Register *handler* on *channel*; returns a callable removing this registration."""
        registration = _Registration(handler)
        self._channels.setdefault(channel, []).append(registration)

        def _unsubscribe() -> None:
            registrations = self._channels.get(channel)
            if registrations is None:
                return
            for index, candidate in enumerate(registrations):
                if candidate is registration:
                    del registrations[index]
                    break
            if not registrations:
                self._channels.pop(channel, None)

        return _unsubscribe

    def unsubscribe(self, channel: str, handler: Handler) -> None:
        """Remove every registration of *handler* on *channel*."""
        registrations = self._channels.get(channel)
        if registrations is None:
            return
        remaining = [r for r in registrations if r.handler != handler]
        if remaining:
            self._channels[channel] = remaining
        else:
            self._channels.pop(channel, None)

    def emit(self, channel: str, payload: Any) -> None:
        """Deliver *payload* to every handler currently registered on *channel*."""
        # Snapshot: subscriptions changed by a handler apply to the next emit.
        registrations = tuple(self._channels.get(channel, ()))
        for registration in registrations:
            try:
                registration.handler(payload)
            except Exception:
                _logger.warning("Handler %r failed on channel=%s", registration.handler, channel, exc_info=True)

    def handler_count(self, channel: str) -> int:
        return len(self._channels.get(channel, ()))
