"""aiohttp routes exposing dashboards and realtime change streams.

Bearer tokens are resolved to owner keys by an injected coroutine; token
verification itself belongs to the external auth provider.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from aiohttp import WSMsgType, web

from ghanatransit.dashboard import build_dashboard, build_user_stats
from ghanatransit.state.events import ChangeEvent, Collection, channel_name
from ghanatransit.state.store import ReactiveStore

_logger = logging.getLogger(__name__)

TokenResolver = Callable[[str], Awaitable[str | None]]

STORE_KEY: web.AppKey[ReactiveStore] = web.AppKey("store", ReactiveStore)
RESOLVER_KEY: web.AppKey[TokenResolver] = web.AppKey("resolve_token")

_UNAUTHORIZED = {"error": "Unauthorized"}


def _bearer_token(request: web.Request) -> str | None:
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        token = header[len("Bearer ") :].strip()
        return token or None
    # Browsers cannot set headers on WebSocket upgrades.
    if request.path.startswith("/api/realtime/"):
        return request.query.get("access_token") or None
    return None


async def _owner_key(request: web.Request) -> str | None:
    token = _bearer_token(request)
    if token is None:
        return None
    return await request.app[RESOLVER_KEY](token)


@web.middleware
async def _error_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception:
        _logger.exception("Unexpected error handling %s %s", request.method, request.path)
        return web.json_response({"error": "Internal server error"}, status=500)


async def get_dashboard(request: web.Request) -> web.Response:
    owner_key = await _owner_key(request)
    if owner_key is None:
        return web.json_response(_UNAUTHORIZED, status=401)
    summary = build_dashboard(request.app[STORE_KEY], owner_key)
    return web.json_response(summary.to_json_dict())


async def get_user_stats(request: web.Request) -> web.Response:
    owner_key = await _owner_key(request)
    if owner_key is None:
        return web.json_response(_UNAUTHORIZED, status=401)
    stats = build_user_stats(request.app[STORE_KEY], owner_key)
    return web.json_response(stats.to_json_dict())


async def realtime(request: web.Request) -> web.StreamResponse:
    """Stream every change on ``<collection>:<owner>`` over a WebSocket."""
    try:
        collection = Collection(request.match_info["collection"])
    except ValueError:
        raise web.HTTPNotFound() from None
    owner_key = await _owner_key(request)
    if owner_key is None:
        return web.json_response(_UNAUTHORIZED, status=401)

    ws = web.WebSocketResponse(heartbeat=30.0)
    await ws.prepare(request)

    queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
    channel = channel_name(collection, owner_key)
    unsubscribe = request.app[STORE_KEY].bus.subscribe(channel, queue.put_nowait)
    _logger.debug("Realtime subscriber attached channel=%s", channel)

    async def _forward() -> None:
        while True:
            event = await queue.get()
            await ws.send_str(event.model_dump_json(by_alias=True))

    closing: set[asyncio.Task[bool]] = set()

    def _on_sender_done(task: asyncio.Task[None]) -> None:
        if task.cancelled() or task.exception() is None:
            return
        _logger.debug("Realtime sender failed channel=%s", channel, exc_info=task.exception())
        unsubscribe()
        close = asyncio.create_task(ws.close())
        closing.add(close)
        close.add_done_callback(closing.discard)

    sender = asyncio.create_task(_forward())
    sender.add_done_callback(_on_sender_done)
    try:
        async for msg in ws:
            if msg.type == WSMsgType.ERROR:
                _logger.debug("Realtime socket error channel=%s", channel, exc_info=ws.exception())
                break
    finally:
        unsubscribe()
        sender.cancel()
        await asyncio.gather(sender, *closing, return_exceptions=True)
        _logger.debug("Realtime subscriber detached channel=%s", channel)
    return ws


def create_app(store: ReactiveStore, resolve_token: TokenResolver) -> web.Application:
    app = web.Application(middlewares=[_error_middleware])
    app[STORE_KEY] = store
    app[RESOLVER_KEY] = resolve_token
    app.router.add_get("/api/user/dashboard", get_dashboard)
    app.router.add_get("/api/user/stats", get_user_stats)
    app.router.add_get("/api/realtime/{collection}", realtime)
    return app
