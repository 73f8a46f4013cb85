"""aiohttp application: JSON control surface plus the WebSocket push channel."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import weakref
from collections.abc import Awaitable, Callable

from aiohttp import WSCloseCode, WSMsgType, web

from nmeabridge.broadcaster import Broadcaster, Subscriber
from nmeabridge.control import ControlService
from nmeabridge.exceptions import BridgeControlError

_logger = logging.getLogger(__name__)

CONTROL_KEY = web.AppKey("control", ControlService)
BROADCASTER_KEY = web.AppKey("broadcaster", Broadcaster)
WEBSOCKETS_KEY = web.AppKey("websockets", weakref.WeakSet)

# Local-network tool: any origin may call the control surface.
_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

_Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@web.middleware
async def _cors_and_errors(request: web.Request, handler: _Handler) -> web.StreamResponse:
    """Answer preflights, map failures to JSON bodies, add CORS headers."""
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=_CORS_HEADERS)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        response = web.json_response({"error": exc.reason}, status=exc.status)
    except BridgeControlError as exc:
        response = web.json_response({"error": str(exc)}, status=400)
    except Exception as exc:
        _logger.exception("Control request %s %s failed", request.method, request.path)
        response = web.json_response({"error": str(exc)}, status=500)
    if not response.prepared:
        response.headers.update(_CORS_HEADERS)
    return response


# ------------------------------------------------------------------
# Control endpoints
# ------------------------------------------------------------------


async def _get_status(request: web.Request) -> web.Response:
    return web.json_response(request.app[CONTROL_KEY].status())


async def _post_config(request: web.Request) -> web.Response:
    try:
        patch = await request.json()
    except (ValueError, UnicodeDecodeError) as exc:
        raise BridgeControlError(f"malformed JSON body: {exc}") from exc
    config = request.app[CONTROL_KEY].update_config(patch)
    return web.json_response({"ok": True, "config": config.to_document()})


async def _post_connect(request: web.Request) -> web.Response:
    request.app[CONTROL_KEY].connect()
    return web.json_response({"ok": True})


async def _post_disconnect(request: web.Request) -> web.Response:
    request.app[CONTROL_KEY].disconnect()
    return web.json_response({"ok": True})


# ------------------------------------------------------------------
# Push channel
# ------------------------------------------------------------------


async def _push_channel(request: web.Request) -> web.StreamResponse:
    ws = web.WebSocketResponse()
    if not ws.can_prepare(request).ok:
        return web.json_response({"service": "nmea-bridge", "pushChannel": "websocket"})
    await ws.prepare(request)

    broadcaster = request.app[BROADCASTER_KEY]
    request.app[WEBSOCKETS_KEY].add(ws)
    subscriber = Subscriber(ws.send_str, name=str(request.remote))
    broadcaster.add(subscriber)
    writer = asyncio.create_task(subscriber.run())
    try:
        # Inbound messages are ignored; the loop ends when the client goes away.
        async for msg in ws:
            if msg.type == WSMsgType.ERROR:
                _logger.debug("Push client %s error: %s", subscriber.name, ws.exception())
                break
    finally:
        broadcaster.discard(subscriber)
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer
        request.app[WEBSOCKETS_KEY].discard(ws)
    return ws


async def _close_websockets(app: web.Application) -> None:
    for ws in set(app[WEBSOCKETS_KEY]):
        await ws.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")


def create_app(control: ControlService, broadcaster: Broadcaster) -> web.Application:
    """Create the aiohttp application.

    Parameters
    ----------
    control : ControlService
        Service the control endpoints delegate to.
    broadcaster : Broadcaster
        Subscriber set the push channel registers into.
    """
    app = web.Application(middlewares=[_cors_and_errors])
    app[CONTROL_KEY] = control
    app[BROADCASTER_KEY] = broadcaster
    app[WEBSOCKETS_KEY] = weakref.WeakSet()

    # The logbook UI calls the same endpoints under /api.
    for prefix in ("", "/api"):
        app.router.add_get(f"{prefix}/status", _get_status)
        app.router.add_post(f"{prefix}/config", _post_config)
        app.router.add_post(f"{prefix}/connect", _post_connect)
        app.router.add_post(f"{prefix}/disconnect", _post_disconnect)

    app.router.add_get("/", _push_channel)
    app.router.add_get("/ws", _push_channel)
    app.on_shutdown.append(_close_websockets)
    return app
