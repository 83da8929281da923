"""
HTTP and WebSocket handlers for the chat relay
"""
import json
import logging

from aiohttp import WSMsgType, web

from .state import RelayState

logger = logging.getLogger("chat_relay")

RELAY_STATE = web.AppKey("relay_state", RelayState)

HEALTH_TEXT = "Socket server is running"

# ============================================================
# HEALTH / STATUS
# ============================================================

async def health(request: web.Request) -> web.Response:
    """Liveness check"""
    return web.Response(text=HEALTH_TEXT)


async def status(request: web.Request) -> web.Response:
    """Live counters for operators"""
    state = request.app[RELAY_STATE]
    return web.json_response({"ok": True, **state.snapshot()})

# ============================================================
# WEBSOCKET RELAY
# ============================================================

def decode_frame(raw: str):
    """Return (event, data) for a well-formed frame, else None"""
    try:
        message = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(message, dict):
        return None
    event = message.get("type")
    if not isinstance(event, str):
        return None
    return event, message.get("data")


async def ws_relay(request: web.Request) -> web.WebSocketResponse:
    """One client session: accept, dispatch frames in arrival order, clean up on close"""
    ws = web.WebSocketResponse()
    await ws.prepare(request)

    state = request.app[RELAY_STATE]
    connection_id = await state.router.connect(ws)

    try:
        async for msg in ws:
            if msg.type == WSMsgType.TEXT:
                # Handle ping/pong for keepalive
                if msg.data == "ping":
                    await ws.send_str("pong")
                    continue
                decoded = decode_frame(msg.data)
                if decoded is None:
                    logger.debug(f"Ignoring malformed frame from {connection_id}: {msg.data[:200]!r}")
                    continue
                await state.router.dispatch(connection_id, *decoded)
            elif msg.type == WSMsgType.ERROR:
                logger.debug(f"WebSocket error on {connection_id}: {ws.exception()}")
    except Exception as e:
        logger.error(f"Connection handler failed for {connection_id}: {e}")
    finally:
        await state.router.disconnect(connection_id)

    return ws
