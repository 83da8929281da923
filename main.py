#!/usr/bin/env python3
"""
Chat Relay - Entry Point
Presence + typing indicators + room fan-out over WebSocket
"""
import logging
import time
from typing import Dict, List, Optional

from aiohttp import web
from dotenv import load_dotenv

from relay.api import RELAY_STATE, health, status, ws_relay
from relay.config import RelayConfig, load_config
from relay.state import RelayState
from relay.tasks import typing_sweeper

logger = logging.getLogger("chat_relay")

WS_PATH = "/ws"
RATE_WINDOW = 60


class RateLimiter:
    """Sliding-window request counter per client IP"""

    def __init__(self, limit: int, window: float = RATE_WINDOW):
        self.limit = limit
        self.window = window
        self.store: Dict[str, List[float]] = {}
        self._last_purge = 0.0

    def hit(self, ip: str, now: Optional[float] = None) -> bool:
        """Record a request; False if ``ip`` is over the limit"""
        if now is None:
            now = time.time()
        if now - self._last_purge >= self.window:
            self.purge(now)

        # Clean old entries
        recent = [t for t in self.store.get(ip, ()) if now - t < self.window]
        if len(recent) >= self.limit:
            self.store[ip] = recent
            return False

        recent.append(now)
        self.store[ip] = recent
        return True

    def purge(self, now: float) -> None:
        """Forget IPs with no request inside the window"""
        idle = [ip for ip, hits in self.store.items() if not hits or now - hits[-1] >= self.window]
        for ip in idle:
            del self.store[ip]
        self._last_purge = now


def make_rate_limit_middleware(limiter: RateLimiter):
    """Per-IP rate limiting over a sliding 60 second window"""

    @web.middleware
    async def rate_limit_middleware(request, handler):
        # Long-lived sockets are not rate limited
        if request.path == WS_PATH:
            return await handler(request)

        ip = request.remote
        if not limiter.hit(ip):
            logger.warning(f"Rate limit exceeded for {ip}")
            return web.json_response(
                {"ok": False, "error": "Rate limit exceeded"},
                status=429
            )
        return await handler(request)

    return rate_limit_middleware


def make_cors_middleware(origin: str):
    """Permissive CORS for browser clients (GET/POST, credentials allowed)"""
    cors_headers = {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": "GET, POST",
        "Access-Control-Allow-Credentials": "true",
    }

    @web.middleware
    async def cors_middleware(request, handler):
        if request.method == "OPTIONS":
            return web.Response(status=204, headers={
                **cors_headers,
                "Access-Control-Allow-Headers": request.headers.get(
                    "Access-Control-Request-Headers", "*"
                ),
            })

        try:
            response = await handler(request)
        except web.HTTPException as exc:
            exc.headers.update(cors_headers)
            raise
        # Upgraded sockets have already sent their headers
        if not isinstance(response, web.WebSocketResponse):
            response.headers.update(cors_headers)
        return response

    return cors_middleware


def create_app(config: Optional[RelayConfig] = None,
               state: Optional[RelayState] = None) -> web.Application:
    """Create and configure the aiohttp application"""
    config = config or load_config()
    state = state or RelayState.create(
        typing_timeout=config.typing_timeout,
        send_timeout=config.send_timeout,
    )

    app = web.Application(middlewares=[
        make_cors_middleware(config.cors_origin),
        make_rate_limit_middleware(RateLimiter(config.rate_limit_per_minute)),
    ])
    app[RELAY_STATE] = state

    app.router.add_get("/", health)
    app.router.add_get("/status", status)
    app.router.add_get(WS_PATH, ws_relay)

    app.cleanup_ctx.append(typing_sweeper(RELAY_STATE, config.sweep_interval))
    return app


def main():
    load_dotenv()
    config = load_config()

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    app = create_app(config)
    logger.info(f"Chat relay running on {config.host}:{config.port}")
    web.run_app(app, host=config.host, port=config.port, print=None)


if __name__ == "__main__":
    main()
