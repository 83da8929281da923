"""
Background tasks tied to the aiohttp application lifecycle
"""
import asyncio
import contextlib
import logging

from aiohttp import web

logger = logging.getLogger("chat_relay.tasks")


async def sweep_typing_forever(typing, interval: float):
    """Expire stale typing indicators every ``interval`` seconds until cancelled"""
    while True:
        await asyncio.sleep(interval)
        try:
            expired = await typing.sweep()
            if expired:
                logger.debug(f"Typing sweep expired {len(expired)} indicator(s)")
        except Exception as e:
            logger.error(f"Typing sweep error: {e}")


def typing_sweeper(state_key, interval: float):
    """aiohttp cleanup context that owns the sweep task"""
    async def _ctx(app: web.Application):
        task = asyncio.create_task(sweep_typing_forever(app[state_key].typing, interval))
        logger.info(f"Typing sweeper started (every {interval:g}s)")
        yield
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Typing sweeper stopped")
    return _ctx
