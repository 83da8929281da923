"""
Typing indicators with automatic expiry

At most one record per user: user_id -> (room_id, timestamp). A record that
is not refreshed within ``timeout`` seconds is removed by ``sweep`` and the
room is told the user stopped typing.
"""
import asyncio
import logging
import time
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from .events import Outbound
from .hub import ConnectionHub

logger = logging.getLogger("chat_relay.typing")

DEFAULT_TYPING_TIMEOUT = 5.0


class TypingRecord(NamedTuple):
    room_id: str
    timestamp: float


class TypingTracker:

    def __init__(self, hub: ConnectionHub, timeout: float = DEFAULT_TYPING_TIMEOUT,
                 clock: Callable[[], float] = time.monotonic):
        self.hub = hub
        self.timeout = timeout
        self.clock = clock
        self._records: Dict[str, TypingRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def get(self, user_id) -> Optional[TypingRecord]:
        return self._records.get(user_id)

    def is_typing(self, user_id) -> bool:
        return user_id in self._records

    async def start(self, user_id, room_id, exclude: Optional[str] = None) -> None:
        """Create or refresh the user's record; replaces any record in another room"""
        self._records[user_id] = TypingRecord(room_id, self.clock())
        logger.info(f"User {user_id} started typing in chat {room_id}")
        await self.hub.broadcast_to_room(
            room_id, Outbound.USER_TYPING,
            {"userId": user_id, "isTyping": True},
            exclude=exclude
        )

    async def stop(self, user_id, room_id, exclude: Optional[str] = None) -> None:
        """Drop the record and tell the room, whether or not a record existed"""
        self._records.pop(user_id, None)
        logger.info(f"User {user_id} stopped typing in chat {room_id}")
        await self.hub.broadcast_to_room(
            room_id, Outbound.USER_TYPING,
            {"userId": user_id, "isTyping": False},
            exclude=exclude
        )

    def clear(self, user_id) -> None:
        """Drop the record without notifying anyone"""
        self._records.pop(user_id, None)

    def expire(self, now: Optional[float] = None) -> List[Tuple[str, str]]:
        """Remove and return every (user_id, room_id) older than the timeout"""
        if now is None:
            now = self.clock()
        expired = [
            (user_id, record.room_id)
            for user_id, record in self._records.items()
            if now - record.timestamp > self.timeout
        ]
        for user_id, _ in expired:
            del self._records[user_id]
        return expired

    async def sweep(self, now: Optional[float] = None) -> List[Tuple[str, str]]:
        """Expire stale records and notify each record's room (no exclusion)"""
        expired = self.expire(now)
        for user_id, room_id in expired:
            logger.info(f"Typing indicator for {user_id} in chat {room_id} expired")
        await asyncio.gather(*(
            self.hub.broadcast_to_room(
                room_id, Outbound.USER_TYPING,
                {"userId": user_id, "isTyping": False}
            )
            for user_id, room_id in expired
        ))
        return expired
