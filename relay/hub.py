"""
Connection hub: live sockets per connection and room membership

Delivery is best-effort. Targets are sent to concurrently and every send is
bounded by ``send_timeout``, so a dead or stalled socket never holds up the
rest of a broadcast or the caller.
"""
import asyncio
import logging
from typing import Dict, List, Optional, Set

from .events import frame

logger = logging.getLogger("chat_relay.hub")

DEFAULT_SEND_TIMEOUT = 1.0


class ConnectionHub:
    """Owns open sockets (connection_id -> socket) and room subscriber sets"""

    def __init__(self, send_timeout: float = DEFAULT_SEND_TIMEOUT):
        self.send_timeout = send_timeout
        self._sockets: Dict[str, object] = {}
        self._rooms: Dict[str, Set[str]] = {}
        self._memberships: Dict[str, Set[str]] = {}

    # ============================================================
    # CONNECTIONS
    # ============================================================

    def attach(self, connection_id: str, ws) -> None:
        self._sockets[connection_id] = ws
        self._memberships.setdefault(connection_id, set())

    def detach(self, connection_id: str) -> Set[str]:
        """Forget a closed connection and drop it from every room it joined"""
        self._sockets.pop(connection_id, None)
        rooms = self._memberships.pop(connection_id, set())
        for room_id in rooms:
            self._discard_member(room_id, connection_id)
        return rooms

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._sockets

    def connection_count(self) -> int:
        return len(self._sockets)

    # ============================================================
    # ROOM MEMBERSHIP
    # ============================================================

    def join(self, connection_id: str, room_id) -> None:
        self._rooms.setdefault(room_id, set()).add(connection_id)
        self._memberships.setdefault(connection_id, set()).add(room_id)

    def leave(self, connection_id: str, room_id) -> None:
        self._discard_member(room_id, connection_id)
        joined = self._memberships.get(connection_id)
        if joined is not None:
            joined.discard(room_id)

    def _discard_member(self, room_id, connection_id: str) -> None:
        members = self._rooms.get(room_id)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room_id]

    def members(self, room_id) -> Set[str]:
        return set(self._rooms.get(room_id, ()))

    def rooms_of(self, connection_id: str) -> Set[str]:
        return set(self._memberships.get(connection_id, ()))

    def room_count(self) -> int:
        return len(self._rooms)

    # ============================================================
    # DELIVERY
    # ============================================================

    async def send(self, connection_id: str, event, payload) -> bool:
        """Deliver one frame to a single connection; False if it could not be sent"""
        ws = self._sockets.get(connection_id)
        if ws is None:
            return False
        try:
            await asyncio.wait_for(ws.send_json(frame(event, payload)), self.send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.debug(f"Send to {connection_id} timed out after {self.send_timeout:g}s")
            return False
        except Exception as e:
            logger.debug(f"Failed to send to {connection_id}: {e}")
            return False

    async def broadcast(self, event, payload) -> List[str]:
        """Deliver to every open connection"""
        return await self._deliver(list(self._sockets), event, payload)

    async def broadcast_to_room(self, room_id, event, payload,
                                exclude: Optional[str] = None) -> List[str]:
        """Deliver to the room's subscribers, skipping ``exclude`` if given"""
        targets = [cid for cid in self._rooms.get(room_id, ()) if cid != exclude]
        return await self._deliver(targets, event, payload)

    async def broadcast_to_room_including_self(self, room_id, event, payload) -> List[str]:
        return await self.broadcast_to_room(room_id, event, payload)

    async def _deliver(self, targets: List[str], event, payload) -> List[str]:
        """Send to every target at once; return the ones that failed"""
        results = await asyncio.gather(
            *(self.send(connection_id, event, payload) for connection_id in targets)
        )
        return [cid for cid, ok in zip(targets, results) if not ok]
