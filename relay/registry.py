"""
Online user registry: user_id <-> connection_id

One connection per user. A second ``user-online`` from another connection
replaces the first mapping (last writer wins).
"""
import logging
from typing import Dict, List, Optional

from .events import Outbound
from .hub import ConnectionHub

logger = logging.getLogger("chat_relay.registry")


class ConnectionRegistry:

    def __init__(self, hub: ConnectionHub):
        self.hub = hub
        self._by_user: Dict[str, str] = {}
        # reverse index kept in step with _by_user
        self._by_connection: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._by_user)

    async def set_online(self, user_id, connection_id: str) -> None:
        """Map user to connection and announce it to everyone, even if already online"""
        previous = self._by_user.get(user_id)
        if previous is not None and previous != connection_id:
            self._by_connection.pop(previous, None)

        stale_user = self._by_connection.get(connection_id)
        if stale_user is not None and stale_user != user_id:
            # one user per connection
            del self._by_user[stale_user]
            logger.info(f"User {stale_user} is offline (replaced on {connection_id})")
            await self.hub.broadcast(
                Outbound.USER_STATUS_CHANGE,
                {"userId": stale_user, "status": "offline"}
            )

        self._by_user[user_id] = connection_id
        self._by_connection[connection_id] = user_id
        logger.info(f"User {user_id} is online ({connection_id})")

        await self.hub.broadcast(
            Outbound.USER_STATUS_CHANGE,
            {"userId": user_id, "status": "online"}
        )

    def lookup_user_by_connection(self, connection_id: str) -> Optional[str]:
        return self._by_connection.get(connection_id)

    async def remove_by_connection(self, connection_id: str) -> Optional[str]:
        """Drop whichever user currently maps to this connection; announce offline if found"""
        user_id = self._by_connection.pop(connection_id, None)
        if user_id is None:
            return None

        del self._by_user[user_id]
        logger.info(f"User {user_id} is offline")

        await self.hub.broadcast(
            Outbound.USER_STATUS_CHANGE,
            {"userId": user_id, "status": "offline"}
        )
        return user_id

    def is_online(self, user_id) -> bool:
        return user_id in self._by_user

    def connection_of(self, user_id) -> Optional[str]:
        return self._by_user.get(user_id)

    def online_users(self) -> List[str]:
        return list(self._by_user)
