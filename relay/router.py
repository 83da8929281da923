"""
Inbound event dispatch and per-connection lifecycle

A connection is accepted (``connect``), may identify itself with
``user-online`` and then sends any mix of events; nothing requires the
identification to come first. ``disconnect`` tears down registry, typing
and room state in that order.
"""
import logging
from typing import Optional

from .events import Inbound, Outbound
from .hub import ConnectionHub
from .registry import ConnectionRegistry
from .typing_tracker import TypingTracker
from .utils import generate_connection_id, is_identity

logger = logging.getLogger("chat_relay.router")


class EventRouter:

    def __init__(self, hub: ConnectionHub, registry: ConnectionRegistry,
                 typing: TypingTracker):
        self.hub = hub
        self.registry = registry
        self.typing = typing
        self._handlers = {
            Inbound.USER_ONLINE.value: self.on_user_online,
            Inbound.JOIN_CHAT.value: self.on_join_chat,
            Inbound.LEAVE_CHAT.value: self.on_leave_chat,
            Inbound.TYPING_START.value: self.on_typing_start,
            Inbound.TYPING_STOP.value: self.on_typing_stop,
            Inbound.SEND_MESSAGE.value: self.on_send_message,
        }

    # ============================================================
    # LIFECYCLE
    # ============================================================

    async def connect(self, ws, connection_id: Optional[str] = None) -> str:
        connection_id = connection_id or generate_connection_id()
        while self.hub.is_connected(connection_id):
            connection_id = generate_connection_id()
        self.hub.attach(connection_id, ws)
        logger.info(f"Socket connected: {connection_id}")
        await self.hub.send(connection_id, Outbound.CONNECTED, {"connectionId": connection_id})
        return connection_id

    async def disconnect(self, connection_id: str) -> Optional[str]:
        """Run disconnect cleanup; return the user that went offline, if any"""
        logger.info(f"Socket disconnected: {connection_id}")
        # the closing socket must not receive its own offline notice
        rooms = self.hub.detach(connection_id)
        user_id = await self.registry.remove_by_connection(connection_id)
        if user_id is not None:
            self.typing.clear(user_id)
        if rooms:
            logger.debug(f"{connection_id} dropped from {len(rooms)} chat(s)")
        return user_id

    # ============================================================
    # DISPATCH
    # ============================================================

    async def dispatch(self, connection_id: str, event: str, data=None) -> bool:
        """Route one inbound event; False if it was unknown or failed"""
        handler = self._handlers.get(event)
        if handler is None:
            logger.debug(f"Ignoring unknown event {event!r} from {connection_id}")
            return False
        try:
            await handler(connection_id, data)
            return True
        except Exception:
            logger.exception(f"Error handling {event!r} from {connection_id}")
            return False

    async def on_user_online(self, connection_id: str, user_id) -> None:
        if not is_identity(user_id):
            return
        await self.registry.set_online(user_id, connection_id)

    async def on_join_chat(self, connection_id: str, chat_id) -> None:
        if not is_identity(chat_id):
            return
        self.hub.join(connection_id, chat_id)
        logger.info(f"Socket {connection_id} joined chat: {chat_id}")

    async def on_leave_chat(self, connection_id: str, chat_id) -> None:
        if not is_identity(chat_id):
            return
        self.hub.leave(connection_id, chat_id)
        logger.info(f"Socket {connection_id} left chat: {chat_id}")

    async def on_typing_start(self, connection_id: str, data) -> None:
        fields = _typing_fields(data)
        if fields is None:
            return
        await self.typing.start(*fields, exclude=connection_id)

    async def on_typing_stop(self, connection_id: str, data) -> None:
        fields = _typing_fields(data)
        if fields is None:
            return
        await self.typing.stop(*fields, exclude=connection_id)

    async def on_send_message(self, connection_id: str, message) -> None:
        if not isinstance(message, dict):
            logger.debug(f"Dropping malformed message from {connection_id}")
            return
        if not all(key in message for key in ("chatId", "content", "userId")):
            logger.debug(f"Dropping incomplete message from {connection_id}")
            return
        chat_id = message["chatId"]
        if not is_identity(chat_id):
            return

        logger.info(f"New message in chat {chat_id} from user {message['userId']}: {message['content']}")
        failed = await self.hub.broadcast_to_room_including_self(
            chat_id, Outbound.NEW_MESSAGE,
            {"chatId": chat_id, "message": message}
        )
        if failed:
            logger.debug(f"Message in chat {chat_id} not delivered to {len(failed)} connection(s)")


def _typing_fields(data):
    """Return (userId, chatId) when both are usable, else None"""
    if not isinstance(data, dict):
        return None
    user_id = data.get("userId")
    chat_id = data.get("chatId")
    if not (is_identity(user_id) and is_identity(chat_id)):
        return None
    return user_id, chat_id
