"""
In-memory runtime state for the relay

Everything lives on one asyncio loop; mutations happen between awaits, so
no extra locking is needed. All state is lost on restart.
"""
import time
from dataclasses import dataclass

from .hub import DEFAULT_SEND_TIMEOUT, ConnectionHub
from .registry import ConnectionRegistry
from .router import EventRouter
from .typing_tracker import DEFAULT_TYPING_TIMEOUT, TypingTracker


@dataclass
class RelayState:
    hub: ConnectionHub
    registry: ConnectionRegistry
    typing: TypingTracker
    router: EventRouter

    @classmethod
    def create(cls, typing_timeout: float = DEFAULT_TYPING_TIMEOUT,
               send_timeout: float = DEFAULT_SEND_TIMEOUT,
               clock=time.monotonic) -> "RelayState":
        hub = ConnectionHub(send_timeout=send_timeout)
        registry = ConnectionRegistry(hub)
        typing = TypingTracker(hub, timeout=typing_timeout, clock=clock)
        router = EventRouter(hub, registry, typing)
        return cls(hub=hub, registry=registry, typing=typing, router=router)

    def snapshot(self) -> dict:
        return {
            "connections": self.hub.connection_count(),
            "online_users": len(self.registry),
            "rooms": self.hub.room_count(),
            "typing": len(self.typing),
        }
