"""
Event names carried in the ``type`` field of every WebSocket frame
"""
from enum import Enum


class Inbound(str, Enum):
    USER_ONLINE = "user-online"
    JOIN_CHAT = "join-chat"
    LEAVE_CHAT = "leave-chat"
    TYPING_START = "typing-start"
    TYPING_STOP = "typing-stop"
    SEND_MESSAGE = "send-message"


class Outbound(str, Enum):
    CONNECTED = "connected"
    USER_STATUS_CHANGE = "user-status-change"
    USER_TYPING = "user-typing"
    NEW_MESSAGE = "new-message"


def frame(event, data) -> dict:
    """Build an outbound frame"""
    name = event.value if isinstance(event, Enum) else event
    return {"type": name, "data": data}
