"""
Utility functions for connection identity generation and payload checks
"""
import random
import string


def generate_connection_id(length: int = 12) -> str:
    """Generate a random connection ID"""
    alphabet = string.ascii_lowercase + string.digits
    return "conn_" + "".join(random.choice(alphabet) for _ in range(length))


def is_identity(value) -> bool:
    """True for a usable user/room identity: a non-empty string or a non-zero int"""
    if isinstance(value, bool):
        return False
    return isinstance(value, (str, int)) and bool(value)
