"""
Environment configuration
"""
import logging
import os
from dataclasses import dataclass

logger = logging.getLogger("chat_relay")

DEFAULT_PORT = 3001
DEFAULT_HOST = "0.0.0.0"
DEFAULT_TYPING_TIMEOUT_MS = 5000
DEFAULT_SWEEP_INTERVAL_MS = 5000
DEFAULT_RATE_LIMIT = 100
DEFAULT_SEND_TIMEOUT_MS = 1000


@dataclass(frozen=True)
class RelayConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    cors_origin: str = "*"
    typing_timeout: float = DEFAULT_TYPING_TIMEOUT_MS / 1000
    sweep_interval: float = DEFAULT_SWEEP_INTERVAL_MS / 1000
    send_timeout: float = DEFAULT_SEND_TIMEOUT_MS / 1000
    rate_limit_per_minute: int = DEFAULT_RATE_LIMIT
    log_level: str = "INFO"


def _env_int(name: str, default: int, env) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring non-positive {name}={raw!r}, using {default}")
        return default
    return value


def load_config(env=None) -> RelayConfig:
    """Build a RelayConfig from environment variables (defaults when unset)"""
    if env is None:
        env = os.environ

    return RelayConfig(
        host=env.get("SERVER_HOST") or DEFAULT_HOST,
        port=_env_int("PORT", DEFAULT_PORT, env),
        cors_origin=env.get("CORS_ORIGIN") or "*",
        typing_timeout=_env_int("TYPING_TIMEOUT_MS", DEFAULT_TYPING_TIMEOUT_MS, env) / 1000,
        sweep_interval=_env_int("TYPING_SWEEP_INTERVAL_MS", DEFAULT_SWEEP_INTERVAL_MS, env) / 1000,
        send_timeout=_env_int("SEND_TIMEOUT_MS", DEFAULT_SEND_TIMEOUT_MS, env) / 1000,
        rate_limit_per_minute=_env_int("RATE_LIMIT_PER_MINUTE", DEFAULT_RATE_LIMIT, env),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
    )
