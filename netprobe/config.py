# config.py
"""
Runtime settings for netprobe, read from the environment once at startup.

The resulting Settings object is stored on the Flask app and handed to the
probes explicitly; nothing below is consulted at request time.
"""

import os
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger("config")

DEFAULT_PORT = 3001
DEFAULT_CONNECT_TIMEOUT = 10  # seconds
DEFAULT_TLS_PORT = 443
DEFAULT_DB_DRIVER = "mysql+pymysql"
DEFAULT_DB_PORT = 3306
DEFAULT_RATE_LIMIT = "30 per minute"


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default


def _log_level_env(env: Mapping[str, str], name: str, default: str = "INFO") -> str:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    level = raw.strip().upper()
    # getLevelName maps known names to their numeric level
    if not isinstance(logging.getLevelName(level), int):
        logger.warning("Ignoring unknown %s=%r, using %s", name, raw, default)
        return default
    return level


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT
    tls_port: int = DEFAULT_TLS_PORT
    db_driver: str = DEFAULT_DB_DRIVER
    db_port: int = DEFAULT_DB_PORT
    rate_limit: str = DEFAULT_RATE_LIMIT
    redis_url: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        port = _int_env(env, "PORT", _int_env(env, "VITE_BACKEND_PORT", DEFAULT_PORT))
        return cls(
            host=env.get("NETPROBE_HOST", "0.0.0.0"),
            port=port,
            connect_timeout=_int_env(env, "NETPROBE_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT),
            tls_port=_int_env(env, "NETPROBE_TLS_PORT", DEFAULT_TLS_PORT),
            db_driver=env.get("NETPROBE_DB_DRIVER", DEFAULT_DB_DRIVER),
            db_port=_int_env(env, "NETPROBE_DB_PORT", DEFAULT_DB_PORT),
            rate_limit=env.get("NETPROBE_RATE_LIMIT", DEFAULT_RATE_LIMIT),
            redis_url=env.get("REDIS_URL") or None,
            log_level=_log_level_env(env, "NETPROBE_LOG_LEVEL"),
        )
