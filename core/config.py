"""
Engine configuration from environment variables (load .env at the entry point).

- CAD_FEED_URL: upstream Socrata resource (default: Winnipeg fire/paramedic dispatch feed).
- CAD_FEED_LIMIT: max records per fetch (default 1000).
- CAD_FEED_TIMEOUT: seconds before a fetch is abandoned (default 15).
- POLL_INTERVAL_SECONDS: scheduled refresh interval (default 30).
- MAX_INCIDENTS: store retention cap (default 100).
Invalid values fall back to the default.
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger("dispatch_watch.config")

DEFAULT_FEED_URL = "https://data.winnipeg.ca/resource/yg42-q284.json"
DEFAULT_FEED_LIMIT = 1000
DEFAULT_FETCH_TIMEOUT = 15.0
DEFAULT_POLL_INTERVAL = 30.0
DEFAULT_MAX_INCIDENTS = 100


def _env_float(name: str, default: float, minimum: float) -> float:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return default
    try:
        return max(minimum, float(v.strip()))
    except ValueError:
        logger.warning("invalid %s=%r; using default %s", name, v, default)
        return default


def _env_int(name: str, default: int, minimum: int) -> int:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return default
    try:
        return max(minimum, int(v.strip()))
    except ValueError:
        logger.warning("invalid %s=%r; using default %s", name, v, default)
        return default


@dataclass(frozen=True)
class EngineConfig:
    feed_url: str = DEFAULT_FEED_URL
    feed_limit: int = DEFAULT_FEED_LIMIT
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    max_incidents: int = DEFAULT_MAX_INCIDENTS

    @classmethod
    def from_env(cls) -> "EngineConfig":
        return cls(
            feed_url=(os.environ.get("CAD_FEED_URL") or DEFAULT_FEED_URL).strip(),
            feed_limit=_env_int("CAD_FEED_LIMIT", DEFAULT_FEED_LIMIT, 1),
            fetch_timeout=_env_float("CAD_FEED_TIMEOUT", DEFAULT_FETCH_TIMEOUT, 1.0),
            poll_interval=_env_float("POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL, 1.0),
            max_incidents=_env_int("MAX_INCIDENTS", DEFAULT_MAX_INCIDENTS, 1),
        )
