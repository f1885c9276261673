"""Runtime configuration read from environment variables."""

import logging
import os

log = logging.getLogger(__name__)


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring %s=%r: not an integer", name, raw)
        return default


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("Ignoring %s=%r: not a number", name, raw)
        return default


HOST = os.environ.get("HOST", "127.0.0.1")
PORT = env_int("PORT", 5050)

LOG_LEVEL = os.environ.get("NANOMAPS_LOG_LEVEL", "INFO").upper()
LOG_DIR = os.environ.get("NANOMAPS_LOG_DIR") or None

TILE_SOURCE = os.environ.get("NANOMAPS_TILE_SOURCE", "osm")
TILE_TIMEOUT = env_float("NANOMAPS_TILE_TIMEOUT", 10.0)
TILE_CACHE_SIZE = env_int("NANOMAPS_TILE_CACHE_SIZE", 256)

USER_AGENT = os.environ.get("NANOMAPS_USER_AGENT", "nanomaps/0.1 (map viewport renderer)")

# Largest width/height the HTTP service will render.
MAX_VIEW_PX = env_int("NANOMAPS_MAX_VIEW_PX", 4096)
