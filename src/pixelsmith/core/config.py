import logging
import os
from typing import Optional

TRUTHY = {"1", "true", "yes", "on"}

LEVELS_BY_DEBUG_COUNT = {
    0: logging.WARNING,
    1: logging.INFO,
}


def resolve_log_level(debug: int = 0) -> int:
    if debug > 0:
        return LEVELS_BY_DEBUG_COUNT.get(debug, logging.DEBUG)
    env = os.getenv("PIXELSMITH_LOG_LEVEL")
    if env:
        level = logging.getLevelName(env.strip().upper())
        if isinstance(level, int):
            return level
    return logging.WARNING


def resolve_overwrite(explicit: Optional[bool] = None) -> bool:
    if explicit is not None:
        return explicit
    env = os.getenv("PIXELSMITH_OVERWRITE", "")
    return env.strip().lower() in TRUTHY


def configure_logging(debug: int = 0) -> None:
    logging.basicConfig(
        level=resolve_log_level(debug),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )
