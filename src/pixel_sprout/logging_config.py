from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s: %(message)s"
LOG_LEVEL_ENV = "PIXEL_SPROUT_LOG_LEVEL"


def _resolve_level(level: Union[int, str, None], default: int) -> int:
    if level is None:
        return default
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else default


def configure_logging(level: Union[int, str, None] = None, *, force: bool = False) -> logging.Logger:
    """Configure the ``pixel_sprout`` logger with a single stdout handler.

    ``PIXEL_SPROUT_LOG_LEVEL`` overrides the requested level. Calling this more
    than once is safe; an existing handler is reused unless ``force`` is set.
    """
    env_level: Optional[str] = os.getenv(LOG_LEVEL_ENV)
    effective = _resolve_level(env_level, _resolve_level(level, logging.INFO))

    logger = logging.getLogger("pixel_sprout")
    logger.setLevel(effective)

    if force:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)

    if not logger.handlers:
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
