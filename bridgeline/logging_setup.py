from __future__ import annotations

import logging
from typing import IO, Optional

LOGGER_NAME = "bridgeline"
LOG_FORMAT = "ts=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"

_HANDLER: Optional[logging.Handler] = None


def configure_logging(
    level: int = logging.INFO, stream: Optional[IO[str]] = None
) -> logging.Logger:
    """
    Attach one key=value formatted stream handler to the bridgeline logger.

    Calling again only adjusts the level; a second handler is never added.
    """
    global _HANDLER
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if _HANDLER is None:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        _HANDLER = handler

    return logger
