"""
Logging helpers for the Pathfinder rule-resolution engine.
"""

import logging

logger = logging.getLogger("pathfinder-engine")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = logging.INFO) -> None:
    """Configure root logging for command-line and server entry points.

    Library code never calls this; it only uses named loggers.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.setLevel(level)
