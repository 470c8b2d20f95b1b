"""
log_config.py - loguru sink configuration

Modules log through ``from loguru import logger``; this only decides where
the records go and at which level.
"""
import sys

from loguru import logger

_CONFIGURED = False

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with a single stderr sink at *level*."""
    global _CONFIGURED
    if _CONFIGURED:
        return
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_FORMAT)
    _CONFIGURED = True
