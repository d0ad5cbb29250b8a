import sys
from typing import Optional

from loguru import logger

_log_format = ("<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | "
               "{extra} | <level>{message}</level>")


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None) -> None:
    """Replace loguru's default sink with a stderr sink at level, plus an optional file."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_log_format)
    if log_file:
        logger.add(log_file, rotation="1 MB", level="INFO")
