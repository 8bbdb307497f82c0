"""
Logging Configuration
"""

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"


def configure_logging(level: str = None) -> None:
    """
    Configure root logging once for the process.

    Args:
        level: Log level name, defaults to the LOG_LEVEL environment variable
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
