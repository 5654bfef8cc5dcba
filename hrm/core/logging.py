# hrm/core/logging.py
import logging

from hrm.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging() -> logging.Logger:
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    # Configure root once
    logging.basicConfig(level=level, format=LOG_FORMAT)

    logger = logging.getLogger("hrm")
    logger.setLevel(level)
    return logger
