import sys

from loguru import logger

import config

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> <level>{level: <7}</level> {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} {level: <7} {name}:{line} {message}"


def setup_logger(level=None, log_file=None):
    """Log to stderr, and to LOG_FILE as well when one is configured."""
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level or config.LOG_LEVEL)

    log_file = config.LOG_FILE if log_file is None else log_file
    if log_file:
        logger.add(log_file, format=FILE_FORMAT, level="DEBUG", rotation="10 MB")


__all__ = ["logger", "setup_logger"]
