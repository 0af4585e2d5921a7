"""Logging configuration for the fsreclaim package"""

import logging
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def configure_logging(log_level: str = 'INFO', log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the ``fsreclaim`` package logger.

    Handlers are only attached once, so calling this repeatedly just
    adjusts the level.

    Args:
        log_level: Logging level string
        log_file: Optional file to write logs to in addition to stderr

    Returns:
        The package logger
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    package_logger = logging.getLogger('fsreclaim')
    package_logger.setLevel(numeric_level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            package_logger.addHandler(file_handler)

    for handler in package_logger.handlers:
        handler.setLevel(numeric_level)

    package_logger.debug(f"Logging configured at {log_level} level")
    return package_logger
