"""
Logging configuration for the log processor
"""

import logging
import os
import sys


def setup_logging(level: str = None) -> logging.Logger:
    """
    Set up logging configuration for the log processor

    Logs are written to stderr, stdout is reserved for decoded events.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger instance
    """
    if level is None:
        level = os.environ.get('LOG_LEVEL', 'INFO')
    level = level.upper()

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
        force=True
    )

    logger = logging.getLogger('log_processor')
    logger.setLevel(getattr(logging, level, logging.INFO))

    # botocore is chatty at DEBUG
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    return logger
