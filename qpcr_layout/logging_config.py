"""
Logging for the plate layout service.

The core modules log under 'qpcr_layout.*' (matrix shapes, splits and
placements at DEBUG, one line per finished layout at INFO) and app.py logs
rejected requests under 'qpcr_layout.app'. setup_logging() wires all of them
to stdout and, when QPCR_LOG_FILE is set, to an appended log file.
"""
import logging
import sys
from typing import List, Optional, Union

from qpcr_layout import config

LOG_FORMAT = '%(asctime)s %(levelname)-7s [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(level: Union[int, str, None] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Route the 'qpcr_layout' loggers to stdout (and optionally a file).

    level defaults to QPCR_LOG_LEVEL, log_file to QPCR_LOG_FILE. Calling it
    again replaces the handlers, so the Flask reloader does not double them.
    """
    level = config.LOG_LEVEL if level is None else level
    log_file = config.LOG_FILE if log_file is None else log_file

    logger = logging.getLogger("qpcr_layout")
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='a', encoding='utf-8'))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("Layout service logging at %s%s", logging.getLevelName(logger.level),
                 f", also to {log_file}" if log_file else "")
    return logger
