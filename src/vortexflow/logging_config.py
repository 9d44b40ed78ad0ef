"""Logging setup for applications driving vortexflow.

The library only creates module loggers below the ``vortexflow`` namespace and
never installs handlers on import:

- ``vortexflow.boundary``: image rebuilds and suction parameters (DEBUG),
  vorticity-flux decisions (INFO).
- ``vortexflow.sheets``: sheet truncation (DEBUG).
"""
import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """Send ``vortexflow`` records to stdout and, optionally, to `log_file`.

    Handlers installed by an earlier call are closed and replaced.
    """
    logger = logging.getLogger("vortexflow")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
