"""Console and file logging for applications embedding the designer."""
import logging
from typing import List, Optional

PACKAGE_LOGGER = "dashboard_layout"

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# Handlers added by setup_logging, so a second call can replace them
_installed: List[logging.Handler] = []


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Send the package's records to stderr, and to *log_file* when given.

    Handlers installed by the host application are left alone.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in _installed:
        logger.removeHandler(handler)
        handler.close()
    _installed.clear()

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    formatter = logging.Formatter(_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        _installed.append(handler)

    logger.setLevel(level)
    return logger
