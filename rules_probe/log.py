import logging
from typing import Optional

from .config import LOG_LEVEL

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'

_handler = logging.StreamHandler()
_handler.setFormatter(logging.Formatter(LOG_FORMAT))


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach the console handler to the `rules_probe` logger tree.

    Safe to call more than once; the handler is only added the first time.
    """
    logger = logging.getLogger('rules_probe')
    logger.setLevel((level or LOG_LEVEL).upper())
    if _handler not in logger.handlers:
        logger.addHandler(_handler)
    return logger
