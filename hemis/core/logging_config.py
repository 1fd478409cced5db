"""
Logging setup
"""
import logging
import sys

from hemis.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


def setup_logging(level: str = None):
    """
    Configure root logger once.
    Safe to call multiple times - handlers are replaced, not stacked.
    """
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # Too chatty at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
