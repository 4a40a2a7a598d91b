## common/logging_config.py

import logging
import os

LOGGER_NAME = "ops-dashboard"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level=None):
    """
    Set up the shared `ops-dashboard` logger used by the clients, the metrics
    engine and the API. Level comes from LOGLEVEL (default INFO) unless given.
    Calling it again only adjusts the level; the stream handler is added once.
    """
    if level is None:
        level = getattr(logging, os.getenv("LOGLEVEL", "INFO").upper(), logging.INFO)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setLevel(level)
    return logger
