"""Logging setup shared by the API, services and scripts."""
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
HANDLER_NAME = "nutriplan-stream"


def configure_logging(level: str = "INFO") -> logging.Handler:
    """Attach a single stream handler to the package logger.

    Calling this more than once only updates the level, so the API lifespan
    and the scripts can both call it safely. Records still propagate to the
    root logger of a host application.
    """
    logger = logging.getLogger("nutriplan_app")
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    for handler in logger.handlers:
        if handler.get_name() == HANDLER_NAME:
            return handler
    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return handler
