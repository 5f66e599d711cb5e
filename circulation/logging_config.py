import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single stream handler to the ``circulation`` logger.

    Safe to call more than once; later calls only adjust the level.
    """
    logger = logging.getLogger("circulation")
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
