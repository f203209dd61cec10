"""
Logging Configuration for the Projection Engine.

Every module obtains its logger through :func:`get_logger` so that all
output shares one format. Domain rejections (points a projection cannot
transform) are reported at WARNING level; solver iteration counts and
identity datum shifts at DEBUG level.
"""

import logging
import sys


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Get a logger configured for the projection engine.

    Parameters
    ----------
    name : str
        Logger name (typically __name__).
    level : int
        Logging level.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


def set_log_level(level: int, prefix: str = "geospatial") -> None:
    """Change the level of every engine logger under ``prefix``.

    Parameters
    ----------
    level : int
        New logging level, e.g. ``logging.DEBUG`` to see solver iterations.
    prefix : str
        Logger name prefix. Loggers are named after their modules.
    """
    manager = logging.Logger.manager
    for name, logger in list(manager.loggerDict.items()):
        if isinstance(logger, logging.Logger) and name.startswith(prefix):
            logger.setLevel(level)
