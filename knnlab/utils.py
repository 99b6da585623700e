import logging
from typing import IO, Optional, Union

from knnlab.errors import InvalidInputError


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def resolve_log_level(log_level: Union[str, int]) -> int:
    """
    Turn a level name ('info', 'DEBUG') or a numeric level into an int.

    Raises:
        InvalidInputError: If the name is not a standard logging level
    """
    if isinstance(log_level, int) and not isinstance(log_level, bool):
        return log_level

    level = logging.getLevelName(str(log_level).strip().upper())
    if not isinstance(level, int):
        raise InvalidInputError(f"Unknown log level: {log_level!r}")
    return level


def setup_logging(log_level: Union[str, int] = "INFO", stream: Optional[IO] = None) -> logging.Logger:
    """
    Configure logging for the knnlab package.

    Module loggers are children of "knnlab", so one console handler here
    covers the whole package. Calling again only changes the level, or
    points the existing handler at a new stream.

    Args:
        log_level: Logging level name or number (default: INFO)
        stream: Output stream for the console handler (default: sys.stderr)

    Returns:
        The configured "knnlab" logger
    """
    level = resolve_log_level(log_level)

    logger = logging.getLogger("knnlab")
    logger.setLevel(level)

    # Avoid duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level)
        if stream is not None and isinstance(handler, logging.StreamHandler):
            handler.setStream(stream)

    return logger
