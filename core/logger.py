from __future__ import annotations

import logging
import sys

LOGGER_NAME = "pixjive"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def parse_level(value: str | int | None, default: int = logging.INFO) -> int:
    if isinstance(value, int):
        return value
    if not value:
        return default
    return _LEVELS.get(str(value).strip().lower(), default)


def setup_logger(level: str | int | None = None) -> logging.Logger:
    """Create or update the project logger.

    Safe to call repeatedly: there is exactly one stderr StreamHandler on the
    base logger and its formatter is refreshed instead of adding another one.
    The level is only changed when one is given.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if level is not None or logger.level == logging.NOTSET:
        logger.setLevel(parse_level(level))

    stream_handler: logging.StreamHandler | None = None
    for h in logger.handlers:
        if getattr(h, "_pixjive_stderr", False):
            stream_handler = h
            break

    if stream_handler is None:
        stream_handler = logging.StreamHandler(stream=sys.stderr)
        stream_handler._pixjive_stderr = True  # type: ignore[attr-defined]
        logger.addHandler(stream_handler)

    stream_handler.setFormatter(
        logging.Formatter(
            fmt="[%(asctime)s] %(levelname)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    base = setup_logger()
    return base if not name else base.getChild(name)
