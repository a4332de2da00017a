"""Process-level helpers shared by the entry points: logging and the run lock."""

from __future__ import annotations

import fcntl
import logging
import sys
from contextlib import contextmanager
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Iterator, Optional

LOGGER_NAME = "ddns_watch"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def configure_logging(log_file: Optional[Path], level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_file,
            when="midnight",
            interval=1,
            backupCount=14,
            encoding="utf-8",
            utc=True,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    return logger


class LockHeld(RuntimeError):
    pass


@contextmanager
def lock_execution(path: Path, blocking: bool = False) -> Iterator[None]:
    """Exclusive flock on ``path`` for the duration of one invocation."""

    path.parent.mkdir(parents=True, exist_ok=True)
    flags = fcntl.LOCK_EX if blocking else fcntl.LOCK_EX | fcntl.LOCK_NB
    with path.open("w", encoding="utf-8") as handle:
        try:
            fcntl.flock(handle.fileno(), flags)
        except BlockingIOError:
            raise LockHeld(f"another ddns run holds {path}")
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
