from __future__ import annotations

import logging
import os
import sys
import time
import uuid
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOGGER_NAME = "mindspark"

LOG_FORMAT = (
    "%(asctime)s %(levelname)-8s %(name)s "
    "pid=%(process)d request_id=%(request_id)s src=%(filename)s:%(lineno)d "
    "%(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# One id per HTTP request; streamed bodies keep the id of the request that opened them.
REQUEST_ID: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.request_id = REQUEST_ID.get("-")
        return True


class LevelColorFormatter(logging.Formatter):
    """Console formatter that colors the level name. Plain text when color is off."""

    _RESET = "\x1b[0m"
    _COLORS = {
        logging.DEBUG: "\x1b[36m",
        logging.INFO: "\x1b[32m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[35m",
    }

    def __init__(self, *args, enable_color: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.enable_color = enable_color

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        if not self.enable_color:
            return line
        color = self._COLORS.get(record.levelno)
        if color is None:
            return line
        return line.replace(record.levelname, f"{color}{record.levelname}{self._RESET}", 1)


def _color_enabled(stream) -> bool:
    if os.getenv("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=10 * 1024 * 1024,
        backupCount=10,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        LevelColorFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT, enable_color=_color_enabled(sys.stdout))
    )
    return handler


def configure_logging(
    *,
    log_dir: str | Path | None = None,
    log_file: str = "mindspark.log",
    level: str = "INFO",
) -> logging.Logger:
    """
    Return the service logger, configuring it on first call.

    Writes to a rotating file under `log_dir` (falls back to $LOG_DIR, then ./logs) and,
    unless LOG_CONSOLE=0, to stdout. $LOG_LEVEL overrides `level`.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if getattr(logger, "_configured", False):
        return logger

    numeric_level = logging.getLevelNamesMapping().get(os.getenv("LOG_LEVEL", level).upper(), logging.INFO)
    logger.setLevel(numeric_level)
    logger.propagate = False

    directory = Path(log_dir or os.getenv("LOG_DIR", "logs"))
    directory.mkdir(parents=True, exist_ok=True)

    handlers = [_file_handler(directory / log_file, numeric_level)]
    if os.getenv("LOG_CONSOLE", "1") != "0":
        handlers.append(_console_handler(numeric_level))

    request_filter = RequestIdFilter()
    for handler in handlers:
        handler.addFilter(request_filter)
        logger.addHandler(handler)

    logger._configured = True  # type: ignore[attr-defined]
    return logger


def set_request_id(request_id: Optional[str] = None) -> str:
    rid = request_id or str(uuid.uuid4())
    REQUEST_ID.set(rid)
    return rid


def clear_request_id() -> None:
    REQUEST_ID.set("-")


class log_request:
    """
    Times a block and logs its outcome:
      with log_request(logger, "resolve_metadata"):
          ...
    Exceptions are logged at warning level and re-raised.
    """

    def __init__(self, logger: logging.Logger, name: str):
        self.logger = logger
        self.name = name
        self.start = 0.0

    def __enter__(self):
        self.start = time.perf_counter()
        self.logger.debug("start %s", self.name)
        return self

    def __exit__(self, exc_type, exc, tb):
        dur_ms = int((time.perf_counter() - self.start) * 1000)
        if exc is None:
            self.logger.info("%s ok duration_ms=%s", self.name, dur_ms)
        else:
            self.logger.warning("%s failed duration_ms=%s error=%s", self.name, dur_ms, exc)
        return False
