"""Logging setup for the FEMS ingestor service."""

import json
import logging
import sys
import time

from ..config.settings import LoggingConfig

CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
CONSOLE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Edge log levels that have no stdlib counterpart.
LEVEL_ALIASES = {
    "TRACE": logging.DEBUG,
}

# Attributes every LogRecord carries; anything else was passed via ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def resolve_level(name: str) -> int:
    """Map a configured level name to a ``logging`` level number."""
    key = name.strip().upper()
    if key in LEVEL_ALIASES:
        return LEVEL_ALIASES[key]
    level = logging.getLevelName(key)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


class JSONFormatter(logging.Formatter):
    """One JSON object per record, UTC timestamps, ``extra`` fields inlined."""

    converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S") + f".{int(record.msecs):03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update(
            (key, value) for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Console formatter; colours the level name when writing to a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: "36",
        logging.INFO: "32",
        logging.WARNING: "33",
        logging.ERROR: "31",
        logging.CRITICAL: "35",
    }

    def __init__(self, use_colors: bool = False):
        super().__init__(fmt=CONSOLE_FORMAT, datefmt=CONSOLE_DATEFMT)
        self.use_colors = use_colors

    def formatMessage(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno) if self.use_colors else None
        if color is None:
            return super().formatMessage(record)
        plain = record.levelname
        record.levelname = f"\033[{color}m{plain}\033[0m"
        try:
            return super().formatMessage(record)
        finally:
            record.levelname = plain


class ServiceContextFilter(logging.Filter):
    """Stamp every record with the owning service name."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def filter(self, record):
        record.service = self.service_name
        return True


def _build_handler(output: str) -> logging.Handler:
    target = output.lower()
    if target == "stdout":
        return logging.StreamHandler(sys.stdout)
    if target == "stderr":
        return logging.StreamHandler(sys.stderr)
    return logging.FileHandler(output)


def setup_logging(config: LoggingConfig, service_name: str = "fems-ingestor") -> logging.Handler:
    """
    Route all service logging through a single root handler.

    ``config.format`` selects JSON or console text, ``config.output`` is
    ``stdout``, ``stderr`` or a file path. Returns the installed handler.
    """
    handler = _build_handler(config.output)
    if config.format.lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        stream = getattr(handler, "stream", None)
        handler.setFormatter(TextFormatter(use_colors=bool(stream is not None and stream.isatty())))
    handler.addFilter(ServiceContextFilter(service_name))

    root_logger = logging.getLogger()
    root_logger.setLevel(resolve_level(config.level))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={config.level}, format={config.format}, "
        f"output={config.output}, service={service_name}"
    )
    return handler
