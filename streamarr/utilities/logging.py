"""Logging setup for Streamarr.

Modules log through ``logging.getLogger(__name__)`` with a bracketed
subsystem tag leading the message:

    logger.info("[RESOLVE] %r -> stream %d via %s", name, stream_id, stage)

setup_logging() installs the handlers once per process. Levels, directory
and output format come from Config (LOG_LEVEL, LOG_DIR, LOG_FORMAT).
"""

import json
import logging
import re
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from streamarr.config import VERSION, Config, get_config

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 10 * 1024 * 1024

# Third-party loggers kept at WARNING unless something goes wrong
QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "httpx", "httpcore", "watchfiles")

_TAG_RE = re.compile(r"^\[(?P<tag>[A-Z_]+)\]\s*")

_configured = False


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with the message tag split out."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        tag = None
        match = _TAG_RE.match(message)
        if match:
            tag = match.group("tag")
            message = message[match.end() :]

        entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "tag": tag,
            "message": message,
            "line": record.lineno,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _rotating_handler(path: Path, level: int, backups: int, formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path, maxBytes=MAX_LOG_BYTES, backupCount=backups, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(config: Config | None = None) -> None:
    """Install console, main-file and error-file handlers on the root logger.

    Only the first call has any effect.
    """
    global _configured
    if _configured:
        return

    config = config or get_config()
    level = _level(config.log_level)
    if config.log_json:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, DATE_FORMAT)

    config.log_dir.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()
    root.addHandler(console)
    # Main file keeps resolver debug output for diagnosing missed matches
    root.addHandler(
        _rotating_handler(config.log_dir / "streamarr.log", logging.DEBUG, 5, formatter)
    )
    root.addHandler(
        _rotating_handler(config.log_dir / "streamarr_errors.log", logging.ERROR, 3, formatter)
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)

    _configured = True

    logger = logging.getLogger("streamarr")
    logger.info("[STARTUP] Streamarr %s logging at %s", VERSION, logging.getLevelName(level))
    logger.info(
        "[STARTUP] Log directory %s (%s)", config.log_dir, "json" if config.log_json else "text"
    )
