"""
Logging setup for the handy_custom package
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from .config import Settings, get_settings

TEXT_FORMAT = "[Handy Filters %(levelname)s] %(asctime)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per log line"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """
    Install a single stream handler on the package logger.

    Calling this again replaces the previous handler, so the CLI and tests can
    reconfigure freely.
    """
    settings = settings or get_settings()
    logger = logging.getLogger("handy_custom")

    for handler in list(logger.handlers):
        if getattr(handler, "_handy_custom", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._handy_custom = True
    if settings.log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)

    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logger.setLevel(level)
    logger.propagate = False
    return logger
