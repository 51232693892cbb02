"""
Logging configuration
"""

import logging
import logging.config
import json
import os
from datetime import datetime, timezone
from typing import Dict, Any

from drawn_to_run.config import settings

LOG_FILE = "logs/app.log"


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record, carrying the request id when one is bound
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None)
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def _handlers() -> Dict[str, Dict[str, Any]]:
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": settings.LOG_FORMAT if settings.LOG_FORMAT in ("json", "plain") else "json",
            "stream": "ext://sys.stdout"
        }
    }

    # Tests only log to the console
    if not settings.is_testing:
        os.makedirs(os.path.dirname(LOG_FILE), exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json",
            "filename": LOG_FILE,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5
        }

    return handlers


def setup_logging():
    """
    Configure the drawn_to_run logger tree; LOG_FORMAT picks json or plain console output
    """
    handlers = _handlers()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"
            },
            "json": {
                "()": JSONFormatter
            }
        },
        "handlers": handlers,
        "loggers": {
            "drawn_to_run": {
                "level": settings.LOG_LEVEL,
                "handlers": list(handlers),
                "propagate": False
            },
            # Engine echo is controlled by DB_ECHO; keep the rest quiet
            "sqlalchemy": {
                "level": "WARNING"
            }
        },
        "root": {
            "level": settings.LOG_LEVEL,
            "handlers": ["console"]
        }
    })


class RequestLoggerAdapter(logging.LoggerAdapter):
    """
    Stamps the adapter's context (request_id) onto every record it emits
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs
