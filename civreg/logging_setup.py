"""Root logging for the civreg server: a console line format, or one JSON object per line."""

from __future__ import annotations

import json
import logging
import logging.config

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # record names and places are often non-ASCII
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """
    Install one stream handler on the root logger.

    uvicorn is started with log_config=None, so its access and error loggers
    propagate here too.
    """
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {"format": CONSOLE_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
                "json": {"()": JsonFormatter},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_logs else "console",
                },
            },
            "loggers": {
                # warns about the file cache on every build()
                "googleapiclient.discovery_cache": {"level": "ERROR"},
            },
            "root": {"handlers": ["default"], "level": level},
        }
    )
