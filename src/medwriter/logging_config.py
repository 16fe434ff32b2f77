"""Application logging configuration utilities."""

from __future__ import annotations

import json
import logging
import logging.config
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


class MinimalJSONFormatter(logging.Formatter):
    """Serialize log records to one JSON object per line."""

    _RESERVED_KEYS = frozenset(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited
        timestamp = (
            datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z")
        )

        payload: dict[str, Any] = {
            "ts": timestamp,
            "level": record.levelname,
            "logger": record.name,
        }

        if isinstance(record.msg, dict):
            payload.update(record.msg)
        else:
            message = record.getMessage()
            if message:
                payload["message"] = message

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in self._RESERVED_KEYS or key.startswith("_"):
                continue
            payload[key] = value

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(log_dir: str | Path | None = None, level: str | None = None) -> None:
    """Install JSON logging for the service and the analysis audit trail."""

    log_path = Path(log_dir or os.getenv("MEDWRITER_LOG_DIR", "logs"))
    log_path.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": MinimalJSONFormatter}},
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                },
                "analysis_audit": {
                    "class": "logging.FileHandler",
                    "filename": str(log_path / "analysis_audit.log"),
                    "mode": "a",
                    "encoding": "utf-8",
                    "formatter": "json",
                },
            },
            "root": {
                "level": (level or os.getenv("LOG_LEVEL", "INFO")).upper(),
                "handlers": ["default"],
            },
            "loggers": {
                "medwriter.analysis.audit": {
                    "level": "INFO",
                    "handlers": ["analysis_audit"],
                    "propagate": False,
                }
            },
        }
    )
