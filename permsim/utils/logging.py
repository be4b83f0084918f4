"""permsim logging utilities.

Library modules only ever call :func:`get_logger`. Applications and test
harnesses that want to see the store's transitions call
:func:`configure_logging` once; file output is JSON so recorded sessions can
be grepped or loaded back, while the console goes through Rich.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

# Structured fields attached through ``extra=`` anywhere in the package.
CONTEXT_FIELDS = (
    "descriptor",
    "from_status",
    "to_status",
    "dismissals",
    "result",
    "index",
    "path",
)

LOG_FILE_NAME = "permsim.log"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class JsonFormatter(logging.Formatter):
    """Render one record per line as a JSON object.

    A transition line carries the descriptor and both statuses next to the
    message, e.g.::

        {"time": "...", "level": "DEBUG", "logger": "permsim.core.store",
         "message": "permission status changed", "descriptor": {"name": "camera"},
         "from_status": "PROMPT", "to_status": "GRANTED"}
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: Dict[str, Any] = {
            "time": created.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (name, getattr(record, name)) for name in CONTEXT_FIELDS if hasattr(record, name)
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _file_handler(log_dir: Path) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "json",
        "filename": str(log_dir / LOG_FILE_NAME),
        "maxBytes": LOG_FILE_MAX_BYTES,
        "backupCount": LOG_FILE_BACKUPS,
        "encoding": "utf-8",
    }


def _console_handler(enable_rich: bool) -> Dict[str, Any]:
    if not enable_rich:
        return {"class": "logging.StreamHandler", "formatter": "json"}
    return {
        "class": "rich.logging.RichHandler",
        "formatter": "plain",
        "rich_tracebacks": True,
        "show_path": False,
        "markup": False,
    }


def configure_logging(*, level: str = "INFO", log_dir: Optional[Path] = None) -> None:
    """Route the ``permsim`` logger to the console and, optionally, a JSON file.

    Parameters
    ----------
    level:
        Minimum severity for the ``permsim`` logger.
    log_dir:
        Directory for ``permsim.log``; defaults to ``$PERMSIM_LOG_DIR``. With
        neither set, only the console handler is installed.

    Set ``PERMSIM_RICH=0`` to get JSON on the console instead of Rich output.
    Records do not propagate to the root logger. Repeated calls replace the
    previous handlers.
    """

    if log_dir is None and os.environ.get("PERMSIM_LOG_DIR"):
        log_dir = Path(os.environ["PERMSIM_LOG_DIR"])

    handlers = {"console": _console_handler(os.environ.get("PERMSIM_RICH", "1") != "0")}
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers["file"] = _file_handler(log_dir)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"()": JsonFormatter},
                "plain": {"format": "%(name)s: %(message)s"},
            },
            "handlers": handlers,
            "loggers": {
                "permsim": {
                    "level": level.upper(),
                    "handlers": sorted(handlers),
                    "propagate": False,
                },
            },
        }
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["CONTEXT_FIELDS", "JsonFormatter", "configure_logging", "get_logger"]
