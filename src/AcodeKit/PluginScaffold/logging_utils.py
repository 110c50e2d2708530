"""Structured logging helpers shared across scaffolder components."""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .io_safe import mask_sensitive_data
from .settings import LOG_DIR

__all__ = ["JSONFormatter", "setup_logging", "LOGGER_NAME"]

LOGGER_NAME = "AcodeKit.PluginScaffold"


class JSONFormatter(logging.Formatter):
    """Formatter emitting masked JSON log entries."""

    def format(self, record: logging.LogRecord) -> str:
        """Render ``record`` as a JSON string with scaffolder-specific fields."""

        now = datetime.now(timezone.utc)
        payload = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", None),
            "stage": getattr(record, "stage", None),
        }
        if hasattr(record, "extra_fields") and isinstance(record.extra_fields, dict):
            payload.update(record.extra_fields)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(payload), default=str)


def _resolve_log_dir(log_dir: Optional[Path]) -> Path:
    if log_dir is not None:
        return Path(log_dir).expanduser()
    env_value = os.environ.get("ACODE_KIT_LOG_DIR", "").strip()
    if env_value:
        return Path(env_value).expanduser()
    return LOG_DIR


def setup_logging(
    *,
    level: str = "INFO",
    max_log_size_mb: int = 10,
    backup_count: int = 3,
    log_dir: Optional[Path] = None,
    console_level: str = "WARNING",
    propagate: bool = False,
) -> logging.Logger:
    """Configure scaffolder logging with a rotating JSON file and a terse console stream.

    Handlers installed by a previous call are replaced, so the function can be
    invoked once per CLI run (or per test) without stacking duplicates.
    """

    resolved_dir = _resolve_log_dir(log_dir)
    resolved_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_acode_kit_managed", False):
            logger.removeHandler(handler)
            if isinstance(handler, logging.StreamHandler) and getattr(
                handler, "stream", None
            ) in (sys.stdout, sys.stderr):
                continue
            handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    stream_handler.setLevel(getattr(logging, console_level.upper(), logging.WARNING))
    stream_handler._acode_kit_managed = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)

    today = datetime.now(timezone.utc).strftime("%Y%m%d")
    file_handler = RotatingFileHandler(
        resolved_dir / f"scaffold-{today}.jsonl",
        maxBytes=int(max_log_size_mb * 1024 * 1024),
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(JSONFormatter())
    file_handler._acode_kit_managed = True  # type: ignore[attr-defined]
    logger.addHandler(file_handler)

    logger.propagate = propagate
    return logger
