"""
Logging Configuration — Run log setup.

Every event is timestamped and leveled, written both to stdout and to an
append-only run log file under the working directory:

    [2026-10-19 12:34:56] [INFO] Processing repository: EmergentMonk/foo

## Environment Variables

- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO; --verbose forces DEBUG)
- LOG_FORMAT: json, text (default: text)

## Usage

    from repo_sync.logging_config import setup_logging

    setup_logging(verbose=True, log_file=workdir / "repo_sync.log")
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

# Level names used in the run log; WARNING is shortened to WARN.
LEVEL_NAMES = {
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "WARNING": "WARN",
    "ERROR": "ERROR",
    "CRITICAL": "ERROR",
}


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Output format:
    {"ts": "...", "level": "...", "logger": "...", "message": "...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": LEVEL_NAMES.get(record.levelname, record.levelname),
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "org"):
            log_entry["org"] = record.org
        if hasattr(record, "repo"):
            log_entry["repo"] = record.repo

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


class RunLogFormatter(logging.Formatter):
    """
    Line-oriented formatter shared by the console and the run log.

    Output format:
    [2026-10-19 12:34:56] [INFO] Message
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        level = LEVEL_NAMES.get(record.levelname, record.levelname)
        line = f"[{timestamp}] [{level}] {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    verbose: bool = False,
    log_file: Optional[Path] = None,
    level: str | None = None,
    format_type: str | None = None,
) -> None:
    """
    Configure logging for a run.

    Args:
        verbose: Force DEBUG level (the --verbose flag)
        log_file: Run log path, opened in append mode. Parent is created.
        level: Log level (DEBUG, INFO, WARNING, ERROR).
               Defaults to LOG_LEVEL env var or INFO.
        format_type: Output format (json, text).
                     Defaults to LOG_FORMAT env var or text.
    """
    log_level = "DEBUG" if verbose else (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    log_format = (format_type or os.environ.get("LOG_FORMAT", "text")).lower()

    numeric_level = getattr(logging, log_level, logging.INFO)

    formatter: logging.Formatter
    if log_format == "json":
        formatter = JSONFormatter()
    else:
        formatter = RunLogFormatter()

    root = logging.getLogger()
    root.setLevel(numeric_level)

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    console.setLevel(numeric_level)
    root.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(numeric_level)
        root.addHandler(file_handler)

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging configured: level={log_level}, format={log_format}, file={log_file}"
    )
