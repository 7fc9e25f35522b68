"""
Structured logging configuration.

Emits both human-readable and JSON logs for debugging a play session.
JSON logs include:
- Timestamp
- Level
- Subsystem (observer, analyzer, director, engine)
- Session ID
- Simulation tick
- Event type
- Latency metrics
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional


class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "ts": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add structured fields if present
        if hasattr(record, "subsystem"):
            log_data["subsystem"] = record.subsystem
        if getattr(record, "session_id", None):
            log_data["session_id"] = record.session_id
        if getattr(record, "tick", None) is not None:
            log_data["tick"] = record.tick
        if getattr(record, "event_type", None):
            log_data["event"] = record.event_type
        if getattr(record, "latency_ms", None) is not None:
            log_data["latency_ms"] = record.latency_ms
        if getattr(record, "extra_data", None):
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class HumanFormatter(logging.Formatter):
    """Human-readable format with colors."""

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        level = record.levelname[:4]

        prefix_parts = [f"{timestamp} {level}"]

        subsystem = getattr(record, "subsystem", "general")
        if subsystem != "general":
            prefix_parts.append(f"[{subsystem}]")
        if getattr(record, "session_id", None):
            prefix_parts.append(f"session={record.session_id[:8]}")
        if getattr(record, "tick", None) is not None:
            prefix_parts.append(f"tick={record.tick}")

        prefix = " ".join(prefix_parts)
        message = record.getMessage()

        if getattr(record, "latency_ms", None) is not None:
            message = f"{message} ({record.latency_ms:.1f}ms)"

        line = f"{prefix}: {message}"

        if self.use_colors and sys.stderr.isatty():
            color = self.COLORS.get(record.levelname, "")
            line = f"{color}{line}{self.RESET}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


def log_event(
    logger: logging.Logger,
    event_type: str,
    msg: str,
    level: int = logging.INFO,
    subsystem: str = "general",
    session_id: Optional[str] = None,
    tick: Optional[int] = None,
    latency_ms: Optional[float] = None,
    **extra: Any,
) -> None:
    """Log a structured event through any standard logger."""
    if not logger.isEnabledFor(level):
        return
    logger.log(
        level,
        msg,
        extra={
            "subsystem": subsystem,
            "session_id": session_id,
            "tick": tick,
            "event_type": event_type,
            "latency_ms": latency_ms,
            "extra_data": extra,
        },
    )


def configure_logging(
    level: str = "INFO",
    log_dir: Optional[str] = None,
    json_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files
        json_file: Path for JSON logs (in log_dir if relative)
        max_bytes: Max size per log file
        backup_count: Number of backup files to keep
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers = []

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(HumanFormatter())
    root_logger.addHandler(console)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

        human_path = os.path.join(log_dir, "nightmare_ai.log")
        human_handler = RotatingFileHandler(
            human_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        human_handler.setFormatter(HumanFormatter(use_colors=False))
        root_logger.addHandler(human_handler)

        json_path = json_file or os.path.join(log_dir, "nightmare_ai.json.log")
        if not os.path.isabs(json_path):
            json_path = os.path.join(log_dir, json_path)

        json_handler = RotatingFileHandler(
            json_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        json_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(json_handler)


def summarize_for_log(data: Dict[str, float], digits: int = 2) -> Dict[str, float]:
    """Round a profile mapping so it reads well in a log line."""
    return {str(getattr(k, "value", k)): round(v, digits) for k, v in data.items()}
