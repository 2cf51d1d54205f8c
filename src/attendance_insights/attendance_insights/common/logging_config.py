from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

AUDIT_LOGGER_NAME = "attendance_insights.audit"

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO", log_dir: Optional[str] = None) -> None:
    """Console logging plus optional daily-rotated files (app log, error log, audit log)."""

    root = logging.getLogger()
    root.setLevel(level.upper())

    formatter = logging.Formatter(_FORMAT)
    if not any(getattr(h, "_attendance_insights", False) for h in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        console._attendance_insights = True
        root.addHandler(console)

    if not log_dir or any(isinstance(h, logging.handlers.TimedRotatingFileHandler) for h in root.handlers):
        return

    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)

    app_file = _rotating(path / "attendance.log", formatter)
    root.addHandler(app_file)

    error_file = _rotating(path / "error.log", formatter)
    error_file.setLevel(logging.ERROR)
    root.addHandler(error_file)

    audit = logging.getLogger(AUDIT_LOGGER_NAME)
    audit.addHandler(_rotating(path / "audit.log", formatter))


def _rotating(filename: Path, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.TimedRotatingFileHandler(filename, when="midnight", backupCount=14, encoding="utf-8")
    handler.setFormatter(formatter)
    handler._attendance_insights = True
    return handler


def audit_logger() -> logging.Logger:
    return logging.getLogger(AUDIT_LOGGER_NAME)
