"""Mark unmarked active members as system-absent for a date (default: today).

Intended for a nightly cron job: ``python scripts/auto_absence.py [YYYY-MM-DD]``.
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.attendance_insights.attendance_insights.common.datetime_utils import parse_iso_date
from src.attendance_insights.attendance_insights.common.logging_config import configure_logging
from src.attendance_insights.attendance_insights.container import build_container


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"), getattr(settings, "LOG_DIR", None))

    work_date = parse_iso_date(sys.argv[1]) if len(sys.argv) > 1 else None
    container = build_container(db_config=dict(settings.DB_CONFIG), cache_enabled=False)
    count = container.attendance_service.process_automatic_absence(work_date)
    print(f"OK: {count} member(s) marked system-absent")


if __name__ == "__main__":
    main()
