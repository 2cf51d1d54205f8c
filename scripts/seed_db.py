from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.attendance_insights.attendance_insights.common.logging_config import configure_logging
from src.attendance_insights.attendance_insights.database.bootstrap import DEMO_USERS, ensure_demo_users
from src.attendance_insights.attendance_insights.database.connection import DBConfig


def main() -> None:
    configure_logging("INFO")
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    ensure_demo_users(db_config)
    print(f"OK: seeded {len(DEMO_USERS)} demo users -> {DBConfig.from_mapping(db_config).describe()}")
    for name, email, password, role, _ in DEMO_USERS:
        print(f"  {role.value:<7} {email} / {password}  ({name})")


if __name__ == "__main__":
    main()
