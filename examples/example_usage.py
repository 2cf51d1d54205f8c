"""Using the service layer without Flask: print last month's trends for one day group."""

from __future__ import annotations

import importlib
import json
from datetime import date, timedelta

from config import get_settings_module

from src.attendance_insights.attendance_insights.container import build_container
from src.attendance_insights.attendance_insights.core.enums import DayGroup


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    end = date.today()
    trends = container.analytics_service.get_trends(
        start=end - timedelta(days=30),
        end=end,
        day_group=DayGroup.MONDAY,
    )
    print(json.dumps(trends["summary"], indent=2))
    for row in trends["stability_metrics"]:
        print(f"{row['name']:<24} stability={row['stability_score']:>6} trend={row['trend']}")


if __name__ == "__main__":
    main()
