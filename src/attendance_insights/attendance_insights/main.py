from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .analytics.controller import register as register_analytics
from .attendance.controller import register as register_attendance
from .common.http import ok, register_error_handlers
from .common.logging_config import configure_logging
from .container import Container, build_container
from .core.constants import DEFAULT_CACHE_MAX_ENTRIES, DEFAULT_CACHE_TTL_SECONDS, DEFAULT_MARKING_WINDOW_HOURS
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory. Pass ``container`` to run against non-MySQL repositories."""
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.json.sort_keys = False

    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"), getattr(settings, "LOG_DIR", None))
    logger.info("Starting attendance-insights with settings=%s", settings_module)

    if container is None:
        db_config = dict(getattr(settings, "DB_CONFIG"))
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_users(db_config)

        container = build_container(
            db_config=db_config,
            cache_enabled=bool(getattr(settings, "CACHE_ENABLED", True)),
            cache_ttl=int(getattr(settings, "CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS)),
            cache_max_entries=int(getattr(settings, "CACHE_MAX_ENTRIES", DEFAULT_CACHE_MAX_ENTRIES)),
            marking_window_hours=int(getattr(settings, "MARKING_WINDOW_HOURS", DEFAULT_MARKING_WINDOW_HOURS)),
        )

    register_error_handlers(app)
    register_users(app, container)
    register_attendance(app, container)
    register_analytics(app, container)

    @app.route("/health", endpoint="health")
    def health():
        return ok({"status": "ok"})

    return app
