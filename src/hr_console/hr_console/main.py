from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .activity.controller import register as register_activity
from .attendance.controller import register as register_attendance
from .common.http import ok
from .container import Container, build_container
from .core.constants import DEFAULT_SESSION_DAYS
from .core.logging import configure_logging
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .leaves.controller import register as register_leaves
from .payroll.controller import register as register_payroll
from .tickets.controller import register as register_tickets
from .users.controller import register as register_users
from .vehicles.controller import register as register_vehicles

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parents[3]

_SETTING_NAMES = (
    "LATE_GRACE_MINUTES",
    "HALF_DAY_MINUTES",
    "EOBI_EMPLOYEE_CONTRIBUTION",
    "PF_RATE",
    "TAX_RATE",
)


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the API app; pass a container to skip the MySQL wiring."""

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"), extra_loggers=(app.name,))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.permanent_session_lifetime = timedelta(days=int(getattr(settings, "SESSION_DAYS", DEFAULT_SESSION_DAYS)))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=ROOT_DIR / "database" / "schema.sql")
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=ROOT_DIR / "database" / "seed.sql")
            ensure_demo_users(db_config)
            logger.info("Demo seed ready")

        upload_root = Path(getattr(settings, "UPLOAD_FOLDER", ROOT_DIR / "uploads"))
        container = build_container(
            db_config=db_config,
            upload_root=upload_root,
            settings={name: getattr(settings, name) for name in _SETTING_NAMES if hasattr(settings, name)},
        )

    app.extensions["hr_console"] = container

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return ok({"status": "ok"})

    register_users(app, container)
    register_attendance(app, container)
    register_leaves(app, container)
    register_tickets(app, container)
    register_vehicles(app, container)
    register_payroll(app, container)
    register_activity(app, container)

    return app
