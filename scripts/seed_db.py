from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.hr_console.hr_console.core.logging import configure_logging
from src.hr_console.hr_console.database.bootstrap import apply_seed_sql, ensure_demo_users

logger = logging.getLogger("hr_console.scripts.seed_db")


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"), extra_loggers=(logger.name,))
    db_config = dict(settings.DB_CONFIG)

    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    ensure_demo_users(db_config)

    logger.info(
        "Seeded database -> %s@%s:%s/%s (demo logins: superadmin@hrconsole.local, hr@hrconsole.local, "
        "employee@hrconsole.local)",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )


if __name__ == "__main__":
    main()
