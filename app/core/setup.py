import logging
import os
from pathlib import Path

from app.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

SQLITE_PREFIX = "sqlite+aiosqlite:///"


def check_runtime_configuration(config: Settings = default_settings) -> None:
    """
    Logs every configuration problem found at startup.
    In production any problem stops the process; elsewhere the service keeps running.
    """
    problems = config.validate_runtime()
    if not problems:
        logger.info("Runtime configuration validated.")
        return

    for problem in problems:
        logger.error(f"Configuration error: {problem}")

    if config.is_production:
        logger.critical("Refusing to start in production with an invalid configuration.")
        raise SystemExit(1)

    logger.warning("Continuing with an incomplete configuration (non-production environment).")


def initialize_workspace(config: Settings = default_settings) -> None:
    """Ensures the directory holding a file-backed SQLite database exists."""
    url = config.DATABASE_URL or ""
    if not url.startswith(SQLITE_PREFIX) or ":memory:" in url:
        return

    db_dir = Path(url.removeprefix(SQLITE_PREFIX)).parent
    os.makedirs(db_dir, exist_ok=True)
    logger.info(f"Database directory ready at {db_dir}")
