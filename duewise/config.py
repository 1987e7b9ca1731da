"""Runtime configuration for duewise.

All settings come from the environment (optionally a local `.env` file).
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./duewise.db")
DEBUG = _env_bool("DEBUG", "False")
DB_POOL_SIZE = _env_int("DB_POOL_SIZE", 5)
DB_MAX_OVERFLOW = _env_int("DB_MAX_OVERFLOW", 5)
DB_POOL_TIMEOUT_SEC = _env_int("DB_POOL_TIMEOUT_SEC", 30)
RUN_MIGRATIONS = _env_bool("RUN_MIGRATIONS", "False")
ALEMBIC_INI = os.getenv("ALEMBIC_INI", "alembic.ini")

# Fiscal year (April-March in the CRM's market)
FINANCIAL_YEAR_START_MONTH = _env_int("FINANCIAL_YEAR_START_MONTH", 4)

# Reconciliation sweep
SWEEP_ENABLED = _env_bool("SWEEP_ENABLED", "True")
SWEEP_HOUR_UTC = _env_int("SWEEP_HOUR_UTC", 0)
SWEEP_HOURLY_CATCHUP = _env_bool("SWEEP_HOURLY_CATCHUP", "True")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for the runner and background jobs."""
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
