# config.py
import logging
import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

BASE_DIR = Path(__file__).parent

# Environment
ENV = os.environ.get("HMS_ENV", "development")
DEBUG = ENV == "development"

# SQLite by default (hms.db in the same folder)
DATABASE_URL = os.environ.get("HMS_DATABASE_URL") or f"sqlite:///{BASE_DIR / 'hms.db'}"

HOST = os.environ.get("HMS_HOST", "0.0.0.0")
PORT = int(os.environ.get("HMS_PORT", 8000))

# Property wall clock. Unset means the host's local time.
TIMEZONE_NAME = os.environ.get("HMS_TIMEZONE")
TIMEZONE = ZoneInfo(TIMEZONE_NAME) if TIMEZONE_NAME else None

DAILY_RESET_ENABLED = os.environ.get("HMS_DAILY_RESET_ENABLED", "1").lower() not in ("0", "false", "no", "off")

LOG_LEVEL = os.environ.get("HMS_LOG_LEVEL", "DEBUG" if DEBUG else "INFO")


def local_now() -> datetime:
    """Current time as an aware datetime in the property's zone."""
    if TIMEZONE is not None:
        return datetime.now(TIMEZONE)
    return datetime.now().astimezone()


def configure_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
