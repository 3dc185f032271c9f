"""
Runtime configuration

Values come from environment variables, optionally loaded from a .env file.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _list(name: str) -> list:
    raw = os.getenv(name, "")
    return [part.strip() for part in raw.split(",") if part.strip()]


DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")
# Multi-document transactions need a replica set
DATABASE_TRANSACTIONS = _flag("DATABASE_TRANSACTIONS")

ORDER_EMAIL_CC = _list("ORDER_EMAIL_CC")
MONITORING_RECIPIENT = os.getenv("MONITORING_RECIPIENT", "")

MONITORING_HOUR = int(os.getenv("MONITORING_HOUR", 14))
MONITORING_MINUTE = int(os.getenv("MONITORING_MINUTE", 0))
MONITORING_TIMEZONE = os.getenv("MONITORING_TIMEZONE", "America/New_York")

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", 8000))
