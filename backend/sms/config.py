# backend/sms/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/sms.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///sms.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Threshold given to products created implicitly by a GRN
    DEFAULT_MIN_STOCK_THRESHOLD = _env_int("DEFAULT_MIN_STOCK_THRESHOLD", 10)
    DASHBOARD_ALERT_LIMIT = _env_int("DASHBOARD_ALERT_LIMIT", 5)

    COMMIT_RETRY_ATTEMPTS = _env_int("COMMIT_RETRY_ATTEMPTS", 3)
    COMMIT_RETRY_BACKOFF = float(os.environ.get("COMMIT_RETRY_BACKOFF", "0.1"))

    # Printed on invoices and credit notes
    COMPANY_NAME = os.environ.get("COMPANY_NAME", "SMS Pro")
    COMPANY_ADDRESS = os.environ.get("COMPANY_ADDRESS", "")
    COMPANY_CONTACT = os.environ.get("COMPANY_CONTACT", "")
    CURRENCY_LABEL = os.environ.get("CURRENCY_LABEL", "Rs.")

    CORS_ALLOWED_ORIGINS = os.environ.get(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
    )
