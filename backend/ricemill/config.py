# backend/ricemill/config.py
from __future__ import annotations
import os


def _origins(raw: str) -> set[str]:
    return {o.strip() for o in raw.split(",") if o.strip()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///ricemill.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Session lifetimes (hours)
    SESSION_ABSOLUTE_HOURS = int(os.environ.get("SESSION_ABSOLUTE_HOURS", "24"))
    SESSION_IDLE_HOURS = int(os.environ.get("SESSION_IDLE_HOURS", "8"))

    CORS_ALLOWED_ORIGINS = _origins(os.environ.get(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
    ))

    # Retries for lock/stale-row conflicts in services.concurrency
    LOCK_RETRY_ATTEMPTS = int(os.environ.get("LOCK_RETRY_ATTEMPTS", "3"))

    # bcrypt work factor for password hashing
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
