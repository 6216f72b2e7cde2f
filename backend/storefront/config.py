# backend/storefront/config.py
from __future__ import annotations
import os


class Config:
    """
    Runtime configuration, read from the environment once at startup.

    create_app() applies this object (or a subclass / overrides) before any
    extension is initialised, so nothing downstream reads os.environ.
    """
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite file in the instance folder unless DATABASE_URL points elsewhere
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///storefront.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))

    # Whole-purchase retries on lock timeouts / deadlocks / stale rows
    PURCHASE_RETRY_ATTEMPTS = int(os.environ.get("PURCHASE_RETRY_ATTEMPTS", "5"))
    PURCHASE_RETRY_BACKOFF = float(os.environ.get("PURCHASE_RETRY_BACKOFF", "0.05"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    BCRYPT_ROUNDS = 4
    PURCHASE_RETRY_BACKOFF = 0.01
    LOG_LEVEL = "DEBUG"
