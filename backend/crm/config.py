# backend/crm/config.py
from __future__ import annotations
import os


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/crm.sqlite3 unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///crm.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Connection pool (server databases only)
    DB_POOL_MAX = int(os.environ.get("DB_POOL_MAX", "20"))
    DB_POOL_IDLE_TIMEOUT = int(os.environ.get("DB_POOL_IDLE_TIMEOUT", "30"))
    DB_POOL_CONNECT_TIMEOUT = int(os.environ.get("DB_POOL_CONNECT_TIMEOUT", "5"))

    APP_ENV = os.environ.get("APP_ENV", "development")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    BACKUP_FORMAT_VERSION = os.environ.get("BACKUP_FORMAT_VERSION", "4.0")
    # "increment" adds every imported receipt to its project; "recompute"
    # rebuilds project.received from the receipt table after the receipt phase.
    RECEIPT_IMPORT_POLICY = os.environ.get("RECEIPT_IMPORT_POLICY", "increment")

    CORS_ORIGINS = _csv(os.environ.get(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173",
    ))

    # Snapshots are posted as one JSON document
    MAX_CONTENT_LENGTH = 50 * 1024 * 1024


class TestConfig(Config):
    TESTING = True
    APP_ENV = "testing"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    RECEIPT_IMPORT_POLICY = "increment"


def engine_options(config) -> dict:
    """Pool settings for SQLAlchemy; SQLite keeps its default pool."""
    uri = str(config.get("SQLALCHEMY_DATABASE_URI") or "")
    if uri.startswith("sqlite"):
        return {}
    return {
        "pool_size": config.get("DB_POOL_MAX", 20),
        "max_overflow": 0,
        "pool_recycle": config.get("DB_POOL_IDLE_TIMEOUT", 30),
        "pool_timeout": config.get("DB_POOL_CONNECT_TIMEOUT", 5),
        "pool_pre_ping": True,
    }
