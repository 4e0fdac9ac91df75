"""
Runtime settings for X-Ray, read from environment variables.

Environment Variables:
    DATABASE_URL: SQLAlchemy URL (default: sqlite:///./xray.db)
    XRAY_AUTO_CREATE_TABLES: Create tables on first use (default: true)
    XRAY_CORS_ORIGINS: Comma-separated allowed origins (default: http://localhost:3000)
    XRAY_MAX_RETRIES: Attempts per tracer operation on write conflicts (default: 10)
    XRAY_RETRY_BACKOFF_MS: Base backoff between attempts (default: 5)
    SQL_ECHO: Log SQL statements (default: false)
"""

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///./xray.db"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000"]


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").lower() == "true"


@dataclass
class Settings:
    """X-Ray configuration"""
    database_url: str = DEFAULT_DATABASE_URL
    auto_create_tables: bool = True
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    max_retries: int = 10
    retry_backoff_ms: int = 5
    sql_echo: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
        if database_url.startswith("postgres://"):
            # Fix Railway/Heroku PostgreSQL URL (postgres:// -> postgresql://)
            database_url = database_url.replace("postgres://", "postgresql://", 1)

        origins = os.getenv("XRAY_CORS_ORIGINS")
        cors_origins = (
            [origin.strip() for origin in origins.split(",") if origin.strip()]
            if origins
            else list(DEFAULT_CORS_ORIGINS)
        )

        return cls(
            database_url=database_url,
            auto_create_tables=_env_bool("XRAY_AUTO_CREATE_TABLES", True),
            cors_origins=cors_origins,
            max_retries=int(os.getenv("XRAY_MAX_RETRIES", "10")),
            retry_backoff_ms=int(os.getenv("XRAY_RETRY_BACKOFF_MS", "5")),
            sql_echo=_env_bool("SQL_ECHO", False),
        )
