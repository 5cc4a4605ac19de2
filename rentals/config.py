import os
import logging
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Database Configuration
    DB_DRIVER = os.getenv("DB_DRIVER", "postgresql+asyncpg")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASS = os.getenv("DB_PASS", "postgres")
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME", "rent_management_db")

    # 4-byte safe UTF-8 for MySQL targets
    DB_CHARSET = os.getenv("DB_CHARSET", "utf8mb4")

    SQL_ECHO = _env_flag("SQL_ECHO")

    # Insert the reference fixture on startup (rentals.main)
    SEED_FIXTURES = _env_flag("SEED_FIXTURES")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def DATABASE_URL(self):
        # Prefer DATABASE_URL env var if set (for SQLite support)
        url = os.getenv("DATABASE_URL")
        if url:
            return url

        url = f"{self.DB_DRIVER}://{self.DB_USER}:{self.DB_PASS}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        if self.DB_DRIVER.startswith("mysql"):
            url += f"?charset={self.DB_CHARSET}"
        return url


config = Config()

logging.info(f"Database: {config.DATABASE_URL.split('@')[1] if '@' in config.DATABASE_URL else 'SQLite'}")
