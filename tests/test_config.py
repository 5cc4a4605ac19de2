from decimal import Decimal

import pytest

from rentals.config import Config
from rentals.database.errors import InvalidValueError
from rentals.schemas import validation


def test_database_url_prefers_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///./rentals.db")
    assert Config().DATABASE_URL == "sqlite+aiosqlite:///./rentals.db"


def test_database_url_built_from_parts(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    cfg = Config()
    cfg.DB_DRIVER = "postgresql+asyncpg"
    cfg.DB_USER, cfg.DB_PASS, cfg.DB_HOST, cfg.DB_PORT, cfg.DB_NAME = "rent", "secret", "db", "5432", "rent_management_db"
    assert cfg.DATABASE_URL == "postgresql+asyncpg://rent:secret@db:5432/rent_management_db"


def test_mysql_url_carries_charset(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    cfg = Config()
    cfg.DB_DRIVER = "mysql+aiomysql"
    cfg.DB_CHARSET = "utf8mb4"
    assert cfg.DATABASE_URL.endswith("?charset=utf8mb4")


@pytest.mark.parametrize("raw, expected", [
    ("45,000", Decimal("45000")),
    ("1 250.50", Decimal("1250.50")),
    (0.1, Decimal("0.1")),
    (30000, Decimal("30000")),
])
def test_money_parsing(raw, expected):
    assert validation.money(raw) == expected


@pytest.mark.parametrize("raw", ["-1", "12.345", "abc", "10000000000.00"])
def test_money_rejects(raw):
    with pytest.raises(InvalidValueError):
        validation.money(raw)


def test_optional_fields_pass_none_through():
    assert validation.optional_money(None) is None
    assert validation.area(None) is None
    assert validation.phone(None) is None
    assert validation.email(None) is None


def test_phone_and_email():
    assert validation.phone("+254 700-000-002") == "+254 700-000-002"
    assert validation.email("admin@example.com") == "admin@example.com"
    with pytest.raises(InvalidValueError):
        validation.phone("12")
    with pytest.raises(InvalidValueError):
        validation.email("admin@localhost")
