import pytest
from sqlalchemy.exc import DataError, IntegrityError, OperationalError

from rentals.database.errors import (
    classify_integrity_error, translate_integrity_error, constraint_errors,
    UniqueConflictError, ReferentialIntegrityError, MissingRequiredFieldError,
    InvalidValueError, RentalsError,
)


class PgError(Exception):
    """Shape of an asyncpg error as surfaced by SQLAlchemy's adapter."""

    def __init__(self, message, sqlstate):
        super().__init__(message)
        self.sqlstate = sqlstate


class MySQLError(Exception):
    """pymysql/aiomysql put (errno, message) in args."""


class RecordingSession:
    def __init__(self):
        self.rollbacks = 0

    async def rollback(self):
        self.rollbacks += 1


def _wrap(orig, error_cls=IntegrityError):
    return error_cls("INSERT INTO ...", {}, orig)


@pytest.mark.parametrize("sqlstate, expected", [
    ("23505", UniqueConflictError),
    ("23503", ReferentialIntegrityError),
    ("23502", MissingRequiredFieldError),
    ("23514", InvalidValueError),
])
def test_postgres_sqlstate(sqlstate, expected):
    assert classify_integrity_error(_wrap(PgError("violation", sqlstate))) is expected


def test_postgres_numeric_out_of_range():
    error = _wrap(PgError("numeric field overflow", "22003"), DataError)
    assert classify_integrity_error(error) is InvalidValueError


# The exception class each errno arrives as from pymysql/aiomysql
@pytest.mark.parametrize("errno, error_cls, expected", [
    (1062, IntegrityError, UniqueConflictError),
    (1451, IntegrityError, ReferentialIntegrityError),
    (1452, IntegrityError, ReferentialIntegrityError),
    (1048, IntegrityError, MissingRequiredFieldError),
    (1364, OperationalError, MissingRequiredFieldError),
    (3819, OperationalError, InvalidValueError),
    (1264, DataError, InvalidValueError),
])
def test_mysql_errno(errno, error_cls, expected):
    assert classify_integrity_error(_wrap(MySQLError(errno, "violation"), error_cls)) is expected


def test_sqlite_message():
    orig = Exception("UNIQUE constraint failed: tenants.national_id")
    assert classify_integrity_error(_wrap(orig)) is UniqueConflictError


def test_unknown_shape_falls_back_to_base_error():
    error = translate_integrity_error(_wrap(Exception("something odd")))
    assert type(error) is RentalsError
    assert str(error) == "something odd"


def test_translated_error_keeps_driver_message():
    orig = PgError('duplicate key value violates unique constraint "uq_roles_role_name"', "23505")
    error = translate_integrity_error(_wrap(orig))
    assert isinstance(error, UniqueConflictError)
    assert "uq_roles_role_name" in str(error)


@pytest.mark.asyncio
@pytest.mark.parametrize("errno, error_cls, expected", [
    (1364, OperationalError, MissingRequiredFieldError),
    (3819, OperationalError, InvalidValueError),
    (1264, DataError, InvalidValueError),
])
async def test_mysql_violations_outside_integrity_error_are_translated(errno, error_cls, expected):
    session = RecordingSession()
    raised = _wrap(MySQLError(errno, "violation"), error_cls)

    with pytest.raises(expected) as info:
        async with constraint_errors(session):
            raise raised

    assert info.value.__cause__ is raised
    assert session.rollbacks == 1


@pytest.mark.asyncio
async def test_unrecognised_operational_error_passes_through():
    session = RecordingSession()
    raised = _wrap(MySQLError(2013, "Lost connection to MySQL server during query"), OperationalError)

    with pytest.raises(OperationalError) as info:
        async with constraint_errors(session):
            raise raised

    assert info.value is raised
    assert session.rollbacks == 0
