"""
Error kinds for database constraint violations.

Calling code needs to tell "duplicate" apart from "invalid reference", so
raw SQLAlchemy constraint errors are translated into the classes below.
Detection works on PostgreSQL SQLSTATE codes, MySQL error numbers and
SQLite messages.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy.exc import DBAPIError, DataError, IntegrityError, OperationalError, StatementError
from sqlalchemy.ext.asyncio import AsyncSession


class RentalsError(Exception):
    """Base class for every error raised by the data-access layer."""


class UniqueConflictError(RentalsError):
    """A uniquely-constrained value (or combination) already exists."""


class ReferentialIntegrityError(RentalsError):
    """Referenced parent row is missing, or a RESTRICT blocked a delete."""


class MissingRequiredFieldError(RentalsError):
    """A NOT NULL column was left empty."""


class InvalidValueError(RentalsError):
    """Value outside a closed set, a failed CHECK, or rejected input."""


class NotFoundError(RentalsError):
    """Lookup by primary key or natural key found nothing."""


# PostgreSQL SQLSTATE
_PG_CODES = {
    "23505": UniqueConflictError,
    "23503": ReferentialIntegrityError,
    "23502": MissingRequiredFieldError,
    "23514": InvalidValueError,
    "22003": InvalidValueError,  # numeric_value_out_of_range
}

# MySQL server error numbers
_MYSQL_CODES = {
    1062: UniqueConflictError,        # ER_DUP_ENTRY
    1451: ReferentialIntegrityError,  # ER_ROW_IS_REFERENCED_2
    1452: ReferentialIntegrityError,  # ER_NO_REFERENCED_ROW_2
    1048: MissingRequiredFieldError,  # ER_BAD_NULL_ERROR
    1364: MissingRequiredFieldError,  # ER_NO_DEFAULT_FOR_FIELD
    3819: InvalidValueError,          # ER_CHECK_CONSTRAINT_VIOLATED
    1264: InvalidValueError,          # ER_WARN_DATA_OUT_OF_RANGE
}

# SQLite message prefixes
_SQLITE_PREFIXES = (
    ("UNIQUE constraint failed", UniqueConflictError),
    ("FOREIGN KEY constraint failed", ReferentialIntegrityError),
    ("NOT NULL constraint failed", MissingRequiredFieldError),
    ("CHECK constraint failed", InvalidValueError),
)


def _sqlstate(orig) -> Optional[str]:
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _mysql_errno(orig) -> Optional[int]:
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


def classify_integrity_error(exc: DBAPIError) -> type:
    orig = exc.orig

    code = _sqlstate(orig)
    if code in _PG_CODES:
        return _PG_CODES[code]

    errno = _mysql_errno(orig)
    if errno in _MYSQL_CODES:
        return _MYSQL_CODES[errno]

    message = str(orig)
    for prefix, error_cls in _SQLITE_PREFIXES:
        if prefix in message:
            return error_cls

    return RentalsError


def translate_integrity_error(exc: DBAPIError) -> RentalsError:
    error_cls = classify_integrity_error(exc)
    return error_cls(str(exc.orig))


@asynccontextmanager
async def constraint_errors(session: AsyncSession):
    """
    Translate constraint violations raised inside the block.

    The session is rolled back before the translated error propagates,
    so it stays usable for the caller. The rollback also expires every
    object the session holds: after a failure, re-fetch rows through the
    services (by id) instead of reading attributes of objects kept from
    before the call.

    MySQL reports some violations outside IntegrityError (1364 and 3819
    as OperationalError, 1264 as DataError); those are translated too
    when their code is recognised and re-raised untouched otherwise.
    """
    try:
        yield
    except IntegrityError as e:
        await session.rollback()
        error = translate_integrity_error(e)
        logging.warning(f"{type(error).__name__}: {error}")
        raise error from e
    except (OperationalError, DataError) as e:
        if classify_integrity_error(e) is RentalsError:
            raise
        await session.rollback()
        error = translate_integrity_error(e)
        logging.warning(f"{type(error).__name__}: {error}")
        raise error from e
    except StatementError as e:
        # Enum(validate_strings=True) rejects unknown members before the SQL is sent
        if isinstance(e.orig, LookupError):
            await session.rollback()
            logging.warning(f"InvalidValueError: {e.orig}")
            raise InvalidValueError(str(e.orig)) from e
        raise


async def commit_or_raise(session: AsyncSession) -> None:
    async with constraint_errors(session):
        await session.commit()


async def delete_or_raise(session: AsyncSession, stmt, label: str) -> None:
    """
    Run a DELETE and let the database apply its referential actions.

    CASCADE / SET NULL happen server side, so everything left in the
    identity map is expired afterwards and reloads on the next query.
    """
    async with constraint_errors(session):
        result = await session.execute(stmt)
        if result.rowcount == 0:
            await session.rollback()
            raise NotFoundError(f"{label} not found")
        await session.commit()
    session.expire_all()
