import os

# Keep imports of rentals.database.core off the network driver
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from rentals.database.core import Base, enable_sqlite_foreign_keys
from rentals.database import models  # noqa: F401
from rentals.seed import seed_fixture


@pytest_asyncio.fixture
async def async_session():
    # Use in-memory SQLite for tests, with FK enforcement so referential actions apply
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def seeded(async_session):
    return await seed_fixture(async_session)


@pytest_asyncio.fixture
async def ids(async_session, seeded):
    """
    Plain ids of the fixture rows.

    A rollback or a delete expires every ORM object in the session, so
    tests that expect failures should keep ids rather than objects.
    """
    fixture_ids = {
        "role.admin": seeded.roles["admin"].role_id,
        "role.manager": seeded.roles["manager"].role_id,
        "role.owner": seeded.roles["owner"].role_id,
        "user.admin": seeded.users["admin"].user_id,
        "user.manager1": seeded.users["manager1"].user_id,
        "property.kilimani": seeded.properties["Kilimani Apartments"].property_id,
        "property.riverside": seeded.properties["Riverside Plaza"].property_id,
        "unit.A101": seeded.units["A101"].unit_id,
        "unit.A102": seeded.units["A102"].unit_id,
        "unit.Shop-1": seeded.units["Shop-1"].unit_id,
        "tenant.osukuku": seeded.tenants["25577273"].tenant_id,
        "tenant.maximilla": seeded.tenants["28484224"].tenant_id,
        "lease.A101": seeded.leases["A101"].lease_id,
        "lease.A102": seeded.leases["A102"].lease_id,
        "invoice.0001": seeded.invoices["INV-2025-0001"].invoice_id,
        "payment.mpesa": seeded.payments["MPESA123456"].payment_id,
    }
    # Start every test from a clean identity map
    async_session.expire_all()
    return fixture_ids
