"""
Reference fixture: the sample rows shipped with the schema.

Row order matters: ids are assigned in insertion order, so on an empty
database admin is user 1, A101 is unit 1, and so on.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict

from sqlalchemy.ext.asyncio import AsyncSession

from rentals.database.models import (
    Role, User, Property, Unit, Tenant, Lease, Invoice, Payment,
    BillingCycle, LeaseStatus, InvoiceStatus, PaymentMethod,
)
from rentals.services import (
    role_service, user_service, property_service, tenant_service,
    lease_service, billing_service,
)

PLACEHOLDER_PASSWORD_HASH = "hashed_pw_here"


@dataclass
class SeedResult:
    roles: Dict[str, Role] = field(default_factory=dict)
    users: Dict[str, User] = field(default_factory=dict)
    properties: Dict[str, Property] = field(default_factory=dict)
    units: Dict[str, Unit] = field(default_factory=dict)
    tenants: Dict[str, Tenant] = field(default_factory=dict)
    leases: Dict[str, Lease] = field(default_factory=dict)
    invoices: Dict[str, Invoice] = field(default_factory=dict)
    payments: Dict[str, Payment] = field(default_factory=dict)


async def seed_fixture(session: AsyncSession) -> SeedResult:
    """
    Insert the reference fixture and return the created rows keyed by
    natural key. Running it twice fails with UniqueConflictError.
    """
    seeded = SeedResult()

    # Roles
    for name, description in (
        ("admin", "System administrator"),
        ("manager", "Property manager"),
        ("owner", "Property owner"),
    ):
        seeded.roles[name] = await role_service.create_role(session, name, description)

    # Users
    seeded.users["admin"] = await user_service.create_user(
        session,
        role_id=seeded.roles["admin"].role_id,
        username="admin",
        email="admin@example.com",
        password_hash=PLACEHOLDER_PASSWORD_HASH,
        first_name="System",
        last_name="Admin",
        phone="+254700000001",
    )
    seeded.users["manager1"] = await user_service.create_user(
        session,
        role_id=seeded.roles["manager"].role_id,
        username="manager1",
        email="manager1@example.com",
        password_hash=PLACEHOLDER_PASSWORD_HASH,
        first_name="Mary",
        last_name="Manager",
        phone="+254700000002",
    )

    # Properties
    seeded.properties["Kilimani Apartments"] = await property_service.create_property(
        session,
        name="Kilimani Apartments",
        address="12 Kilimani Rd",
        city="Nairobi",
        postal_code="00100",
        owner_user_id=seeded.users["manager1"].user_id,
    )
    seeded.properties["Riverside Plaza"] = await property_service.create_property(
        session,
        name="Riverside Plaza",
        address="34 Riverside Ave",
        city="Nairobi",
        postal_code="00101",
    )

    # Units
    kilimani_id = seeded.properties["Kilimani Apartments"].property_id
    riverside_id = seeded.properties["Riverside Plaza"].property_id
    for property_id, unit_number, bedrooms, area, rent in (
        (kilimani_id, "A101", 2, "72.50", "45000.00"),
        (kilimani_id, "A102", 1, "48.00", "30000.00"),
        (riverside_id, "Shop-1", 0, "35.00", "25000.00"),
    ):
        seeded.units[unit_number] = await property_service.create_unit(
            session,
            property_id=property_id,
            unit_number=unit_number,
            bedrooms=bedrooms,
            area_sq_m=Decimal(area),
            monthly_rent=Decimal(rent),
        )

    # Tenants
    seeded.tenants["25577273"] = await tenant_service.create_tenant(
        session,
        national_id="25577273",
        first_name="Osukuku",
        last_name="James",
        email="osukuku@example.com",
        phone="+254711000111",
    )
    seeded.tenants["28484224"] = await tenant_service.create_tenant(
        session,
        national_id="28484224",
        first_name="Maximilla",
        last_name="Sikuyu",
        email="max@example.com",
        phone="+254711000222",
    )

    # Leases: unit 1 <-> tenant 1, unit 2 <-> tenant 2
    seeded.leases["A101"] = await lease_service.create_lease(
        session,
        unit_id=seeded.units["A101"].unit_id,
        tenant_id=seeded.tenants["25577273"].tenant_id,
        lease_start=date(2025, 1, 1),
        lease_end=date(2025, 12, 31),
        rent_amount=Decimal("45000.00"),
        security_deposit=Decimal("45000.00"),
        billing_cycle=BillingCycle.monthly,
        status=LeaseStatus.active,
    )
    seeded.leases["A102"] = await lease_service.create_lease(
        session,
        unit_id=seeded.units["A102"].unit_id,
        tenant_id=seeded.tenants["28484224"].tenant_id,
        lease_start=date(2025, 3, 15),
        lease_end=None,
        rent_amount=Decimal("30000.00"),
        security_deposit=Decimal("30000.00"),
        billing_cycle=BillingCycle.monthly,
        status=LeaseStatus.active,
    )

    # Invoice, payment, then the status update after payment
    invoice = await billing_service.create_invoice(
        session,
        lease_id=seeded.leases["A101"].lease_id,
        invoice_number="INV-2025-0001",
        period_start=date(2025, 9, 1),
        period_end=date(2025, 9, 30),
        due_date=date(2025, 9, 10),
        amount=Decimal("45000.00"),
        status=InvoiceStatus.unpaid,
    )
    seeded.payments["MPESA123456"] = await billing_service.record_payment(
        session,
        invoice_id=invoice.invoice_id,
        amount=Decimal("45000.00"),
        payment_method=PaymentMethod.mpesa,
        reference="MPESA123456",
        received_by_user_id=seeded.users["manager1"].user_id,
        payment_date=datetime(2025, 9, 5, 10, 15, tzinfo=timezone.utc),
    )
    seeded.invoices["INV-2025-0001"] = await billing_service.set_invoice_status(
        session, invoice.invoice_id, InvoiceStatus.paid
    )

    logging.info(
        f"Fixture seeded: {len(seeded.roles)} roles, {len(seeded.users)} users, "
        f"{len(seeded.properties)} properties, {len(seeded.units)} units, "
        f"{len(seeded.tenants)} tenants, {len(seeded.leases)} leases, 1 invoice, 1 payment"
    )
    return seeded
