import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import inspect

from rentals.database.models import (
    InvoiceStatus, LeaseStatus, MaintenancePriority, MaintenanceStatus, PaymentMethod, UnitStatus,
)
from rentals.database.errors import InvalidValueError, NotFoundError
from rentals.services import (
    role_service, user_service, property_service, tenant_service, lease_service,
    billing_service, maintenance_service, reminder_service, audit_service,
)


# --- Leases ---

@pytest.mark.asyncio
async def test_lease_rent_defaults_to_unit_rent(async_session, ids):
    tenant = await tenant_service.create_tenant(async_session, "Grace", "Njeri", phone="+254711000111")
    lease = await lease_service.create_lease(
        async_session, ids["unit.Shop-1"], tenant.tenant_id, lease_start=date(2025, 10, 1)
    )
    assert lease.rent_amount == Decimal("25000.00")
    assert lease.security_deposit == Decimal("0.00")
    assert lease.is_open_ended


@pytest.mark.asyncio
async def test_lease_rent_is_a_snapshot(async_session, ids):
    await property_service.set_unit_rent(async_session, ids["unit.A101"], "50,000")

    unit = await property_service.get_unit(async_session, ids["unit.A101"])
    assert unit.monthly_rent == Decimal("50000.00")
    lease = await lease_service.get_lease(async_session, ids["lease.A101"])
    assert lease.rent_amount == Decimal("45000")


@pytest.mark.asyncio
async def test_lease_ending_before_it_starts(async_session, ids):
    with pytest.raises(InvalidValueError):
        await lease_service.create_lease(
            async_session, ids["unit.Shop-1"], ids["tenant.osukuku"],
            lease_start=date(2025, 6, 1), lease_end=date(2025, 5, 31), rent_amount=1000,
        )


@pytest.mark.asyncio
async def test_lease_for_missing_unit_without_rent(async_session, ids):
    with pytest.raises(NotFoundError):
        await lease_service.create_lease(async_session, 999, ids["tenant.osukuku"], lease_start=date(2025, 1, 1))


@pytest.mark.asyncio
async def test_lease_status_and_filters(async_session, ids):
    await lease_service.set_lease_status(async_session, ids["lease.A102"], LeaseStatus.terminated)

    active = await lease_service.list_leases(async_session, status=LeaseStatus.active)
    assert [lease.lease_id for lease in active] == [ids["lease.A101"]]
    mine = await lease_service.list_leases(async_session, tenant_id=ids["tenant.maximilla"])
    assert mine[0].status == LeaseStatus.terminated


@pytest.mark.asyncio
async def test_get_missing_lease(async_session):
    with pytest.raises(NotFoundError):
        await lease_service.get_lease(async_session, 999)


# --- Invoices and payments ---

@pytest.mark.asyncio
async def test_paid_invoice_can_go_back_to_unpaid(async_session, ids):
    await billing_service.set_invoice_status(async_session, ids["invoice.0001"], InvoiceStatus.unpaid)

    invoice = await billing_service.get_invoice(async_session, ids["invoice.0001"])
    assert invoice.status == InvoiceStatus.unpaid
    # The payment stays on record
    assert len(invoice.payments) == 1


@pytest.mark.asyncio
async def test_partial_payments_do_not_change_status(async_session, ids):
    invoice = await billing_service.create_invoice(
        async_session,
        lease_id=ids["lease.A102"],
        invoice_number="INV-2025-0002",
        period_start=date(2025, 9, 1),
        period_end=date(2025, 9, 30),
        due_date=date(2025, 9, 10),
        amount=Decimal("30000"),
    )
    invoice_id = invoice.invoice_id
    assert invoice.status == InvoiceStatus.unpaid

    await billing_service.record_payment(
        async_session, invoice_id, "10000", reference="MPESA000001",
        payment_date=datetime(2025, 9, 8, 9, 0, tzinfo=timezone.utc),
    )
    await billing_service.record_payment(
        async_session, invoice_id, Decimal("15000.50"), payment_method=PaymentMethod.cash,
        received_by_user_id=ids["user.manager1"],
        payment_date=datetime(2025, 9, 9, 16, 30, tzinfo=timezone.utc),
    )

    assert await billing_service.get_total_paid(async_session, invoice_id) == Decimal("25000.50")
    invoice = await billing_service.get_invoice(async_session, invoice_id)
    assert invoice.status == InvoiceStatus.unpaid
    assert [p.payment_method for p in await billing_service.list_payments(async_session, invoice_id)] == [
        PaymentMethod.mpesa, PaymentMethod.cash,
    ]


@pytest.mark.asyncio
async def test_total_paid_without_payments(async_session, ids):
    invoice = await billing_service.create_invoice(
        async_session, ids["lease.A102"], "INV-2025-0003",
        date(2025, 10, 1), date(2025, 10, 31), date(2025, 10, 10), 30000,
    )
    assert await billing_service.get_total_paid(async_session, invoice.invoice_id) == Decimal("0.00")


@pytest.mark.asyncio
async def test_invoices_listed_by_due_date(async_session, ids):
    await billing_service.create_invoice(
        async_session, ids["lease.A101"], "INV-2025-0010",
        date(2025, 11, 1), date(2025, 11, 30), date(2025, 11, 10), 45000,
    )
    await billing_service.create_invoice(
        async_session, ids["lease.A101"], "INV-2025-0005",
        date(2025, 10, 1), date(2025, 10, 31), date(2025, 10, 10), 45000, status=InvoiceStatus.overdue,
    )

    invoices = await billing_service.list_invoices(async_session, ids["lease.A101"])
    assert [i.invoice_number for i in invoices] == ["INV-2025-0001", "INV-2025-0005", "INV-2025-0010"]

    overdue = await billing_service.list_invoices(async_session, ids["lease.A101"], status=InvoiceStatus.overdue)
    assert [i.invoice_number for i in overdue] == ["INV-2025-0005"]


@pytest.mark.asyncio
async def test_invoice_period_must_not_be_reversed(async_session, ids):
    with pytest.raises(InvalidValueError):
        await billing_service.create_invoice(
            async_session, ids["lease.A101"], "INV-BAD",
            date(2025, 10, 31), date(2025, 10, 1), date(2025, 10, 10), 45000,
        )


# --- Units, users, roles ---

@pytest.mark.asyncio
async def test_unit_status_filter(async_session, ids):
    await property_service.set_unit_status(async_session, ids["unit.A101"], UnitStatus.occupied)
    await property_service.set_unit_status(async_session, ids["unit.A102"], UnitStatus.occupied)

    available = await property_service.list_units(async_session, status=UnitStatus.available)
    assert [u.unit_number for u in available] == ["Shop-1"]


@pytest.mark.asyncio
async def test_property_owner_can_be_changed_and_cleared(async_session, ids):
    await property_service.set_property_owner(async_session, ids["property.riverside"], ids["user.admin"])
    owned = await property_service.list_properties(async_session, owner_user_id=ids["user.admin"])
    assert [p.name for p in owned] == ["Riverside Plaza"]

    await property_service.set_property_owner(async_session, ids["property.riverside"], None)
    assert await property_service.list_properties(async_session, owner_user_id=ids["user.admin"]) == []


@pytest.mark.asyncio
async def test_change_user_role(async_session, ids):
    await user_service.change_user_role(async_session, ids["user.manager1"], ids["role.owner"])

    owners = await user_service.list_users(async_session, role_name="owner")
    assert [u.username for u in owners] == ["manager1"]
    assert await user_service.list_users(async_session, role_name="manager") == []
    assert len(await user_service.list_users(async_session)) == 2


@pytest.mark.asyncio
async def test_role_lookup(async_session, ids):
    role = await role_service.get_role_by_name(async_session, "manager")
    assert role.role_id == ids["role.manager"]
    assert await role_service.get_role_by_name(async_session, "janitor") is None
    with pytest.raises(NotFoundError):
        await role_service.get_role(async_session, 99)


@pytest.mark.asyncio
async def test_invalid_contact_details(async_session, ids):
    with pytest.raises(InvalidValueError):
        await user_service.create_user(async_session, ids["role.admin"], "bad", "not-an-email", "x")
    with pytest.raises(InvalidValueError):
        await tenant_service.create_tenant(async_session, "Bad", "Phone", phone="call me")


# --- Maintenance ---

@pytest.mark.asyncio
async def test_maintenance_resolution_timestamp(async_session, ids):
    request = await maintenance_service.open_request(
        async_session, ids["unit.A101"], "Geyser not heating",
        priority=MaintenancePriority.high, tenant_id=ids["tenant.osukuku"],
    )
    request_id = request.request_id
    assert request.status == MaintenanceStatus.open
    assert request.resolved_at is None

    resolved = datetime(2025, 9, 12, 15, 0, tzinfo=timezone.utc)
    request = await maintenance_service.set_request_status(
        async_session, request_id, MaintenanceStatus.completed, resolved_at=resolved
    )
    assert request.resolved_at == resolved

    # Reopening clears it
    request = await maintenance_service.set_request_status(async_session, request_id, MaintenanceStatus.in_progress)
    assert request.resolved_at is None

    request = await maintenance_service.set_request_status(async_session, request_id, MaintenanceStatus.completed)
    assert request.resolved_at is not None

    completed = await maintenance_service.list_requests(
        async_session, unit_id=ids["unit.A101"], status=MaintenanceStatus.completed
    )
    assert [r.request_id for r in completed] == [request_id]


# --- Reminders ---

@pytest.mark.asyncio
async def test_due_reminders(async_session, ids):
    early = await reminder_service.create_reminder(
        async_session, "Rent due A101", datetime(2025, 10, 1, 8, 0), lease_id=ids["lease.A101"]
    )
    later = await reminder_service.create_reminder(
        async_session, "Rent due A102", datetime(2025, 10, 15, 8, 0), lease_id=ids["lease.A102"]
    )
    early_id, later_id = early.reminder_id, later.reminder_id

    due = await reminder_service.list_due_reminders(async_session, now=datetime(2025, 10, 2))
    assert [r.reminder_id for r in due] == [early_id]

    await reminder_service.mark_sent(async_session, early_id)
    # Marking twice is harmless
    reminder = await reminder_service.mark_sent(async_session, early_id)
    assert reminder.is_sent

    due = await reminder_service.list_due_reminders(async_session, now=datetime(2025, 12, 1))
    assert [r.reminder_id for r in due] == [later_id]


@pytest.mark.asyncio
async def test_mark_many_sent(async_session, ids):
    created = []
    for day in (1, 2, 3):
        reminder = await reminder_service.create_reminder(
            async_session, f"Inspection {day}", datetime(2025, 11, day, 9, 0), user_id=ids["user.manager1"]
        )
        created.append(reminder.reminder_id)

    await reminder_service.mark_sent(async_session, created[0])
    assert await reminder_service.mark_many_sent(async_session, created) == 2
    assert await reminder_service.mark_many_sent(async_session, []) == 0
    assert await reminder_service.list_due_reminders(async_session, now=datetime(2026, 1, 1)) == []


@pytest.mark.asyncio
async def test_mark_sent_missing_reminder(async_session):
    with pytest.raises(NotFoundError):
        await reminder_service.mark_sent(async_session, 1)


# --- Audit log ---

@pytest.mark.asyncio
async def test_audit_log_newest_first(async_session, ids):
    await audit_service.log_action(async_session, "lease.created", user_id=ids["user.admin"], details="lease 1")
    await audit_service.log_action(async_session, "invoice.created", user_id=ids["user.manager1"])
    await audit_service.log_action(async_session, "invoice.paid", user_id=ids["user.manager1"], details="INV-2025-0001")

    entries = await audit_service.list_actions(async_session)
    assert [e.action for e in entries] == ["invoice.paid", "invoice.created", "lease.created"]

    mine = await audit_service.list_actions(async_session, user_id=ids["user.manager1"], limit=1)
    assert [e.action for e in mine] == ["invoice.paid"]


@pytest.mark.asyncio
async def test_reminder_times_are_utc(async_session, ids):
    nairobi = timezone(timedelta(hours=3))
    reminder = await reminder_service.create_reminder(
        async_session, "Rent due A102", datetime(2025, 10, 1, 11, 0, tzinfo=nairobi), lease_id=ids["lease.A102"]
    )
    reminder_id = reminder.reminder_id
    assert reminder.remind_at == datetime(2025, 10, 1, 8, 0)

    not_yet = datetime(2025, 10, 1, 7, 30, tzinfo=timezone.utc)
    assert await reminder_service.list_due_reminders(async_session, now=not_yet) == []

    # Same instant, expressed in local time
    due = await reminder_service.list_due_reminders(async_session, now=datetime(2025, 10, 1, 11, 30, tzinfo=nairobi))
    assert [r.reminder_id for r in due] == [reminder_id]

    # Default clock is the current UTC time
    assert [r.reminder_id for r in await reminder_service.list_due_reminders(async_session)] == [reminder_id]


# --- Session state after a failed call ---

@pytest.mark.asyncio
async def test_failed_call_expires_held_objects(async_session, ids):
    invoice = await billing_service.get_invoice(async_session, ids["invoice.0001"])

    with pytest.raises(InvalidValueError):
        await billing_service.set_invoice_status(async_session, ids["invoice.0001"], "refunded")

    # The rollback expired what the caller held; re-fetch by id
    assert inspect(invoice).expired
    invoice = await billing_service.get_invoice(async_session, ids["invoice.0001"])
    assert invoice.status == InvoiceStatus.paid
