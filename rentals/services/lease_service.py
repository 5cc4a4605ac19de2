from datetime import date
from typing import Optional, List
import logging
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rentals.database.models import Lease, LeaseStatus, BillingCycle, Unit
from rentals.database.errors import commit_or_raise, delete_or_raise, NotFoundError, InvalidValueError
from rentals.schemas import validation


async def create_lease(
    session: AsyncSession,
    unit_id: int,
    tenant_id: int,
    lease_start: date,
    lease_end: Optional[date] = None,
    rent_amount=None,
    security_deposit=0,
    billing_cycle: BillingCycle = BillingCycle.monthly,
    status: LeaseStatus = LeaseStatus.active
) -> Lease:
    """
    Bind a tenant to a unit.

    rent_amount is a snapshot: when omitted it is copied from the unit's
    current monthly_rent, and later changes to the unit do not touch it.
    lease_end=None means open-ended.

    Raises:
        UniqueConflictError: same (unit, tenant, lease_start) already exists
        ReferentialIntegrityError: unit or tenant does not exist
        NotFoundError: rent_amount omitted and the unit does not exist
    """
    if lease_end is not None and lease_end < lease_start:
        raise InvalidValueError(f"Lease end {lease_end} is before start {lease_start}")

    if rent_amount is None:
        unit = await session.get(Unit, unit_id)
        if not unit:
            raise NotFoundError(f"Unit ID {unit_id} not found")
        rent_amount = unit.monthly_rent

    lease = Lease(
        unit_id=unit_id,
        tenant_id=tenant_id,
        lease_start=lease_start,
        lease_end=lease_end,
        rent_amount=validation.money(rent_amount),
        security_deposit=validation.money(security_deposit),
        billing_cycle=billing_cycle,
        status=status
    )
    session.add(lease)
    await commit_or_raise(session)
    logging.info(
        f"Lease created: {lease.lease_id} unit={unit_id} tenant={tenant_id} "
        f"from {lease_start} to {lease_end or 'open'} at {lease.rent_amount}"
    )
    return lease


async def get_lease(session: AsyncSession, lease_id: int) -> Lease:
    stmt = (
        select(Lease)
        .where(Lease.lease_id == lease_id)
        .options(selectinload(Lease.unit), selectinload(Lease.tenant))
    )
    result = await session.execute(stmt)
    lease = result.scalar_one_or_none()
    if not lease:
        raise NotFoundError(f"Lease ID {lease_id} not found")
    return lease


async def list_leases(
    session: AsyncSession,
    unit_id: Optional[int] = None,
    tenant_id: Optional[int] = None,
    status: Optional[LeaseStatus] = None
) -> List[Lease]:
    stmt = select(Lease).order_by(Lease.lease_start, Lease.lease_id)
    if unit_id:
        stmt = stmt.where(Lease.unit_id == unit_id)
    if tenant_id:
        stmt = stmt.where(Lease.tenant_id == tenant_id)
    if status:
        stmt = stmt.where(Lease.status == status)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def set_lease_status(session: AsyncSession, lease_id: int, status: LeaseStatus) -> Lease:
    # Any member of the set is accepted; transitions are not checked
    lease = await get_lease(session, lease_id)
    lease.status = status
    await commit_or_raise(session)
    logging.info(f"Lease {lease_id} status -> {lease.status}")
    return lease


async def delete_lease(session: AsyncSession, lease_id: int) -> None:
    """Removes the lease with its invoices, their payments, and its reminders."""
    await delete_or_raise(session, delete(Lease).where(Lease.lease_id == lease_id), f"Lease ID {lease_id}")
    logging.info(f"Lease deleted: {lease_id}")
