import logging
from datetime import datetime, timezone
from typing import Optional, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentals.database.models import MaintenanceRequest, MaintenancePriority, MaintenanceStatus
from rentals.database.errors import commit_or_raise, NotFoundError


async def open_request(
    session: AsyncSession,
    unit_id: int,
    description: str,
    priority: MaintenancePriority = MaintenancePriority.medium,
    tenant_id: Optional[int] = None,
    reported_by: Optional[str] = None,
    reported_by_contact: Optional[str] = None
) -> MaintenanceRequest:
    """Open a ticket for a unit, reported by a tenant (tenant_id) or staff (reported_by)."""
    request = MaintenanceRequest(
        unit_id=unit_id,
        tenant_id=tenant_id,
        reported_by=reported_by,
        reported_by_contact=reported_by_contact,
        description=description,
        priority=priority,
        status=MaintenanceStatus.open
    )
    session.add(request)
    await commit_or_raise(session)
    logging.info(f"Maintenance request {request.request_id} opened for unit {unit_id} ({request.priority})")
    return request


async def get_request(session: AsyncSession, request_id: int) -> MaintenanceRequest:
    request = await session.get(MaintenanceRequest, request_id)
    if not request:
        raise NotFoundError(f"Maintenance request ID {request_id} not found")
    return request


async def list_requests(
    session: AsyncSession,
    unit_id: Optional[int] = None,
    status: Optional[MaintenanceStatus] = None
) -> List[MaintenanceRequest]:
    stmt = select(MaintenanceRequest).order_by(MaintenanceRequest.request_id)
    if unit_id:
        stmt = stmt.where(MaintenanceRequest.unit_id == unit_id)
    if status:
        stmt = stmt.where(MaintenanceRequest.status == status)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def set_request_status(
    session: AsyncSession,
    request_id: int,
    status: MaintenanceStatus,
    resolved_at: Optional[datetime] = None
) -> MaintenanceRequest:
    """
    Move a ticket to another status.
    Completing stamps resolved_at (now unless given); any other status clears it.
    """
    request = await get_request(session, request_id)
    request.status = status
    if status == MaintenanceStatus.completed:
        request.resolved_at = resolved_at or datetime.now(timezone.utc)
    else:
        request.resolved_at = None
    await commit_or_raise(session)
    logging.info(f"Maintenance request {request_id} -> {request.status}")
    return request
