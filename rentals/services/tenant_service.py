import logging
from typing import Optional, List
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from rentals.database.models import Tenant
from rentals.database.errors import commit_or_raise, delete_or_raise, NotFoundError
from rentals.schemas import validation

async def create_tenant(
    session: AsyncSession,
    first_name: str,
    last_name: str,
    national_id: Optional[str] = None,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    emergency_contact_name: Optional[str] = None,
    emergency_contact_phone: Optional[str] = None
) -> Tenant:
    tenant = Tenant(
        national_id=national_id,
        first_name=first_name,
        last_name=last_name,
        email=validation.email(email),
        phone=validation.phone(phone),
        emergency_contact_name=emergency_contact_name,
        emergency_contact_phone=validation.phone(emergency_contact_phone)
    )
    session.add(tenant)
    await commit_or_raise(session)
    logging.info(f"Tenant created: {tenant.tenant_id} - {tenant.full_name}")
    return tenant

async def get_tenant(session: AsyncSession, tenant_id: int) -> Tenant:
    tenant = await session.get(Tenant, tenant_id)
    if not tenant:
        raise NotFoundError(f"Tenant ID {tenant_id} not found")
    return tenant

async def get_tenant_by_national_id(session: AsyncSession, national_id: str) -> Optional[Tenant]:
    stmt = select(Tenant).where(Tenant.national_id == national_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()

async def list_tenants(session: AsyncSession) -> List[Tenant]:
    stmt = select(Tenant).order_by(Tenant.last_name, Tenant.first_name)
    result = await session.execute(stmt)
    return list(result.scalars().all())

async def delete_tenant(session: AsyncSession, tenant_id: int) -> None:
    """
    Delete a tenant record.
    Blocked while any lease references the tenant; otherwise their
    reminders go with them and maintenance requests lose the tenant link.
    """
    await delete_or_raise(session, delete(Tenant).where(Tenant.tenant_id == tenant_id), f"Tenant ID {tenant_id}")
    logging.info(f"Tenant deleted: {tenant_id}")
