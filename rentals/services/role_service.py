import logging
from typing import Optional, List
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from rentals.database.models import Role
from rentals.database.errors import commit_or_raise, delete_or_raise, NotFoundError


async def create_role(session: AsyncSession, role_name: str, description: Optional[str] = None) -> Role:
    role = Role(role_name=role_name, description=description)
    session.add(role)
    await commit_or_raise(session)
    logging.info(f"Role created: {role.role_id} - {role.role_name}")
    return role

async def get_role(session: AsyncSession, role_id: int) -> Role:
    role = await session.get(Role, role_id)
    if not role:
        raise NotFoundError(f"Role ID {role_id} not found")
    return role

async def get_role_by_name(session: AsyncSession, role_name: str) -> Optional[Role]:
    stmt = select(Role).where(Role.role_name == role_name)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()

async def list_roles(session: AsyncSession) -> List[Role]:
    stmt = select(Role).order_by(Role.role_id)
    result = await session.execute(stmt)
    return list(result.scalars().all())

async def delete_role(session: AsyncSession, role_id: int) -> None:
    """Fails with ReferentialIntegrityError while any user holds the role."""
    await delete_or_raise(session, delete(Role).where(Role.role_id == role_id), f"Role ID {role_id}")
    logging.info(f"Role deleted: {role_id}")
