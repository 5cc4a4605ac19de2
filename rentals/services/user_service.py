"""
User Service - Manage staff accounts (admins, managers, owners)
"""
import logging
from typing import Optional, List
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from rentals.database.models import User, Role
from rentals.database.errors import commit_or_raise, delete_or_raise, NotFoundError
from rentals.schemas import validation


async def create_user(
    session: AsyncSession,
    role_id: int,
    username: str,
    email: str,
    password_hash: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    phone: Optional[str] = None
) -> User:
    """
    Create a staff account.

    password_hash is stored as given; hashing happens before this layer.
    Raises UniqueConflictError for a taken username/email and
    ReferentialIntegrityError for an unknown role.
    """
    user = User(
        role_id=role_id,
        username=username,
        email=validation.email(email),
        password_hash=password_hash,
        first_name=first_name,
        last_name=last_name,
        phone=validation.phone(phone)
    )
    session.add(user)
    await commit_or_raise(session)
    logging.info(f"User created: {user.user_id} - {user.username} (role {role_id})")
    return user


async def get_user(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if not user:
        raise NotFoundError(f"User ID {user_id} not found")
    return user


async def get_user_by_username(session: AsyncSession, username: str) -> Optional[User]:
    """Get user by login name, with role loaded"""
    stmt = select(User).where(User.username == username).options(selectinload(User.role))
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_users(session: AsyncSession, role_name: Optional[str] = None) -> List[User]:
    stmt = select(User).options(selectinload(User.role)).order_by(User.user_id)
    if role_name:
        stmt = stmt.join(User.role).where(Role.role_name == role_name)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def change_user_role(session: AsyncSession, user_id: int, role_id: int) -> User:
    user = await get_user(session, user_id)
    user.role_id = role_id
    await commit_or_raise(session)
    logging.info(f"User {user_id} moved to role {role_id}")
    return user


async def delete_user(session: AsyncSession, user_id: int) -> None:
    """
    Delete a staff account.

    Properties owned, payments received, reminders and audit entries keep
    their rows; their user reference becomes NULL.
    """
    await delete_or_raise(session, delete(User).where(User.user_id == user_id), f"User ID {user_id}")
    logging.info(f"User deleted: {user_id}")
