from typing import Optional, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from rentals.database.models import AuditLog
from rentals.database.errors import commit_or_raise

# Append-only: no update or delete.

async def log_action(
    session: AsyncSession,
    action: str,
    user_id: Optional[int] = None,
    details: Optional[str] = None
) -> AuditLog:
    entry = AuditLog(user_id=user_id, action=action, details=details)
    session.add(entry)
    await commit_or_raise(session)
    return entry

async def list_actions(
    session: AsyncSession,
    user_id: Optional[int] = None,
    limit: int = 50
) -> List[AuditLog]:
    # Newest first
    stmt = select(AuditLog).order_by(AuditLog.log_id.desc()).limit(limit)
    if user_id:
        stmt = stmt.where(AuditLog.user_id == user_id)
    result = await session.execute(stmt)
    return list(result.scalars().all())
