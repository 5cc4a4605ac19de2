"""
Reminders (rent due, inspections, ...).

Only storage lives here: delivering a reminder is up to whoever polls
list_due_reminders and then calls mark_sent.

remind_at is stored as naive UTC, the same clock maintenance requests
use for resolved_at. Aware datetimes are converted to UTC on the way in;
naive ones are taken to be UTC already.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, List
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rentals.database.models import Reminder
from rentals.database.errors import commit_or_raise, NotFoundError


def _utc_naive(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


async def create_reminder(
    session: AsyncSession,
    message: str,
    remind_at: datetime,
    lease_id: Optional[int] = None,
    tenant_id: Optional[int] = None,
    user_id: Optional[int] = None
) -> Reminder:
    reminder = Reminder(
        lease_id=lease_id,
        tenant_id=tenant_id,
        user_id=user_id,
        message=message,
        remind_at=_utc_naive(remind_at),
        is_sent=False
    )
    session.add(reminder)
    await commit_or_raise(session)
    logging.info(f"Reminder {reminder.reminder_id} scheduled for {reminder.remind_at} UTC")
    return reminder


async def list_due_reminders(session: AsyncSession, now: Optional[datetime] = None) -> List[Reminder]:
    """
    Unsent reminders whose remind_at has passed, oldest first.

    now defaults to the current UTC time; a naive now is read as UTC.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    now = _utc_naive(now)

    stmt = (
        select(Reminder)
        .where(Reminder.is_sent == False, Reminder.remind_at <= now)  # noqa: E712
        .order_by(Reminder.remind_at, Reminder.reminder_id)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def mark_sent(session: AsyncSession, reminder_id: int) -> Reminder:
    """Idempotent: marking an already-sent reminder is a no-op."""
    reminder = await session.get(Reminder, reminder_id)
    if not reminder:
        raise NotFoundError(f"Reminder ID {reminder_id} not found")

    if reminder.is_sent:
        logging.info(f"Reminder {reminder_id} already sent")
        return reminder

    reminder.is_sent = True
    await commit_or_raise(session)
    return reminder


async def mark_many_sent(session: AsyncSession, reminder_ids: List[int]) -> int:
    if not reminder_ids:
        return 0
    stmt = (
        update(Reminder)
        .where(Reminder.reminder_id.in_(reminder_ids), Reminder.is_sent == False)  # noqa: E712
        .values(is_sent=True)
    )
    result = await session.execute(stmt)
    await commit_or_raise(session)
    return result.rowcount
