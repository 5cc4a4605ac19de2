"""
Invoices and payments.

Invoice status is whatever the caller sets it to: recording a payment
never marks an invoice paid, and no transition is forbidden (an invoice
may go from paid back to unpaid).
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rentals.database.models import Invoice, InvoiceStatus, Payment, PaymentMethod
from rentals.database.errors import commit_or_raise, delete_or_raise, NotFoundError, InvalidValueError
from rentals.schemas import validation


# --- Invoices ---

async def create_invoice(
    session: AsyncSession,
    lease_id: int,
    invoice_number: str,
    period_start: date,
    period_end: date,
    due_date: date,
    amount,
    status: InvoiceStatus = InvoiceStatus.unpaid
) -> Invoice:
    if period_end < period_start:
        raise InvalidValueError(f"Billing period ends ({period_end}) before it starts ({period_start})")

    invoice = Invoice(
        lease_id=lease_id,
        invoice_number=invoice_number,
        period_start=period_start,
        period_end=period_end,
        due_date=due_date,
        amount=validation.money(amount),
        status=status
    )
    session.add(invoice)
    await commit_or_raise(session)
    logging.info(f"Invoice {invoice.invoice_number} created for lease {lease_id}: {invoice.amount}")
    return invoice


async def get_invoice(session: AsyncSession, invoice_id: int) -> Invoice:
    stmt = (
        select(Invoice)
        .where(Invoice.invoice_id == invoice_id)
        .options(selectinload(Invoice.payments))
    )
    result = await session.execute(stmt)
    invoice = result.scalar_one_or_none()
    if not invoice:
        raise NotFoundError(f"Invoice ID {invoice_id} not found")
    return invoice


async def get_invoice_by_number(session: AsyncSession, invoice_number: str) -> Optional[Invoice]:
    stmt = (
        select(Invoice)
        .where(Invoice.invoice_number == invoice_number)
        .options(selectinload(Invoice.payments))
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_invoices(
    session: AsyncSession,
    lease_id: int,
    status: Optional[InvoiceStatus] = None
) -> List[Invoice]:
    """Invoices of a lease, earliest due first (served by the lease/due_date index)"""
    stmt = (
        select(Invoice)
        .where(Invoice.lease_id == lease_id)
        .order_by(Invoice.due_date, Invoice.invoice_id)
    )
    if status:
        stmt = stmt.where(Invoice.status == status)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def set_invoice_status(session: AsyncSession, invoice_id: int, status: InvoiceStatus) -> Invoice:
    invoice = await get_invoice(session, invoice_id)
    old_status = invoice.status
    invoice.status = status
    await commit_or_raise(session)
    logging.info(f"Invoice {invoice.invoice_number}: {old_status} -> {invoice.status}")
    return invoice


async def delete_invoice(session: AsyncSession, invoice_id: int) -> None:
    """Payments recorded against the invoice are deleted with it."""
    await delete_or_raise(
        session, delete(Invoice).where(Invoice.invoice_id == invoice_id), f"Invoice ID {invoice_id}"
    )
    logging.info(f"Invoice deleted: {invoice_id}")


# --- Payments ---

async def record_payment(
    session: AsyncSession,
    invoice_id: int,
    amount,
    payment_method: PaymentMethod = PaymentMethod.mpesa,
    reference: Optional[str] = None,
    received_by_user_id: Optional[int] = None,
    payment_date: Optional[datetime] = None
) -> Payment:
    """
    Record money received against an invoice.

    Several payments per invoice are allowed. payment_date defaults to the
    database's current timestamp.
    """
    payment = Payment(
        invoice_id=invoice_id,
        amount=validation.money(amount),
        payment_method=payment_method,
        reference=reference,
        received_by_user_id=received_by_user_id
    )
    if payment_date is not None:
        payment.payment_date = payment_date

    session.add(payment)
    await commit_or_raise(session)
    logging.info(
        f"Payment {payment.payment_id} of {payment.amount} via {payment.payment_method} "
        f"recorded against invoice {invoice_id}"
    )
    return payment


async def list_payments(session: AsyncSession, invoice_id: int) -> List[Payment]:
    stmt = (
        select(Payment)
        .where(Payment.invoice_id == invoice_id)
        .order_by(Payment.payment_date, Payment.payment_id)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_total_paid(session: AsyncSession, invoice_id: int) -> Decimal:
    stmt = select(func.coalesce(func.sum(Payment.amount), 0)).where(Payment.invoice_id == invoice_id)
    result = await session.execute(stmt)
    return Decimal(str(result.scalar())).quantize(Decimal("0.01"))
