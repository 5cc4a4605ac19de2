import enum
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from sqlalchemy import (
    BigInteger, Boolean, CheckConstraint, Date, DateTime, Enum, ForeignKey, Index,
    Integer, Numeric, SmallInteger, String, Text, UniqueConstraint, false,
)
from sqlalchemy.dialects import mysql
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from rentals.database.core import Base

# Applied to every table; ignored by dialects other than MySQL
MYSQL_TABLE_OPTIONS = {
    "mysql_engine": "InnoDB",
    "mysql_charset": "utf8mb4",
    "mysql_collate": "utf8mb4_unicode_ci",
}


# Enums
class UnitStatus(str, enum.Enum):
    available = "available"
    occupied = "occupied"
    maintenance = "maintenance"
    reserved = "reserved"

class BillingCycle(str, enum.Enum):
    monthly = "monthly"
    quarterly = "quarterly"
    annually = "annually"

class LeaseStatus(str, enum.Enum):
    active = "active"
    terminated = "terminated"
    expired = "expired"
    pending = "pending"

class InvoiceStatus(str, enum.Enum):
    unpaid = "unpaid"
    paid = "paid"
    partially_paid = "partially_paid"
    overdue = "overdue"
    cancelled = "cancelled"

class PaymentMethod(str, enum.Enum):
    cash = "cash"
    bank_transfer = "bank_transfer"
    mpesa = "mpesa"
    card = "card"
    cheque = "cheque"
    other = "other"

class MaintenancePriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"

class MaintenanceStatus(str, enum.Enum):
    open = "open"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


def _enum(enum_cls, name: str) -> Enum:
    """Closed set: native ENUM where supported, CHECK constraint elsewhere."""
    return Enum(enum_cls, name=name, create_constraint=True, validate_strings=True)


def _fk(target: str, ondelete: str) -> ForeignKey:
    return ForeignKey(target, ondelete=ondelete, onupdate="CASCADE")


Money = Numeric(12, 2)


# Role
class Role(Base):
    __tablename__ = "roles"
    __table_args__ = (MYSQL_TABLE_OPTIONS,)

    role_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    role_name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)  # admin, manager, owner
    description: Mapped[Optional[str]] = mapped_column(String(255))

    users: Mapped[List["User"]] = relationship(back_populates="role", passive_deletes="all")


# User (staff / system accounts)
class User(Base):
    __tablename__ = "users"
    __table_args__ = (MYSQL_TABLE_OPTIONS,)

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    role_id: Mapped[int] = mapped_column(_fk("roles.role_id", "RESTRICT"), nullable=False)
    username: Mapped[str] = mapped_column(String(80), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    role: Mapped["Role"] = relationship(back_populates="users")
    owned_properties: Mapped[List["Property"]] = relationship(back_populates="owner", passive_deletes=True)


# Property (a building or complex)
class Property(Base):
    __tablename__ = "properties"
    __table_args__ = (
        # MySQL needs a prefix length to index a TEXT column
        Index("uq_property_name_address", "name", "address", unique=True, mysql_length={"address": 255}),
        MYSQL_TABLE_OPTIONS,
    )

    property_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_user_id: Mapped[Optional[int]] = mapped_column(_fk("users.user_id", "SET NULL"), nullable=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    postal_code: Mapped[Optional[str]] = mapped_column(String(20))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    owner: Mapped[Optional["User"]] = relationship(back_populates="owned_properties")
    units: Mapped[List["Unit"]] = relationship(
        back_populates="rental_property", cascade="all, delete-orphan", passive_deletes=True
    )


# Unit (rentable space within a property)
class Unit(Base):
    __tablename__ = "units"
    __table_args__ = (
        UniqueConstraint("property_id", "unit_number", name="uq_unit_property_number"),
        CheckConstraint("bedrooms >= 0", name="bedrooms_unsigned"),
        MYSQL_TABLE_OPTIONS,
    )

    unit_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[int] = mapped_column(_fk("properties.property_id", "CASCADE"), nullable=False)
    unit_number: Mapped[str] = mapped_column(String(50), nullable=False)  # A101, Shop-1
    bedrooms: Mapped[int] = mapped_column(
        SmallInteger().with_variant(mysql.TINYINT(unsigned=True), "mysql"), default=0, server_default="0"
    )
    floor: Mapped[Optional[str]] = mapped_column(String(50))
    area_sq_m: Mapped[Optional[Decimal]] = mapped_column(Numeric(8, 2))
    status: Mapped[UnitStatus] = mapped_column(
        _enum(UnitStatus, "unit_status"), default=UnitStatus.available, server_default=UnitStatus.available.value
    )
    monthly_rent: Mapped[Decimal] = mapped_column(Money, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    rental_property: Mapped["Property"] = relationship(back_populates="units")
    # Lease -> Unit is RESTRICT: never let the ORM touch leases on unit delete
    leases: Mapped[List["Lease"]] = relationship(back_populates="unit", passive_deletes="all")
    maintenance_requests: Mapped[List["MaintenanceRequest"]] = relationship(
        back_populates="unit", cascade="all, delete-orphan", passive_deletes=True
    )


# Tenant (people renting)
class Tenant(Base):
    __tablename__ = "tenants"
    __table_args__ = (MYSQL_TABLE_OPTIONS,)

    tenant_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    national_id: Mapped[Optional[str]] = mapped_column(String(50), unique=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(150))
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    emergency_contact_name: Mapped[Optional[str]] = mapped_column(String(150))
    emergency_contact_phone: Mapped[Optional[str]] = mapped_column(String(30))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    leases: Mapped[List["Lease"]] = relationship(back_populates="tenant", passive_deletes="all")
    maintenance_requests: Mapped[List["MaintenanceRequest"]] = relationship(
        back_populates="tenant", passive_deletes=True
    )
    reminders: Mapped[List["Reminder"]] = relationship(
        back_populates="tenant", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


# Lease (tenant <-> unit for a period)
class Lease(Base):
    __tablename__ = "leases"
    __table_args__ = (
        UniqueConstraint("unit_id", "tenant_id", "lease_start", name="uq_lease_unit_tenant_start"),
        MYSQL_TABLE_OPTIONS,
    )

    lease_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    unit_id: Mapped[int] = mapped_column(_fk("units.unit_id", "RESTRICT"), nullable=False)
    tenant_id: Mapped[int] = mapped_column(_fk("tenants.tenant_id", "RESTRICT"), nullable=False)
    lease_start: Mapped[date] = mapped_column(Date, nullable=False)
    lease_end: Mapped[Optional[date]] = mapped_column(Date, nullable=True)  # None = open-ended

    # Snapshot of the agreed rent, independent of the unit's current price
    rent_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    security_deposit: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), server_default="0")
    billing_cycle: Mapped[BillingCycle] = mapped_column(
        _enum(BillingCycle, "billing_cycle"), default=BillingCycle.monthly, server_default=BillingCycle.monthly.value
    )
    status: Mapped[LeaseStatus] = mapped_column(
        _enum(LeaseStatus, "lease_status"), default=LeaseStatus.active, server_default=LeaseStatus.active.value
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    unit: Mapped["Unit"] = relationship(back_populates="leases")
    tenant: Mapped["Tenant"] = relationship(back_populates="leases")
    invoices: Mapped[List["Invoice"]] = relationship(
        back_populates="lease", cascade="all, delete-orphan", passive_deletes=True
    )
    reminders: Mapped[List["Reminder"]] = relationship(
        back_populates="lease", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def is_open_ended(self) -> bool:
        return self.lease_end is None


# Invoice (per billing period)
class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        Index("ix_invoices_lease_due", "lease_id", "due_date"),
        MYSQL_TABLE_OPTIONS,
    )

    invoice_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lease_id: Mapped[int] = mapped_column(_fk("leases.lease_id", "CASCADE"), nullable=False)
    invoice_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(
        _enum(InvoiceStatus, "invoice_status"), default=InvoiceStatus.unpaid, server_default=InvoiceStatus.unpaid.value
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    lease: Mapped["Lease"] = relationship(back_populates="invoices")
    payments: Mapped[List["Payment"]] = relationship(
        back_populates="invoice", cascade="all, delete-orphan", passive_deletes=True
    )


# Payment (many per invoice)
class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (MYSQL_TABLE_OPTIONS,)

    payment_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invoice_id: Mapped[int] = mapped_column(_fk("invoices.invoice_id", "CASCADE"), nullable=False)
    payment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    payment_method: Mapped[PaymentMethod] = mapped_column(
        _enum(PaymentMethod, "payment_method"), default=PaymentMethod.mpesa, server_default=PaymentMethod.mpesa.value
    )
    reference: Mapped[Optional[str]] = mapped_column(String(150))  # transaction id
    received_by_user_id: Mapped[Optional[int]] = mapped_column(_fk("users.user_id", "SET NULL"), nullable=True)

    invoice: Mapped["Invoice"] = relationship(back_populates="payments")
    received_by: Mapped[Optional["User"]] = relationship()


# MaintenanceRequest
class MaintenanceRequest(Base):
    __tablename__ = "maintenance_requests"
    __table_args__ = (MYSQL_TABLE_OPTIONS,)

    request_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    unit_id: Mapped[int] = mapped_column(_fk("units.unit_id", "CASCADE"), nullable=False)
    # Reported by tenant or staff
    tenant_id: Mapped[Optional[int]] = mapped_column(_fk("tenants.tenant_id", "SET NULL"), nullable=True)
    reported_by: Mapped[Optional[str]] = mapped_column(String(150))
    reported_by_contact: Mapped[Optional[str]] = mapped_column(String(50))
    description: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[MaintenancePriority] = mapped_column(
        _enum(MaintenancePriority, "maintenance_priority"),
        default=MaintenancePriority.medium,
        server_default=MaintenancePriority.medium.value,
    )
    status: Mapped[MaintenanceStatus] = mapped_column(
        _enum(MaintenanceStatus, "maintenance_status"),
        default=MaintenanceStatus.open,
        server_default=MaintenanceStatus.open.value,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    unit: Mapped["Unit"] = relationship(back_populates="maintenance_requests")
    tenant: Mapped[Optional["Tenant"]] = relationship(back_populates="maintenance_requests")


# Reminder (rent due, inspection, ...)
class Reminder(Base):
    __tablename__ = "reminders"
    __table_args__ = (MYSQL_TABLE_OPTIONS,)

    reminder_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lease_id: Mapped[Optional[int]] = mapped_column(_fk("leases.lease_id", "CASCADE"), nullable=True)
    tenant_id: Mapped[Optional[int]] = mapped_column(_fk("tenants.tenant_id", "CASCADE"), nullable=True)
    user_id: Mapped[Optional[int]] = mapped_column(_fk("users.user_id", "SET NULL"), nullable=True)  # staff recipient
    message: Mapped[str] = mapped_column(String(500), nullable=False)
    remind_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_sent: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    lease: Mapped[Optional["Lease"]] = relationship(back_populates="reminders")
    tenant: Mapped[Optional["Tenant"]] = relationship(back_populates="reminders")
    user: Mapped[Optional["User"]] = relationship()


# AuditLog (append-only)
class AuditLog(Base):
    __tablename__ = "audit_logs"
    __table_args__ = (MYSQL_TABLE_OPTIONS,)

    # SQLite only autoincrements a plain INTEGER primary key
    log_id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    user_id: Mapped[Optional[int]] = mapped_column(_fk("users.user_id", "SET NULL"), nullable=True)
    action: Mapped[str] = mapped_column(String(150), nullable=False)
    details: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    user: Mapped[Optional["User"]] = relationship()
