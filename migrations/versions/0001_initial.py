"""initial rent management schema

Revision ID: 0001_initial
Revises:
Create Date: 2025-09-17 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import mysql


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


MYSQL_OPTS = dict(mysql_engine='InnoDB', mysql_charset='utf8mb4', mysql_collate='utf8mb4_unicode_ci')

ENUMS = {
    'unit_status': ('available', 'occupied', 'maintenance', 'reserved'),
    'billing_cycle': ('monthly', 'quarterly', 'annually'),
    'lease_status': ('active', 'terminated', 'expired', 'pending'),
    'invoice_status': ('unpaid', 'paid', 'partially_paid', 'overdue', 'cancelled'),
    'payment_method': ('cash', 'bank_transfer', 'mpesa', 'card', 'cheque', 'other'),
    'maintenance_priority': ('low', 'medium', 'high'),
    'maintenance_status': ('open', 'in_progress', 'completed', 'cancelled'),
}


def _enum(name: str) -> sa.Enum:
    return sa.Enum(*ENUMS[name], name=name, create_constraint=True)


def _fk(columns, target, ondelete, name):
    return sa.ForeignKeyConstraint(columns, [target], name=name, ondelete=ondelete, onupdate='CASCADE')


def upgrade() -> None:
    # Roles
    op.create_table('roles',
        sa.Column('role_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('role_name', sa.String(length=50), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('role_id', name='pk_roles'),
        sa.UniqueConstraint('role_name', name='uq_roles_role_name'),
        **MYSQL_OPTS
    )

    # Users
    op.create_table('users',
        sa.Column('user_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=80), nullable=False),
        sa.Column('email', sa.String(length=150), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        _fk(['role_id'], 'roles.role_id', 'RESTRICT', 'fk_users_role_id_roles'),
        sa.PrimaryKeyConstraint('user_id', name='pk_users'),
        sa.UniqueConstraint('username', name='uq_users_username'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        **MYSQL_OPTS
    )

    # Properties
    op.create_table('properties',
        sa.Column('property_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_user_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('postal_code', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        _fk(['owner_user_id'], 'users.user_id', 'SET NULL', 'fk_properties_owner_user_id_users'),
        sa.PrimaryKeyConstraint('property_id', name='pk_properties'),
        **MYSQL_OPTS
    )
    op.create_index('uq_property_name_address', 'properties', ['name', 'address'],
                    unique=True, mysql_length={'address': 255})

    # Units
    op.create_table('units',
        sa.Column('unit_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('unit_number', sa.String(length=50), nullable=False),
        sa.Column('bedrooms', sa.SmallInteger().with_variant(mysql.TINYINT(unsigned=True), 'mysql'),
                  server_default='0', nullable=False),
        sa.Column('floor', sa.String(length=50), nullable=True),
        sa.Column('area_sq_m', sa.Numeric(precision=8, scale=2), nullable=True),
        sa.Column('status', _enum('unit_status'), server_default='available', nullable=False),
        sa.Column('monthly_rent', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        _fk(['property_id'], 'properties.property_id', 'CASCADE', 'fk_units_property_id_properties'),
        sa.PrimaryKeyConstraint('unit_id', name='pk_units'),
        sa.UniqueConstraint('property_id', 'unit_number', name='uq_unit_property_number'),
        sa.CheckConstraint('bedrooms >= 0', name='ck_units_bedrooms_unsigned'),
        **MYSQL_OPTS
    )

    # Tenants
    op.create_table('tenants',
        sa.Column('tenant_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('national_id', sa.String(length=50), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=150), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('emergency_contact_name', sa.String(length=150), nullable=True),
        sa.Column('emergency_contact_phone', sa.String(length=30), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('tenant_id', name='pk_tenants'),
        sa.UniqueConstraint('national_id', name='uq_tenants_national_id'),
        **MYSQL_OPTS
    )

    # Leases
    op.create_table('leases',
        sa.Column('lease_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('lease_start', sa.Date(), nullable=False),
        sa.Column('lease_end', sa.Date(), nullable=True),
        sa.Column('rent_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('security_deposit', sa.Numeric(precision=12, scale=2), server_default='0', nullable=False),
        sa.Column('billing_cycle', _enum('billing_cycle'), server_default='monthly', nullable=False),
        sa.Column('status', _enum('lease_status'), server_default='active', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        _fk(['unit_id'], 'units.unit_id', 'RESTRICT', 'fk_leases_unit_id_units'),
        _fk(['tenant_id'], 'tenants.tenant_id', 'RESTRICT', 'fk_leases_tenant_id_tenants'),
        sa.PrimaryKeyConstraint('lease_id', name='pk_leases'),
        sa.UniqueConstraint('unit_id', 'tenant_id', 'lease_start', name='uq_lease_unit_tenant_start'),
        **MYSQL_OPTS
    )

    # Invoices
    op.create_table('invoices',
        sa.Column('invoice_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('lease_id', sa.Integer(), nullable=False),
        sa.Column('invoice_number', sa.String(length=50), nullable=False),
        sa.Column('period_start', sa.Date(), nullable=False),
        sa.Column('period_end', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', _enum('invoice_status'), server_default='unpaid', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        _fk(['lease_id'], 'leases.lease_id', 'CASCADE', 'fk_invoices_lease_id_leases'),
        sa.PrimaryKeyConstraint('invoice_id', name='pk_invoices'),
        sa.UniqueConstraint('invoice_number', name='uq_invoices_invoice_number'),
        **MYSQL_OPTS
    )
    op.create_index('ix_invoices_lease_due', 'invoices', ['lease_id', 'due_date'])

    # Payments
    op.create_table('payments',
        sa.Column('payment_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('payment_date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('payment_method', _enum('payment_method'), server_default='mpesa', nullable=False),
        sa.Column('reference', sa.String(length=150), nullable=True),
        sa.Column('received_by_user_id', sa.Integer(), nullable=True),
        _fk(['invoice_id'], 'invoices.invoice_id', 'CASCADE', 'fk_payments_invoice_id_invoices'),
        _fk(['received_by_user_id'], 'users.user_id', 'SET NULL', 'fk_payments_received_by_user_id_users'),
        sa.PrimaryKeyConstraint('payment_id', name='pk_payments'),
        **MYSQL_OPTS
    )

    # Maintenance Requests
    op.create_table('maintenance_requests',
        sa.Column('request_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=True),
        sa.Column('reported_by', sa.String(length=150), nullable=True),
        sa.Column('reported_by_contact', sa.String(length=50), nullable=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('priority', _enum('maintenance_priority'), server_default='medium', nullable=False),
        sa.Column('status', _enum('maintenance_status'), server_default='open', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        _fk(['unit_id'], 'units.unit_id', 'CASCADE', 'fk_maintenance_requests_unit_id_units'),
        _fk(['tenant_id'], 'tenants.tenant_id', 'SET NULL', 'fk_maintenance_requests_tenant_id_tenants'),
        sa.PrimaryKeyConstraint('request_id', name='pk_maintenance_requests'),
        **MYSQL_OPTS
    )

    # Reminders
    op.create_table('reminders',
        sa.Column('reminder_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('lease_id', sa.Integer(), nullable=True),
        sa.Column('tenant_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('message', sa.String(length=500), nullable=False),
        sa.Column('remind_at', sa.DateTime(), nullable=False),
        sa.Column('is_sent', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        _fk(['lease_id'], 'leases.lease_id', 'CASCADE', 'fk_reminders_lease_id_leases'),
        _fk(['tenant_id'], 'tenants.tenant_id', 'CASCADE', 'fk_reminders_tenant_id_tenants'),
        _fk(['user_id'], 'users.user_id', 'SET NULL', 'fk_reminders_user_id_users'),
        sa.PrimaryKeyConstraint('reminder_id', name='pk_reminders'),
        **MYSQL_OPTS
    )

    # Audit Logs
    op.create_table('audit_logs',
        sa.Column('log_id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=150), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        _fk(['user_id'], 'users.user_id', 'SET NULL', 'fk_audit_logs_user_id_users'),
        sa.PrimaryKeyConstraint('log_id', name='pk_audit_logs'),
        **MYSQL_OPTS
    )


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('reminders')
    op.drop_table('maintenance_requests')
    op.drop_table('payments')
    op.drop_index('ix_invoices_lease_due', table_name='invoices')
    op.drop_table('invoices')
    op.drop_table('leases')
    op.drop_table('tenants')
    op.drop_table('units')
    op.drop_index('uq_property_name_address', table_name='properties')
    op.drop_table('properties')
    op.drop_table('users')
    op.drop_table('roles')

    # PostgreSQL keeps enum types around after their tables are gone
    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for name in ENUMS:
            sa.Enum(name=name).drop(bind, checkfirst=True)
