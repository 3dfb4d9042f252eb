"""create scheduling tables

Revision ID: 4c1f2a9d7e31
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '4c1f2a9d7e31'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # 1. Customers
    op.create_table(
        'customers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'))
    )
    op.create_index('ix_customers_phone', 'customers', ['phone'])

    # 2. Vehicles
    op.create_table(
        'vehicles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('customer_id', sa.Uuid(), sa.ForeignKey('customers.id'), nullable=True),
        sa.Column('brand', sa.String(100), nullable=False),
        sa.Column('model', sa.String(100), nullable=False),
        sa.Column('year', sa.Integer, nullable=True),
        sa.Column('license_plate', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'))
    )
    op.create_index('ix_vehicles_customer_id', 'vehicles', ['customer_id'])
    op.create_index('ix_vehicles_license_plate', 'vehicles', ['license_plate'], unique=True)

    # 3. Services
    op.create_table(
        'services',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=True),
        sa.Column('duration_minutes', sa.Integer, nullable=True),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'))
    )
    op.create_index('ix_services_is_active', 'services', ['is_active'])

    # 4. Appointments
    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('appointment_code', sa.String(20), nullable=False),
        sa.Column('customer_id', sa.Uuid(), sa.ForeignKey('customers.id'), nullable=True),
        sa.Column('vehicle_id', sa.Uuid(), sa.ForeignKey('vehicles.id'), nullable=True),
        sa.Column('service_id', sa.Uuid(), sa.ForeignKey('services.id'), nullable=True),
        sa.Column('appointment_date', sa.Date, nullable=False),
        sa.Column('appointment_time', sa.String(5), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('reminder_sent', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'in_progress', 'completed', 'cancelled')",
            name='ck_appointments_status'
        ),
        sa.CheckConstraint(
            "appointment_code ~ '^LH[0-9]{9}$'",
            name='ck_appointments_code_format'
        )
    )
    op.create_index('ix_appointments_appointment_code', 'appointments', ['appointment_code'], unique=True)
    op.create_index('ix_appointments_customer_id', 'appointments', ['customer_id'])
    op.create_index('idx_appointments_date_status', 'appointments', ['appointment_date', 'status'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_appointments_date_status', table_name='appointments')
    op.drop_index('ix_appointments_customer_id', table_name='appointments')
    op.drop_index('ix_appointments_appointment_code', table_name='appointments')
    op.drop_table('appointments')

    op.drop_index('ix_services_is_active', table_name='services')
    op.drop_table('services')

    op.drop_index('ix_vehicles_license_plate', table_name='vehicles')
    op.drop_index('ix_vehicles_customer_id', table_name='vehicles')
    op.drop_table('vehicles')

    op.drop_index('ix_customers_phone', table_name='customers')
    op.drop_table('customers')
