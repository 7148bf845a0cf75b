"""create booking tables

Revision ID: 6f2a9c41d7b3
Revises:
Create Date: 2026-10-18 10:12:44.512390

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '6f2a9c41d7b3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # 1. Create businesses table
    op.create_table(
        'businesses',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('slug', sa.String(120), nullable=False),
        sa.Column('owner_email', sa.String(320), nullable=True),
        sa.Column('timezone', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_index('ix_businesses_slug', 'businesses', ['slug'], unique=True)

    # 2. Create business_settings table (one row per business)
    op.create_table(
        'business_settings',
        sa.Column('business_id', sa.Uuid(), sa.ForeignKey('businesses.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('business_name', sa.String(200), nullable=False),
        sa.Column('owner_email', sa.String(320), nullable=True),
        sa.Column('timezone', sa.String(64), nullable=False),
        sa.Column('open_time', sa.String(5), nullable=False),
        sa.Column('close_time', sa.String(5), nullable=False),
        sa.Column('business_hours', sa.JSON(), nullable=True),
        sa.Column('notify_owner_email', sa.Boolean(), nullable=False)
    )

    # 3. Create appointment_types table
    op.create_table(
        'appointment_types',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('business_id', sa.Uuid(), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('location_mode', sa.String(20), nullable=False),
        sa.Column('color', sa.String(120), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_index('ix_appointment_types_business_id', 'appointment_types', ['business_id'])
    op.create_index('ix_appointment_types_active', 'appointment_types', ['active'])

    # 4. Create appointments table
    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('business_id', sa.Uuid(), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type_id', sa.Uuid(), sa.ForeignKey('appointment_types.id'), nullable=True),
        sa.Column('client_name', sa.String(200), nullable=False),
        sa.Column('client_email', sa.String(320), nullable=True),
        sa.Column('title', sa.String(500), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time', sa.String(5), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('location', sa.String(100), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('source', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )

    # Indexes for appointments
    op.create_index('idx_appointments_business_date_time', 'appointments', ['business_id', 'date', 'time'])
    op.create_index('idx_appointments_business_status', 'appointments', ['business_id', 'status'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_appointments_business_status', table_name='appointments')
    op.drop_index('idx_appointments_business_date_time', table_name='appointments')
    op.drop_table('appointments')

    op.drop_index('ix_appointment_types_active', table_name='appointment_types')
    op.drop_index('ix_appointment_types_business_id', table_name='appointment_types')
    op.drop_table('appointment_types')

    op.drop_table('business_settings')

    op.drop_index('ix_businesses_slug', table_name='businesses')
    op.drop_table('businesses')
