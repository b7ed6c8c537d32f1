"""initial scheduling schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'businesses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('slug', sa.Text(), unique=True),
        sa.Column('is_active', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )

    op.create_table(
        'business_hours',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('business_id', sa.Integer(), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('is_open', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('start_time', sa.Text()),
        sa.Column('end_time', sa.Text()),
        sa.Column('lunch_break_start', sa.Text()),
        sa.Column('lunch_break_end', sa.Text()),
        sa.UniqueConstraint('business_id', 'day_of_week'),
    )

    op.create_table(
        'business_slot_configurations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('business_id', sa.Integer(), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('slot_duration_minutes', sa.Integer(), nullable=False, server_default=sa.text('30')),
        sa.Column('slots_per_day', sa.Integer(), nullable=False, server_default=sa.text('48')),
        sa.Column('start_hour', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('end_hour', sa.Integer(), nullable=False, server_default=sa.text('24')),
        sa.Column('working_start_slot', sa.Integer(), nullable=False, server_default=sa.text('18')),
        sa.Column('working_end_slot', sa.Integer(), nullable=False, server_default=sa.text('36')),
        sa.Column('time_zone', sa.Text(), nullable=False, server_default=sa.text("'UTC'")),
        sa.Column('created_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )

    op.create_table(
        'staff',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('business_id', sa.Integer(), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('is_active', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('email', sa.Text()),
        sa.Column('role', sa.Text()),
    )

    op.create_table(
        'staff_availability',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('staff_id', sa.Integer(), sa.ForeignKey('staff.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('schedule', sa.Text(), nullable=False, server_default=sa.text("'{}'")),
    )

    op.create_table(
        'staff_unavailability',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('staff_id', sa.Integer(), sa.ForeignKey('staff.id', ondelete='CASCADE'), nullable=False),
        sa.Column('start', sa.Text(), nullable=False),
        sa.Column('end', sa.Text(), nullable=False),
        sa.Column('reason', sa.Text()),
        sa.Column('created_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )

    op.create_table(
        'services',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('business_id', sa.Integer(), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False, server_default=sa.text('0')),
        sa.Column('available_days', sa.Text(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column('any_time_available', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('slot_model', sa.Text(), nullable=False, server_default=sa.text("'continuous'")),
        sa.Column('max_capacity', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('is_active', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('start_time', sa.Text()),
        sa.Column('end_time', sa.Text()),
        sa.Column('slots', sa.Text()),
        sa.Column('description', sa.Text()),
    )

    op.create_table(
        'clients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('business_id', sa.Integer(), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('is_eligible', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('is_deleted', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('email', sa.Text()),
        sa.Column('phone', sa.Text()),
    )

    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('business_id', sa.Integer(), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('service_id', sa.Integer(), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('staff_id', sa.Integer(), sa.ForeignKey('staff.id', ondelete='CASCADE'), nullable=False),
        sa.Column('scheduled_for', sa.Text(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column('created_at', sa.Text(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.Text(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('notes', sa.Text()),
        sa.Column('start_slot', sa.Integer()),
        sa.Column('slots_used', sa.Integer()),
        sa.Column('group_key', sa.Text()),
        sa.Column('cancelled_at', sa.Text()),
        sa.Column('cancel_reason', sa.Text()),
    )
    op.create_index('ix_appointments_staff_scheduled', 'appointments', ['staff_id', 'scheduled_for'])

    op.create_table(
        'staff_time_claims',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('staff_id', sa.Integer(), sa.ForeignKey('staff.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day', sa.Text(), nullable=False),
        sa.Column('unit', sa.Integer(), nullable=False),
        sa.Column('appointment_id', sa.Integer(), sa.ForeignKey('appointments.id', ondelete='CASCADE')),
        sa.Column('group_key', sa.Text()),
        sa.UniqueConstraint('staff_id', 'day', 'unit'),
    )

    op.create_table(
        'group_seats',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('group_key', sa.Text(), nullable=False),
        sa.Column('seat', sa.Integer(), nullable=False),
        sa.Column('appointment_id', sa.Integer(), sa.ForeignKey('appointments.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.UniqueConstraint('group_key', 'seat'),
    )


def downgrade() -> None:
    op.drop_table('group_seats')
    op.drop_table('staff_time_claims')
    op.drop_index('ix_appointments_staff_scheduled', table_name='appointments')
    op.drop_table('appointments')
    op.drop_table('clients')
    op.drop_table('services')
    op.drop_table('staff_unavailability')
    op.drop_table('staff_availability')
    op.drop_table('staff')
    op.drop_table('business_slot_configurations')
    op.drop_table('business_hours')
    op.drop_table('businesses')
