"""Create users, events and attendances tables

Revision ID: 0001_create_core_tables
Revises:
Create Date: 2026-10-18

This migration creates the tables for RSVP admission control:
- users: accounts that sign in and own events
- events: event details plus capacity and confirmed_count counters
- attendances: one record per (event, caller) pair, flipped between
  active and cancelled
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_create_core_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'events',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('owner_id', sa.String(), nullable=False),  # No FK - identity is external
        sa.Column('title', sa.String(100), nullable=False),
        sa.Column('description', sa.String(2000), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('location', sa.String(200), nullable=False),
        sa.Column('image_url', sa.String(), nullable=True),

        # Admission counters
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('confirmed_count', sa.Integer(), nullable=False, server_default=sa.text('0')),

        # Timestamps
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),

        # Constraints
        sa.CheckConstraint('capacity >= 1', name='check_event_capacity_positive'),
        sa.CheckConstraint('confirmed_count >= 0', name='check_event_confirmed_non_negative'),
        sa.CheckConstraint('confirmed_count <= capacity', name='check_event_confirmed_lte_capacity'),
    )
    op.create_index('ix_events_owner_id', 'events', ['owner_id'])
    op.create_index('ix_events_date', 'events', ['date'])

    op.create_table(
        'attendances',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('event_id', sa.String(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('caller_id', sa.String(), nullable=False),  # No FK - identity is external
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('event_id', 'caller_id', name='unique_attendance_event_caller'),
    )

    op.create_check_constraint(
        'check_attendance_status',
        'attendances',
        "status IN ('active', 'cancelled', 'waitlisted')"
    )

    op.create_index('ix_attendances_event_id', 'attendances', ['event_id'])
    op.create_index('ix_attendances_caller_id', 'attendances', ['caller_id'])
    op.create_index('ix_attendances_event_status', 'attendances', ['event_id', 'status'])


def downgrade() -> None:
    op.drop_index('ix_attendances_event_status', table_name='attendances')
    op.drop_index('ix_attendances_caller_id', table_name='attendances')
    op.drop_index('ix_attendances_event_id', table_name='attendances')
    op.drop_table('attendances')
    op.drop_index('ix_events_date', table_name='events')
    op.drop_index('ix_events_owner_id', table_name='events')
    op.drop_table('events')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
