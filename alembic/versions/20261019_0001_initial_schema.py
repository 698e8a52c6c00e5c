"""Create initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '20261019_0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(bind, name: str) -> bool:
    return inspect(bind).has_table(name)


def upgrade() -> None:
    bind = op.get_bind()

    bookingstatus_enum = sa.Enum('PENDING', 'CONFIRMED', 'CANCELLED', name='bookingstatus')
    commissionstatus_enum = sa.Enum('PAID', 'PENDING', name='commissionstatus')
    paymentstatus_enum = sa.Enum('PAID', 'PENDING', 'OVERDUE', name='paymentstatus')

    if not _has_table(bind, 'users'):
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('hashed_password', sa.String(length=255), nullable=False),
            sa.Column('role', sa.String(length=20), server_default='student', nullable=False),
            sa.Column('display_name', sa.String(length=200), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('currency', sa.String(length=8), server_default='NGN', nullable=False),
            sa.Column('business_name', sa.String(length=200), nullable=True),
            sa.Column('phone', sa.String(length=50), nullable=True),
            sa.Column('address', sa.String(length=300), nullable=True),
            sa.Column('description', sa.Text(), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)

    if not _has_table(bind, 'hostels'):
        op.create_table('hostels',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('business_id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('location', sa.String(length=300), nullable=True),
            sa.Column('location_details', sa.JSON(), nullable=True),
            sa.Column('price_per_year', sa.Numeric(precision=12, scale=2), nullable=True),
            sa.Column('room_types', sa.JSON(), nullable=True),
            sa.Column('available_rooms', sa.Integer(), server_default='0', nullable=False),
            sa.Column('amenities', sa.JSON(), nullable=True),
            sa.Column('contact', sa.JSON(), nullable=True),
            sa.Column('rules', sa.Text(), nullable=True),
            sa.Column('image_urls', sa.JSON(), nullable=True),
            sa.Column('geolocation', sa.JSON(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['business_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_hostels_business_id'), 'hostels', ['business_id'], unique=False)

    if not _has_table(bind, 'agents'):
        op.create_table('agents',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('display_name', sa.String(length=200), nullable=True),
            sa.Column('email', sa.String(length=255), nullable=True),
            sa.Column('phone', sa.String(length=50), nullable=True),
            sa.Column('photo_url', sa.String(length=500), nullable=True),
            sa.Column('active', sa.Boolean(), nullable=True),
            sa.Column('verified', sa.Boolean(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_agents_id'), 'agents', ['id'], unique=False)
        op.create_index(op.f('ix_agents_email'), 'agents', ['email'], unique=False)

    if not _has_table(bind, 'agent_businesses'):
        op.create_table('agent_businesses',
            sa.Column('agent_id', sa.Integer(), nullable=False),
            sa.Column('business_id', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['agent_id'], ['agents.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['business_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('agent_id', 'business_id')
        )

    if not _has_table(bind, 'hostel_agents'):
        op.create_table('hostel_agents',
            sa.Column('hostel_id', sa.Integer(), nullable=False),
            sa.Column('agent_id', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['hostel_id'], ['hostels.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['agent_id'], ['agents.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('hostel_id', 'agent_id')
        )

    if not _has_table(bind, 'rooms'):
        op.create_table('rooms',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('hostel_id', sa.Integer(), nullable=False),
            sa.Column('room_number', sa.String(length=20), nullable=False),
            sa.Column('room_type', sa.String(length=50), server_default='Standard', nullable=False),
            sa.Column('capacity', sa.Integer(), server_default='1', nullable=False),
            sa.CheckConstraint('capacity >= 1', name='ck_rooms_capacity_positive'),
            sa.ForeignKeyConstraint(['hostel_id'], ['hostels.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_rooms_hostel_id'), 'rooms', ['hostel_id'], unique=False)

    if not _has_table(bind, 'occupants'):
        op.create_table('occupants',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('room_id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('lease_end', sa.Date(), nullable=False),
            sa.Column('payment_status', paymentstatus_enum, nullable=False),
            sa.Column('agent_assisted', sa.Boolean(), server_default=sa.false(), nullable=False),
            sa.Column('agent_name', sa.String(length=200), nullable=True),
            sa.ForeignKeyConstraint(['room_id'], ['rooms.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_occupants_room_id'), 'occupants', ['room_id'], unique=False)

    if not _has_table(bind, 'bookings'):
        op.create_table('bookings',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('business_id', sa.Integer(), nullable=False),
            sa.Column('hostel_id', sa.Integer(), nullable=True),
            sa.Column('hostel_name', sa.String(length=200), nullable=True),
            sa.Column('room_number', sa.String(length=20), nullable=True),
            sa.Column('student_id', sa.Integer(), nullable=True),
            sa.Column('student_name', sa.String(length=200), nullable=True),
            sa.Column('agent_id', sa.Integer(), nullable=True),
            sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=True),
            sa.Column('booking_date', sa.Date(), nullable=False),
            sa.Column('status', bookingstatus_enum, nullable=False),
            sa.Column('commission_amount', sa.Numeric(precision=12, scale=2), server_default='0', nullable=False),
            sa.Column('commission_status', commissionstatus_enum, nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.CheckConstraint('commission_amount >= 0', name='ck_bookings_commission_non_negative'),
            sa.ForeignKeyConstraint(['business_id'], ['users.id'], ),
            sa.ForeignKeyConstraint(['hostel_id'], ['hostels.id'], ondelete='SET NULL'),
            sa.ForeignKeyConstraint(['student_id'], ['users.id'], ),
            sa.ForeignKeyConstraint(['agent_id'], ['agents.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_bookings_id'), 'bookings', ['id'], unique=False)
        op.create_index(op.f('ix_bookings_business_id'), 'bookings', ['business_id'], unique=False)
        op.create_index(op.f('ix_bookings_hostel_id'), 'bookings', ['hostel_id'], unique=False)
        op.create_index(op.f('ix_bookings_agent_id'), 'bookings', ['agent_id'], unique=False)
        op.create_index(op.f('ix_bookings_booking_date'), 'bookings', ['booking_date'], unique=False)

    if not _has_table(bind, 'activities'):
        op.create_table('activities',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('type', sa.String(length=40), nullable=False),
            sa.Column('title', sa.String(length=300), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('entity_id', sa.String(length=64), nullable=True),
            sa.Column('entity_type', sa.String(length=40), nullable=True),
            sa.Column('timestamp', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_activities_id'), 'activities', ['id'], unique=False)
        op.create_index(op.f('ix_activities_user_id'), 'activities', ['user_id'], unique=False)
        op.create_index(op.f('ix_activities_type'), 'activities', ['type'], unique=False)
        op.create_index(op.f('ix_activities_timestamp'), 'activities', ['timestamp'], unique=False)


def downgrade() -> None:
    for table in ('activities', 'bookings', 'occupants', 'rooms', 'hostel_agents',
                  'agent_businesses', 'agents', 'hostels', 'users'):
        op.drop_table(table)
    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for enum_name in ('bookingstatus', 'commissionstatus', 'paymentstatus'):
            sa.Enum(name=enum_name).drop(bind, checkfirst=True)
