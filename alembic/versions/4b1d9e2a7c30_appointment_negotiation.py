"""appointment negotiation tables

Revision ID: 4b1d9e2a7c30
Revises:
Create Date: 2026-10-19 10:12:41.503117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '4b1d9e2a7c30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = postgresql.ENUM('customer', 'professional', name='userrole', create_type=False)
appointment_status = postgresql.ENUM(
    'pending_professional_approval',
    'confirmed',
    'rejected_by_professional',
    'countered_by_professional',
    'rejected_by_customer',
    'cancelled_by_customer',
    'cancelled_by_professional',
    'completed',
    name='appointment_status',
    create_type=False
)


def upgrade() -> None:
    """Upgrade schema."""
    user_role.create(op.get_bind(), checkfirst=True)
    appointment_status.create(op.get_bind(), checkfirst=True)

    # 1. users
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('business_name', sa.String(255), nullable=True),
        sa.Column('role', user_role, nullable=False, server_default='customer'),
        sa.Column('timezone', sa.String(64), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False)
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    # 2. availability_windows, one per professional and day name
    op.create_table(
        'availability_windows',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('professional_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day', sa.String(9), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('start_time', sa.String(5), nullable=True),
        sa.Column('end_time', sa.String(5), nullable=True),
        sa.UniqueConstraint('professional_id', 'day', name='uq_availability_professional_day')
    )
    op.create_index('ix_availability_windows_professional_id', 'availability_windows', ['professional_id'])

    # 3. appointments
    op.create_table(
        'appointments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('professional_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.String(5), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('end_time', sa.String(5), nullable=False),
        sa.Column('professional_timezone', sa.String(64), nullable=False),
        sa.Column('services', sa.JSON(), nullable=False),
        sa.Column('total_duration', sa.Integer(), nullable=False),
        sa.Column('customer_notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('quoted_price', sa.Float(), nullable=False),
        sa.Column('final_price', sa.Float(), nullable=False),
        sa.Column('status', appointment_status, nullable=False, server_default='pending_professional_approval'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False)
    )
    op.create_index('ix_appointments_customer_id', 'appointments', ['customer_id'])
    op.create_index('ix_appointments_professional_id', 'appointments', ['professional_id'])
    op.create_index('ix_appointments_status', 'appointments', ['status'])
    op.create_index('idx_appointments_professional_date', 'appointments', ['professional_id', 'appointment_date'])

    # 4. appointment_history, append-only
    op.create_table(
        'appointment_history',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('appointment_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('appointments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('action_by', sa.String(20), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('action_type', sa.String(50), nullable=False),
        sa.Column('details', sa.JSON(), nullable=False)
    )
    op.create_index('ix_appointment_history_appointment_id', 'appointment_history', ['appointment_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_appointment_history_appointment_id', table_name='appointment_history')
    op.drop_table('appointment_history')

    op.drop_index('idx_appointments_professional_date', table_name='appointments')
    op.drop_index('ix_appointments_status', table_name='appointments')
    op.drop_index('ix_appointments_professional_id', table_name='appointments')
    op.drop_index('ix_appointments_customer_id', table_name='appointments')
    op.drop_table('appointments')

    op.drop_index('ix_availability_windows_professional_id', table_name='availability_windows')
    op.drop_table('availability_windows')

    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    appointment_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
