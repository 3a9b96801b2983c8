"""create_payment_tables

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role_enum = postgresql.ENUM(
    'admin', 'editor', 'donors', name='user_role_enum', create_type=False
)
payment_status_enum = postgresql.ENUM(
    'pending', 'completed', 'failed', 'cancelled', 'pending_verification',
    name='payment_status_enum', create_type=False,
)
member_type_enum = postgresql.ENUM(
    'lifetime', 'donor', name='member_type_enum', create_type=False
)
gender_enum = postgresql.ENUM('male', 'female', name='gender_enum', create_type=False)
member_payment_method_enum = postgresql.ENUM(
    'online', 'bank_transfer', 'bank_deposit',
    name='member_payment_method_enum', create_type=False,
)
application_status_enum = postgresql.ENUM(
    'pending_approval', 'approved', 'rejected',
    name='application_status_enum', create_type=False,
)

ALL_ENUMS = (
    user_role_enum,
    payment_status_enum,
    member_type_enum,
    gender_enum,
    member_payment_method_enum,
    application_status_enum,
)


def upgrade() -> None:
    """Upgrade schema - users, donations and member application tables."""
    bind = op.get_bind()
    # payment_status_enum is shared by three tables, so types are created once up front
    for enum_type in ALL_ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', user_role_enum, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_phone'), 'users', ['phone'], unique=True)

    op.create_table(
        'donations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('transaction_id', sa.String(length=64), nullable=False),
        sa.Column('purpose', sa.String(length=255), nullable=False),
        sa.Column('contact', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('behalf', sa.String(length=255), nullable=True),
        sa.Column('status', payment_status_enum, nullable=False),
        sa.Column('gateway_val_id', sa.String(length=128), nullable=True),
        sa.Column('gateway_payload', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_donations_amount_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_donations_transaction_id'), 'donations', ['transaction_id'], unique=True
    )
    op.create_index(op.f('ix_donations_purpose'), 'donations', ['purpose'])
    op.create_index(op.f('ix_donations_contact'), 'donations', ['contact'])
    op.create_index(op.f('ix_donations_status'), 'donations', ['status'])
    op.create_index(op.f('ix_donations_created_at'), 'donations', ['created_at'])

    op.create_table(
        'member_applications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('type', member_type_enum, nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('father_name', sa.String(length=255), nullable=False),
        sa.Column('gender', gender_enum, nullable=False),
        sa.Column('mobile', sa.String(length=32), nullable=False),
        sa.Column('is_overseas', sa.Boolean(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('occupation', sa.String(length=255), nullable=False),
        sa.Column('reference', sa.String(length=255), nullable=True),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('payment_method', member_payment_method_enum, nullable=False),
        sa.Column('transaction_id', sa.String(length=128), nullable=True),
        sa.Column('payment_document_url', sa.String(length=1024), nullable=True),
        sa.Column('payment_status', payment_status_enum, nullable=False),
        sa.Column('application_status', application_status_enum, nullable=False),
        sa.Column('gateway_val_id', sa.String(length=128), nullable=True),
        sa.Column('gateway_payload', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_member_applications_amount_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_member_applications_transaction_id'),
        'member_applications', ['transaction_id'], unique=True,
    )
    op.create_index(op.f('ix_member_applications_type'), 'member_applications', ['type'])
    op.create_index(
        op.f('ix_member_applications_payment_status'),
        'member_applications', ['payment_status'],
    )
    op.create_index(
        op.f('ix_member_applications_application_status'),
        'member_applications', ['application_status'],
    )
    op.create_index(
        op.f('ix_member_applications_created_at'), 'member_applications', ['created_at']
    )

    op.create_table(
        'member_payment_sessions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('transaction_id', sa.String(length=64), nullable=False),
        sa.Column('status', payment_status_enum, nullable=False),
        sa.Column('form_data', postgresql.JSONB(), nullable=False),
        sa.Column('success_url', sa.String(length=1024), nullable=False),
        sa.Column('fail_url', sa.String(length=1024), nullable=False),
        sa.Column('cancel_url', sa.String(length=1024), nullable=False),
        sa.Column('gateway_session_key', sa.String(length=255), nullable=True),
        sa.Column('gateway_url', sa.String(length=1024), nullable=True),
        sa.Column('gateway_response', postgresql.JSONB(), nullable=True),
        sa.Column('validation_data', postgresql.JSONB(), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_member_payment_sessions_transaction_id'),
        'member_payment_sessions', ['transaction_id'], unique=True,
    )
    op.create_index(
        op.f('ix_member_payment_sessions_status'), 'member_payment_sessions', ['status']
    )
    op.create_index(
        op.f('ix_member_payment_sessions_expires_at'),
        'member_payment_sessions', ['expires_at'],
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('member_payment_sessions')
    op.drop_table('member_applications')
    op.drop_table('donations')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in reversed(ALL_ENUMS):
        enum_type.drop(bind, checkfirst=True)
