"""initial_schema_baseline

Revision ID: 3f2a9c1d7b40
Revises: 
Create Date: 2026-10-12 09:14:22.418305

Creates the tenant tables: clinics, staff profiles, invitations and the
email/password credentials used at signup.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'clinics',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('owner_id', sa.String(length=128), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('settings', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "status IN ('trial', 'active', 'pending_payment', 'suspended')",
            name='check_clinic_status',
        ),
    )
    op.create_index('ix_clinics_owner_id', 'clinics', ['owner_id'])

    op.create_table(
        'user_profiles',
        sa.Column('uid', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('clinic_id', sa.String(length=36), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('removed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('removed_by', sa.String(length=128), nullable=True),
        sa.ForeignKeyConstraint(['clinic_id'], ['clinics.id']),
        sa.PrimaryKeyConstraint('uid'),
    )
    op.create_index('idx_user_profiles_clinic_status', 'user_profiles', ['clinic_id', 'status'])
    op.create_index('idx_user_profiles_email', 'user_profiles', ['email'])

    op.create_table(
        'invitations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('clinic_id', sa.String(length=36), nullable=False),
        sa.Column('clinic_name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('invited_by', sa.String(length=128), nullable=True),
        sa.Column('inviter_name', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('expires_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('cancelled_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('cancelled_by', sa.String(length=128), nullable=True),
        sa.ForeignKeyConstraint(['clinic_id'], ['clinics.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_invitations_email_status', 'invitations', ['email', 'status'])
    op.create_index('idx_invitations_clinic_status', 'invitations', ['clinic_id', 'status'])

    op.create_table(
        'credentials',
        sa.Column('uid', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('uid'),
        sa.UniqueConstraint('email'),
    )


def downgrade() -> None:
    op.drop_table('credentials')
    op.drop_index('idx_invitations_clinic_status', table_name='invitations')
    op.drop_index('idx_invitations_email_status', table_name='invitations')
    op.drop_table('invitations')
    op.drop_index('idx_user_profiles_email', table_name='user_profiles')
    op.drop_index('idx_user_profiles_clinic_status', table_name='user_profiles')
    op.drop_table('user_profiles')
    op.drop_index('ix_clinics_owner_id', table_name='clinics')
    op.drop_table('clinics')
