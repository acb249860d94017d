"""Create referral ledger tables

Revision ID: 20260101_000001
Revises: 
Create Date: 2026-01-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '20260101_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    # One referral per user
    op.create_table(
        'referrals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('referral_code', sa.String(16), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('total_referrals', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_earnings', sa.DECIMAL(18, 2), nullable=False, server_default='0'),
        sa.Column('year_to_date_earnings', sa.DECIMAL(18, 2), nullable=False, server_default='0'),
        sa.Column('ytd_year', sa.Integer(), nullable=False),
        sa.Column('initial_deposit', sa.DECIMAL(18, 2), nullable=True),
        sa.Column('deposit_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('pending', 'deposited', 'earning', 'completed')",
            name='ck_referrals_status_valid',
        ),
        sa.CheckConstraint('total_referrals >= 0', name='ck_referrals_total_referrals_non_negative'),
        sa.PrimaryKeyConstraint('id', name='pk_referrals'),
        sa.UniqueConstraint('user_id', name='uq_referrals_user_id'),
        sa.UniqueConstraint('referral_code', name='uq_referrals_referral_code'),
    )
    op.create_index('ix_referrals_status', 'referrals', ['status'])

    # A referred user is attributed at most once, system-wide
    op.create_table(
        'referral_signups',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referral_id', sa.Integer(), nullable=False),
        sa.Column('referred_user_id', sa.String(64), nullable=False),
        sa.Column('signup_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('deposit_amount', sa.DECIMAL(18, 2), nullable=True),
        sa.Column('deposit_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ['referral_id'], ['referrals.id'],
            name='fk_referral_signups_referral_id_referrals', ondelete='RESTRICT',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_referral_signups'),
        sa.UniqueConstraint('referred_user_id', name='uq_referral_signups_referred_user_id'),
    )
    op.create_index('ix_referral_signups_referral_id', 'referral_signups', ['referral_id'])

    # Append-only payment ledger
    op.create_table(
        'referral_payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referral_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.DECIMAL(18, 2), nullable=False),
        sa.Column('payment_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('recorded_by', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ['referral_id'], ['referrals.id'],
            name='fk_referral_payments_referral_id_referrals', ondelete='RESTRICT',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_referral_payments'),
    )
    op.create_index('ix_referral_payments_referral_id', 'referral_payments', ['referral_id'])
    op.create_index('ix_referral_payments_payment_date', 'referral_payments', ['payment_date'])

    # Administrator audit trail
    op.create_table(
        'referral_audit_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referral_id', sa.Integer(), nullable=False),
        sa.Column('actor', sa.String(64), nullable=False),
        sa.Column('action', sa.String(32), nullable=False),
        sa.Column('before', JSON_TYPE, nullable=True),
        sa.Column('after', JSON_TYPE, nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ['referral_id'], ['referrals.id'],
            name='fk_referral_audit_entries_referral_id_referrals', ondelete='RESTRICT',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_referral_audit_entries'),
    )
    op.create_index('ix_referral_audit_entries_actor', 'referral_audit_entries', ['actor'])
    op.create_index(
        'ix_referral_audit_entries_referral_created',
        'referral_audit_entries',
        ['referral_id', 'created_at'],
    )


def downgrade() -> None:
    op.drop_index('ix_referral_audit_entries_referral_created', 'referral_audit_entries')
    op.drop_index('ix_referral_audit_entries_actor', 'referral_audit_entries')
    op.drop_table('referral_audit_entries')

    op.drop_index('ix_referral_payments_payment_date', 'referral_payments')
    op.drop_index('ix_referral_payments_referral_id', 'referral_payments')
    op.drop_table('referral_payments')

    op.drop_index('ix_referral_signups_referral_id', 'referral_signups')
    op.drop_table('referral_signups')

    op.drop_index('ix_referrals_status', 'referrals')
    op.drop_table('referrals')
