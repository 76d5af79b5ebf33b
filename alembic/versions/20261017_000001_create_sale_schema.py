"""Create token sale schema

Revision ID: 20261017_000001
Revises: 
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261017_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _amount(name: str, **kwargs) -> sa.Column:
    """Token amount column (exact uint256)."""
    return sa.Column(name, sa.Numeric(78, 0), nullable=False, **kwargs)


def upgrade() -> None:
    # Stages
    op.create_table(
        'sale_stages',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        _amount('cap'),
        _amount('min_purchase'),
        _amount('max_purchase'),
        _amount('total_raised', server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('cap > 0', name='check_stage_cap_positive'),
        sa.CheckConstraint('min_purchase >= 0', name='check_stage_min_purchase_non_negative'),
        sa.CheckConstraint('max_purchase >= min_purchase', name='check_stage_max_not_below_min'),
        sa.CheckConstraint('total_raised >= 0', name='check_stage_raised_non_negative'),
        sa.CheckConstraint('total_raised <= cap', name='check_stage_raised_not_exceeds_cap'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_sale_stages_is_active', 'sale_stages', ['is_active'])

    # Sale-wide settings (single row)
    op.create_table(
        'sale_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_active', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('current_stage_id', sa.Integer(), nullable=True),
        _amount('hard_cap'),
        _amount('total_raised', server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('hard_cap > 0', name='check_sale_hard_cap_positive'),
        sa.CheckConstraint('total_raised <= hard_cap', name='check_sale_raised_not_exceeds_hard_cap'),
        sa.ForeignKeyConstraint(['current_stage_id'], ['sale_stages.id'], ),
        sa.PrimaryKeyConstraint('id')
    )

    # Contributions
    op.create_table(
        'stage_contributions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('stage_id', sa.Integer(), nullable=False),
        sa.Column('user_address', sa.String(42), nullable=False),
        _amount('amount', server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('amount >= 0', name='check_stage_contribution_non_negative'),
        sa.ForeignKeyConstraint(['stage_id'], ['sale_stages.id'], ondelete='RESTRICT'),
        sa.UniqueConstraint('stage_id', 'user_address', name='uq_stage_contribution_user'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_stage_contributions_stage_id', 'stage_contributions', ['stage_id'])
    op.create_index('ix_stage_contributions_user_address', 'stage_contributions', ['user_address'])

    op.create_table(
        'user_contributions',
        sa.Column('user_address', sa.String(42), nullable=False),
        _amount('total_amount', server_default='0'),
        sa.Column('first_contribution_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('total_amount >= 0', name='check_user_contribution_non_negative'),
        sa.PrimaryKeyConstraint('user_address')
    )

    # Referral program
    op.create_table(
        'referral_links',
        sa.Column('user_address', sa.String(42), nullable=False),
        sa.Column('referrer_address', sa.String(42), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('user_address <> referrer_address', name='check_referral_link_not_self'),
        sa.PrimaryKeyConstraint('user_address')
    )
    op.create_index('ix_referral_links_referrer_address', 'referral_links', ['referrer_address'])

    op.create_table(
        'referral_accounts',
        sa.Column('address', sa.String(42), nullable=False),
        _amount('level1_earned', server_default='0'),
        _amount('level2_earned', server_default='0'),
        _amount('total_earned', server_default='0'),
        _amount('claimed', server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('claimed <= total_earned', name='check_referral_claimed_not_exceeds_earned'),
        sa.CheckConstraint('claimed >= 0', name='check_referral_claimed_non_negative'),
        sa.PrimaryKeyConstraint('address')
    )

    op.create_table(
        'referral_earnings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referrer_address', sa.String(42), nullable=False),
        sa.Column('referred_address', sa.String(42), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        _amount('base_amount'),
        _amount('amount'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('level IN (1, 2)', name='check_referral_earning_level'),
        sa.CheckConstraint('amount > 0', name='check_referral_earning_positive'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_referral_earnings_referrer_address', 'referral_earnings', ['referrer_address'])
    op.create_index('ix_referral_earnings_referred_address', 'referral_earnings', ['referred_address'])

    op.create_table(
        'referral_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('level1_rate', sa.Integer(), nullable=False),
        sa.Column('level2_rate', sa.Integer(), nullable=False),
        sa.Column('claims_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )

    # Event log
    op.create_table(
        'sale_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_type', sa.String(50), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_sale_events_event_type', 'sale_events', ['event_type'])
    op.create_index('ix_sale_events_created_at', 'sale_events', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_sale_events_created_at', table_name='sale_events')
    op.drop_index('ix_sale_events_event_type', table_name='sale_events')
    op.drop_table('sale_events')
    op.drop_table('referral_settings')
    op.drop_index('ix_referral_earnings_referred_address', table_name='referral_earnings')
    op.drop_index('ix_referral_earnings_referrer_address', table_name='referral_earnings')
    op.drop_table('referral_earnings')
    op.drop_table('referral_accounts')
    op.drop_index('ix_referral_links_referrer_address', table_name='referral_links')
    op.drop_table('referral_links')
    op.drop_table('user_contributions')
    op.drop_index('ix_stage_contributions_user_address', table_name='stage_contributions')
    op.drop_index('ix_stage_contributions_stage_id', table_name='stage_contributions')
    op.drop_table('stage_contributions')
    op.drop_table('sale_settings')
    op.drop_index('ix_sale_stages_is_active', table_name='sale_stages')
    op.drop_table('sale_stages')
