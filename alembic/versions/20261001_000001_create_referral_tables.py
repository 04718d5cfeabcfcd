"""Create creators, members, invoices and commissions tables.

Revision ID: 20261001_000001
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261001_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.DECIMAL(18, 2)


def upgrade() -> None:
    """Create the referral ledger schema."""

    op.create_table(
        'creators',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.String(64), nullable=False),
        sa.Column('product_id', sa.String(64), nullable=False),
        sa.Column('company_name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('invoicing_enabled', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('tier1_count', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('tier1_reward', sa.String(255), nullable=False, server_default='1 month free'),
        sa.Column('tier2_count', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('tier2_reward', sa.String(255), nullable=False, server_default='3 months free'),
        sa.Column('tier3_count', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('tier3_reward', sa.String(255), nullable=False, server_default='6 months free'),
        sa.Column('tier4_count', sa.Integer(), nullable=False, server_default='20'),
        sa.Column('tier4_reward', sa.String(255), nullable=False, server_default='Lifetime access'),
        sa.Column('competition_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('competition_prize', sa.Text(), nullable=True),
        sa.Column('competition_ends_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_revenue', MONEY, nullable=False, server_default='0'),
        sa.Column('monthly_revenue', MONEY, nullable=False, server_default='0'),
        sa.Column('revenue_cached_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('billing_customer_id', sa.String(255), nullable=True),
        sa.Column('pending_refund_credit', MONEY, nullable=False, server_default='0'),
        sa.Column('lifetime_invoiced', MONEY, nullable=False, server_default='0'),
        sa.Column('lifetime_referred', MONEY, nullable=False, server_default='0'),
        sa.Column('first_invoice_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('pending_refund_credit >= 0', name='check_creator_refund_credit_non_negative'),
    )
    op.create_index('ix_creators_company_id', 'creators', ['company_id'], unique=True)
    op.create_index('ix_creators_product_id', 'creators', ['product_id'])

    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('membership_id', sa.String(64), nullable=False),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('referral_code', sa.String(20), nullable=False),
        sa.Column('referred_by_id', sa.Integer(), nullable=True),
        sa.Column('creator_id', sa.Integer(), nullable=False),
        sa.Column('member_origin', sa.String(20), nullable=False, server_default='organic'),
        sa.Column('total_referred', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('paid_referral_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_tier', sa.String(20), nullable=False, server_default='starter'),
        sa.Column('subscription_price', MONEY, nullable=True, comment='Nominal plan price'),
        sa.Column('billing_period', sa.String(20), nullable=True),
        sa.Column('monthly_value', MONEY, nullable=True, comment='Monthly equivalent of subscription_price'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['referred_by_id'], ['members.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['creator_id'], ['creators.id'], ondelete='CASCADE'),
        sa.CheckConstraint('total_referred >= 0', name='check_member_total_referred_non_negative'),
        sa.CheckConstraint('paid_referral_count >= 0', name='check_member_paid_referrals_non_negative'),
    )
    op.create_index('ix_members_membership_id', 'members', ['membership_id'], unique=True)
    op.create_index('ix_members_referral_code', 'members', ['referral_code'], unique=True)
    op.create_index('ix_members_referred_by_id', 'members', ['referred_by_id'])
    op.create_index('ix_members_creator_id', 'members', ['creator_id'])
    op.create_index('ix_members_created_at', 'members', ['created_at'])
    op.create_index('ix_members_creator_origin', 'members', ['creator_id', 'member_origin'])

    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('creator_id', sa.Integer(), nullable=False),
        sa.Column('period_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('period_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('total_amount', MONEY, nullable=False),
        sa.Column('refund_credit_applied', MONEY, nullable=False, server_default='0'),
        sa.Column('sales_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('referred_sales_total', MONEY, nullable=False, server_default='0'),
        sa.Column('organic_sales_total', MONEY, nullable=False, server_default='0'),
        sa.Column('creator_gain_from_referrals', MONEY, nullable=False, server_default='0'),
        sa.Column('total_revenue_with_app', MONEY, nullable=False, server_default='0'),
        sa.Column('total_revenue_without_app', MONEY, nullable=False, server_default='0'),
        sa.Column('additional_revenue', MONEY, nullable=False, server_default='0'),
        sa.Column('percentage_growth', sa.DECIMAL(12, 2), nullable=False, server_default='0'),
        sa.Column('external_invoice_id', sa.String(255), nullable=True),
        sa.Column('external_invoice_url', sa.String(1024), nullable=True),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['creator_id'], ['creators.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('creator_id', 'period_start', 'period_end', name='uq_invoice_creator_period'),
        sa.UniqueConstraint('external_invoice_id'),
    )
    op.create_index('ix_invoices_creator_id', 'invoices', ['creator_id'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])

    op.create_table(
        'commissions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('creator_id', sa.Integer(), nullable=False),
        sa.Column('customer_membership_id', sa.String(64), nullable=True, comment='Membership id of the paying customer'),
        sa.Column('sale_amount', MONEY, nullable=False),
        sa.Column('member_share', MONEY, nullable=False),
        sa.Column('creator_share', MONEY, nullable=False),
        sa.Column('platform_share', MONEY, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='paid'),
        sa.Column('payment_type', sa.String(20), nullable=False, server_default='initial'),
        sa.Column('applied_tier', sa.String(20), nullable=False, server_default='starter'),
        sa.Column('member_rate', sa.DECIMAL(5, 4), nullable=False, server_default='0.10'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('platform_fee_invoiced', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('invoice_id', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['creator_id'], ['creators.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='SET NULL'),
        sa.CheckConstraint('sale_amount >= 0', name='check_commission_sale_amount_non_negative'),
    )
    op.create_index('ix_commissions_member_id', 'commissions', ['member_id'])
    op.create_index('ix_commissions_creator_id', 'commissions', ['creator_id'])
    op.create_index('ix_commissions_customer_membership_id', 'commissions', ['customer_membership_id'])
    op.create_index('ix_commissions_status', 'commissions', ['status'])
    op.create_index('ix_commissions_created_at', 'commissions', ['created_at'])
    op.create_index('ix_commissions_invoice_id', 'commissions', ['invoice_id'])
    op.create_index('ix_commissions_member_status', 'commissions', ['member_id', 'status'])
    op.create_index(
        'ix_commissions_creator_status_created',
        'commissions',
        ['creator_id', 'status', 'created_at'],
    )
    op.create_index('ix_commissions_uninvoiced', 'commissions', ['creator_id', 'platform_fee_invoiced'])


def downgrade() -> None:
    """Drop the referral ledger schema."""
    op.drop_table('commissions')
    op.drop_table('invoices')
    op.drop_table('members')
    op.drop_table('creators')
