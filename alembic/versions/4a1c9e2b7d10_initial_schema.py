"""initial_schema

Revision ID: 4a1c9e2b7d10
Revises:
Create Date: 2026-10-19 09:12:44.318207

Creates the LinkMeter schema and seeds the plan catalogue.

Tables:
- users, access_tokens: accounts and hashed bearer tokens
- plans: plan catalogue (url_limit NULL = unlimited)
- subscriptions: subscription history, one active row per user
- links: short links and file links, owned by a user or an IP
- usage_periods, usage_feature_counters: monthly metering for enterprise accounts
- invoices: registration fee and monthly usage invoices
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4a1c9e2b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MIB = 1024 * 1024


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def upgrade() -> None:
    """Create all tables, indexes and the default plans."""

    op.create_table(
        'users',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('organization_name', sa.String(255), nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('account_class', sa.String(20), server_default='individual', nullable=False),
        sa.Column('account_status', sa.String(20), server_default='active', nullable=False),

        # Enterprise branding
        sa.Column('website', sa.String(2048), nullable=True),
        sa.Column('logo_url', sa.String(2048), nullable=True),
        sa.Column('primary_color', sa.String(7), nullable=True),
        sa.Column('secondary_color', sa.String(7), nullable=True),

        *_timestamps(),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_organization_name'), 'users', ['organization_name'], unique=True)
    op.create_index(op.f('ix_users_account_status'), 'users', ['account_status'], unique=False)

    op.create_table(
        'access_tokens',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('token_hash', sa.String(64), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_access_tokens')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_access_tokens_user_id_users'), ondelete='CASCADE'),
    )
    op.create_index(op.f('ix_access_tokens_id'), 'access_tokens', ['id'], unique=False)
    op.create_index(op.f('ix_access_tokens_user_id'), 'access_tokens', ['user_id'], unique=False)
    op.create_index(op.f('ix_access_tokens_token_hash'), 'access_tokens', ['token_hash'], unique=True)

    plans_table = op.create_table(
        'plans',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('url_limit', sa.Integer(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('file_size_limit_bytes', sa.BigInteger(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_plans')),
    )
    op.create_index(op.f('ix_plans_id'), 'plans', ['id'], unique=False)
    op.create_index(op.f('ix_plans_name'), 'plans', ['name'], unique=True)

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('plan_id', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('payment_reference', sa.String(255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_subscriptions')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_subscriptions_user_id_users'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], name=op.f('fk_subscriptions_plan_id_plans')),
    )
    op.create_index(op.f('ix_subscriptions_id'), 'subscriptions', ['id'], unique=False)
    op.create_index(op.f('ix_subscriptions_user_id'), 'subscriptions', ['user_id'], unique=False)
    op.create_index(op.f('ix_subscriptions_plan_id'), 'subscriptions', ['plan_id'], unique=False)
    op.create_index(op.f('ix_subscriptions_status'), 'subscriptions', ['status'], unique=False)
    op.create_index('idx_subscription_user_status', 'subscriptions', ['user_id', 'status'], unique=False)
    # At most one active subscription per user
    op.create_index(
        'uq_subscriptions_one_active_per_user', 'subscriptions', ['user_id'], unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )

    op.create_table(
        'links',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(32), nullable=False),
        sa.Column('original_url', sa.Text(), nullable=True),
        sa.Column('custom_alias', sa.String(20), nullable=True),
        sa.Column('link_type', sa.String(20), server_default='standard', nullable=False),

        # Owner: exactly one of user_id / ip_address
        sa.Column('user_id', sa.BigInteger(), nullable=True),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('plan_id', sa.BigInteger(), nullable=True),

        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_password_protected', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('click_count', sa.Integer(), server_default='0', nullable=False),

        # File links only
        sa.Column('original_filename', sa.String(255), nullable=True),
        sa.Column('file_type', sa.String(100), nullable=True),
        sa.Column('file_size_bytes', sa.BigInteger(), nullable=True),
        sa.Column('storage_bucket', sa.String(255), nullable=True),
        sa.Column('storage_key', sa.String(1024), nullable=True),

        sa.Column('metadata', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_links')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_links_user_id_users'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], name=op.f('fk_links_plan_id_plans')),
        sa.CheckConstraint('(user_id IS NULL) <> (ip_address IS NULL)', name=op.f('ck_links_single_owner')),
    )
    op.create_index(op.f('ix_links_id'), 'links', ['id'], unique=False)
    op.create_index(op.f('ix_links_code'), 'links', ['code'], unique=True)
    op.create_index(op.f('ix_links_user_id'), 'links', ['user_id'], unique=False)
    op.create_index(op.f('ix_links_ip_address'), 'links', ['ip_address'], unique=False)
    op.create_index(op.f('ix_links_created_at'), 'links', ['created_at'], unique=False)
    op.create_index('idx_link_user_type', 'links', ['user_id', 'link_type'], unique=False)
    op.create_index('idx_link_ip_user', 'links', ['ip_address', 'user_id'], unique=False)

    op.create_table(
        'usage_periods',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('period_start', sa.Date(), nullable=False),
        sa.Column('resources_created', sa.Integer(), server_default='0', nullable=False),
        sa.Column('files_uploaded', sa.Integer(), server_default='0', nullable=False),
        sa.Column('storage_bytes', sa.BigInteger(), server_default='0', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_usage_periods')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_usage_periods_user_id_users'), ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'period_start', name=op.f('uq_usage_periods_user_id')),
    )
    op.create_index(op.f('ix_usage_periods_id'), 'usage_periods', ['id'], unique=False)
    op.create_index(op.f('ix_usage_periods_user_id'), 'usage_periods', ['user_id'], unique=False)

    op.create_table(
        'usage_feature_counters',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('period_start', sa.Date(), nullable=False),
        sa.Column('feature_name', sa.String(50), nullable=False),
        sa.Column('activations', sa.Integer(), server_default='0', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_usage_feature_counters')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_usage_feature_counters_user_id_users'), ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'period_start', 'feature_name', name=op.f('uq_usage_feature_counters_user_id')),
    )
    op.create_index(op.f('ix_usage_feature_counters_id'), 'usage_feature_counters', ['id'], unique=False)
    op.create_index(op.f('ix_usage_feature_counters_user_id'), 'usage_feature_counters', ['user_id'], unique=False)

    op.create_table(
        'invoices',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('invoice_type', sa.String(50), nullable=False),
        sa.Column('period_start', sa.Date(), nullable=True),
        sa.Column('period_end', sa.Date(), nullable=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(3), server_default='USD', nullable=False),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('usage_snapshot', sa.JSON(), nullable=True),
        sa.Column('payment_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('payment_reference', sa.String(255), nullable=True),
        sa.Column('payment_method', sa.String(50), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_invoices')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_invoices_user_id_users'), ondelete='CASCADE'),
    )
    op.create_index(op.f('ix_invoices_id'), 'invoices', ['id'], unique=False)
    op.create_index(op.f('ix_invoices_user_id'), 'invoices', ['user_id'], unique=False)
    op.create_index(op.f('ix_invoices_status'), 'invoices', ['status'], unique=False)
    op.create_index(op.f('ix_invoices_created_at'), 'invoices', ['created_at'], unique=False)
    op.create_index('idx_invoice_user_type_period', 'invoices', ['user_id', 'invoice_type', 'period_start'], unique=False)

    # Default plan catalogue
    op.bulk_insert(plans_table, [
        {'name': 'free', 'display_name': 'Free', 'url_limit': 2, 'price': 0, 'file_size_limit_bytes': 5 * MIB, 'is_active': True},
        {'name': 'lite', 'display_name': 'Lite', 'url_limit': 50, 'price': 4.99, 'file_size_limit_bytes': 10 * MIB, 'is_active': True},
        {'name': 'pro', 'display_name': 'Pro', 'url_limit': 250, 'price': 14.99, 'file_size_limit_bytes': 25 * MIB, 'is_active': True},
        {'name': 'enterprise', 'display_name': 'Enterprise', 'url_limit': None, 'price': 0, 'file_size_limit_bytes': 50 * MIB, 'is_active': True},
    ])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('invoices')
    op.drop_table('usage_feature_counters')
    op.drop_table('usage_periods')
    op.drop_table('links')
    op.drop_table('subscriptions')
    op.drop_table('plans')
    op.drop_table('access_tokens')
    op.drop_table('users')
