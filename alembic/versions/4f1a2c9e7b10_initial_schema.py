"""initial_schema

Revision ID: 4f1a2c9e7b10
Revises:
Create Date: 2026-10-18 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1a2c9e7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('avatar', sa.String(500), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('role', sa.String(40), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('email_verified', sa.Boolean(), nullable=False),
        sa.Column('google_id', sa.String(255), nullable=True),
        sa.Column('provider', sa.String(20), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_first_time', sa.Boolean(), nullable=False),
        sa.Column('created_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('google_id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'refresh_tokens',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('token_hash', sa.String(64), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_refresh_tokens_token_hash', 'refresh_tokens', ['token_hash'], unique=True)
    op.create_index('ix_refresh_tokens_user_id', 'refresh_tokens', ['user_id'])

    op.create_table(
        'password_reset_otps',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('code', sa.String(16), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_password_reset_otps_user_id', 'password_reset_otps', ['user_id'])

    op.create_table(
        'merchant_profiles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('business_name', sa.String(200), nullable=False),
        sa.Column('business_registration_number', sa.String(100), nullable=True),
        sa.Column('tax_id', sa.String(100), nullable=True),
        sa.Column('business_type', sa.String(100), nullable=True),
        sa.Column('business_category', sa.String(100), nullable=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('state', sa.String(100), nullable=True),
        sa.Column('zip_code', sa.String(20), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('business_phone', sa.String(20), nullable=True),
        sa.Column('business_email', sa.String(255), nullable=True),
        sa.Column('website', sa.String(500), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('logo', sa.String(500), nullable=True),
        sa.Column('bank_name', sa.String(200), nullable=True),
        sa.Column('account_number', sa.String(50), nullable=True),
        sa.Column('account_holder_name', sa.String(200), nullable=True),
        sa.Column('ifsc_code', sa.String(20), nullable=True),
        sa.Column('swift_code', sa.String(20), nullable=True),
        sa.Column('registration_document', sa.String(500), nullable=True),
        sa.Column('tax_document', sa.String(500), nullable=True),
        sa.Column('identity_document', sa.String(500), nullable=True),
        sa.Column('additional_documents', sa.JSON(), nullable=False),
        sa.Column('profile_status', sa.String(40), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('verified_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('verification_notes', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('gift_card_limit', sa.Integer(), nullable=False, server_default='10'),
        *_timestamps(),
    )
    op.create_index('ix_merchant_profiles_user_id', 'merchant_profiles', ['user_id'], unique=True)
    op.create_index('ix_merchant_profiles_profile_status', 'merchant_profiles', ['profile_status'])

    op.create_table(
        'card_settings',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('merchant_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('primary_color', sa.String(20), nullable=True),
        sa.Column('secondary_color', sa.String(20), nullable=True),
        sa.Column('gradient_direction', sa.String(40), nullable=True),
        sa.Column('font_family', sa.String(100), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('merchant_id'),
    )

    op.create_table(
        'gift_cards',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('merchant_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.BigInteger(), nullable=False),
        sa.Column('expiry_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('merchant_logo', sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_gift_cards_merchant_id', 'gift_cards', ['merchant_id'])
    op.create_index('ix_gift_cards_merchant_id_is_active', 'gift_cards', ['merchant_id', 'is_active'])

    op.create_table(
        'purchased_gift_cards',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('gift_card_id', sa.Uuid(), sa.ForeignKey('gift_cards.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('merchant_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('qr_code', sa.String(64), nullable=False),
        sa.Column('customer_name', sa.String(100), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(20), nullable=False),
        sa.Column('purchase_amount', sa.BigInteger(), nullable=False),
        sa.Column('current_balance', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(40), nullable=False),
        sa.Column('payment_status', sa.String(40), nullable=False),
        sa.Column('payment_method', sa.String(50), nullable=True),
        sa.Column('transaction_id', sa.String(255), nullable=True),
        sa.Column('purchased_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            'current_balance >= 0 AND current_balance <= purchase_amount',
            name='ck_purchased_gift_cards_balance_range',
        ),
    )
    op.create_index('ix_purchased_gift_cards_gift_card_id', 'purchased_gift_cards', ['gift_card_id'])
    op.create_index('ix_purchased_gift_cards_merchant_id', 'purchased_gift_cards', ['merchant_id'])
    op.create_index('ix_purchased_gift_cards_qr_code', 'purchased_gift_cards', ['qr_code'], unique=True)
    op.create_index('ix_purchased_gift_cards_customer_email', 'purchased_gift_cards', ['customer_email'])
    op.create_index('ix_purchased_gift_cards_status', 'purchased_gift_cards', ['status'])

    op.create_table(
        'redemptions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'purchased_gift_card_id',
            sa.Uuid(),
            sa.ForeignKey('purchased_gift_cards.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('redeemed_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('balance_before', sa.BigInteger(), nullable=False),
        sa.Column('balance_after', sa.BigInteger(), nullable=False),
        sa.Column('location_name', sa.String(200), nullable=True),
        sa.Column('location_address', sa.String(500), nullable=True),
        sa.Column('notes', sa.String(500), nullable=True),
        sa.Column('redeemed_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('amount > 0', name='ck_redemptions_amount_positive'),
        sa.CheckConstraint('balance_after = balance_before - amount', name='ck_redemptions_balance_delta'),
    )
    op.create_index('ix_redemptions_purchased_gift_card_id', 'redemptions', ['purchased_gift_card_id'])
    op.create_index('ix_redemptions_redeemed_by_id', 'redemptions', ['redeemed_by_id'])
    op.create_index('ix_redemptions_redeemed_at', 'redemptions', ['redeemed_at'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('recipient_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('recipient_type', sa.String(40), nullable=False),
        sa.Column('type', sa.String(60), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('resource_type', sa.String(50), nullable=True),
        sa.Column('resource_id', sa.String(64), nullable=True),
        sa.Column('actor_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('actor_name', sa.String(200), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_notifications_recipient_id_is_read', 'notifications', ['recipient_id', 'is_read'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])

    op.create_table(
        'notification_preferences',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('merchant_registered', sa.Boolean(), nullable=False),
        sa.Column('profile_submitted_for_verification', sa.Boolean(), nullable=False),
        sa.Column('purchase_made', sa.Boolean(), nullable=False),
        sa.Column('redemption_made', sa.Boolean(), nullable=False),
        sa.Column('profile_verified', sa.Boolean(), nullable=False),
        sa.Column('profile_rejected', sa.Boolean(), nullable=False),
        sa.Column('gift_card_purchased', sa.Boolean(), nullable=False),
        sa.Column('gift_card_redeemed', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id'),
    )

    op.create_table(
        'activity_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('actor_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('actor_type', sa.String(40), nullable=False),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('category', sa.String(40), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('resource_type', sa.String(50), nullable=True),
        sa.Column('resource_id', sa.String(64), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('severity', sa.String(40), nullable=False),
        sa.Column('merchant_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_activity_logs_actor_id', 'activity_logs', ['actor_id'])
    op.create_index('ix_activity_logs_category', 'activity_logs', ['category'])
    op.create_index('ix_activity_logs_severity', 'activity_logs', ['severity'])
    op.create_index('ix_activity_logs_merchant_id', 'activity_logs', ['merchant_id'])
    op.create_index('ix_activity_logs_resource', 'activity_logs', ['resource_type', 'resource_id'])
    op.create_index('ix_activity_logs_created_at', 'activity_logs', ['created_at'])


def downgrade() -> None:
    op.drop_table('activity_logs')
    op.drop_table('notification_preferences')
    op.drop_table('notifications')
    op.drop_table('redemptions')
    op.drop_table('purchased_gift_cards')
    op.drop_table('gift_cards')
    op.drop_table('card_settings')
    op.drop_table('merchant_profiles')
    op.drop_table('password_reset_otps')
    op.drop_table('refresh_tokens')
    op.drop_table('users')
