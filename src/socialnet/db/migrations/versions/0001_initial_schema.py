"""Initial schema: accounts, profiles, follows

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ─── Accounts ────────────────────────────────────────
    op.create_table(
        'accounts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('username', sa.String(20), nullable=False),
        sa.Column('full_name', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column(
            'role',
            sa.Enum('USER', 'ADMIN', name='userrole', native_enum=False, length=10),
            nullable=False,
        ),
        sa.Column('is_email_verified', sa.Boolean(), nullable=False),
        sa.Column('avatar_url', sa.Text(), nullable=False),
        sa.Column('avatar_provider_id', sa.String(255), nullable=True),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('email_verification_token', sa.String(64), nullable=True),
        sa.Column('email_verification_expiry', sa.DateTime(timezone=True), nullable=True),
        sa.Column('forgot_password_token', sa.String(64), nullable=True),
        sa.Column('forgot_password_expiry', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_accounts_username', 'accounts', ['username'], unique=True)
    op.create_index('ix_accounts_email', 'accounts', ['email'], unique=True)
    op.create_index(
        'ix_accounts_email_verification_token', 'accounts', ['email_verification_token']
    )
    op.create_index('ix_accounts_forgot_password_token', 'accounts', ['forgot_password_token'])

    # ─── Profiles ────────────────────────────────────────
    op.create_table(
        'profiles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'owner_id',
            sa.Uuid(),
            sa.ForeignKey('accounts.id', ondelete='CASCADE'),
            nullable=False,
            unique=True,
        ),
        sa.Column('bio', sa.String(100), nullable=False),
        sa.Column('dob', sa.Date(), nullable=True),
        sa.Column('location', sa.String(50), nullable=False),
        sa.Column('website', sa.Text(), nullable=False),
        sa.Column('country_code', sa.String(8), nullable=False),
        sa.Column('phone_number', sa.String(20), nullable=False),
        sa.Column('social_links', sa.JSON(), nullable=False),
        sa.Column('interests', sa.JSON(), nullable=False),
        sa.Column('cover_image_url', sa.Text(), nullable=False),
        sa.Column('cover_image_provider_id', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    # ─── Follows ─────────────────────────────────────────
    op.create_table(
        'follows',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'follower_id',
            sa.Uuid(),
            sa.ForeignKey('accounts.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'followee_id',
            sa.Uuid(),
            sa.ForeignKey('accounts.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('follower_id', 'followee_id', name='uq_follows_pair'),
    )
    op.create_index('idx_follows_followee', 'follows', ['followee_id'])


def downgrade() -> None:
    op.drop_index('idx_follows_followee', table_name='follows')
    op.drop_table('follows')
    op.drop_table('profiles')
    op.drop_index('ix_accounts_forgot_password_token', table_name='accounts')
    op.drop_index('ix_accounts_email_verification_token', table_name='accounts')
    op.drop_index('ix_accounts_email', table_name='accounts')
    op.drop_index('ix_accounts_username', table_name='accounts')
    op.drop_table('accounts')
