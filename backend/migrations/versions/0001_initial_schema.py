"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete IMEI stock ledger schema:
- users / session_tokens: three-tier accounts and bearer sessions
- brands: shared and company-owned brand picklist
- imei_records / sold_records: purchases and their (single) resale
- activity_logs: append-only audit trail
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # users: superadmin, admin (company) and staff accounts
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_created_by', 'users', ['created_by'])
    op.create_index('ix_users_created_by_role', 'users', ['created_by', 'role'])

    # ============================================================================
    # session_tokens: hashed bearer tokens
    # ============================================================================
    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    # ============================================================================
    # brands: picklist, created_by NULL means shared by every company
    # ============================================================================
    op.create_table(
        'brands',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_brands_name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_brands_created_by', 'brands', ['created_by'])
    op.create_index('ix_brands_active_name', 'brands', ['is_active', 'name'])

    # ============================================================================
    # imei_records: one purchased handset per globally unique IMEI
    # ============================================================================
    op.create_table(
        'imei_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('imei', sa.String(length=32), nullable=False),
        sa.Column('purchase', sa.String(length=255), nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('date', sa.Date(), nullable=True),
        sa.Column('brand', sa.String(length=128), nullable=True),
        sa.Column('model', sa.String(length=128), nullable=True),
        sa.Column('color', sa.String(length=64), nullable=True),
        sa.Column('ram', sa.String(length=32), nullable=True),
        sa.Column('storage', sa.String(length=32), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('imei', name='uq_imei_records_imei'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_imei_records_brand', 'imei_records', ['brand'])
    op.create_index('ix_imei_records_created_by', 'imei_records', ['created_by'])
    op.create_index('ix_imei_records_created_by_created_at', 'imei_records', ['created_by', 'created_at'])

    # ============================================================================
    # sold_records: at most one resale per IMEI record
    # ============================================================================
    op.create_table(
        'sold_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('imei_id', sa.Integer(), nullable=False),
        sa.Column('sold_name', sa.String(length=255), nullable=True),
        sa.Column('sold_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('sold_date', sa.Date(), nullable=True),
        sa.Column('store', sa.String(length=255), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['imei_id'], ['imei_records.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('imei_id', name='uq_sold_records_imei_id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sold_records_imei_id', 'sold_records', ['imei_id'])
    op.create_index('ix_sold_records_sold_date', 'sold_records', ['sold_date'])
    op.create_index('ix_sold_records_created_by', 'sold_records', ['created_by'])
    op.create_index('ix_sold_records_created_by_created_at', 'sold_records', ['created_by', 'created_at'])

    # ============================================================================
    # activity_logs: append-only audit trail (superadmin actions excluded)
    # ============================================================================
    op.create_table(
        'activity_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('user_name', sa.String(length=255), nullable=True),
        sa.Column('action', sa.String(length=16), nullable=False),
        sa.Column('entity_type', sa.String(length=16), nullable=True),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_activity_logs_user_id', 'activity_logs', ['user_id'])
    op.create_index('ix_activity_logs_action', 'activity_logs', ['action'])
    op.create_index('ix_activity_logs_entity_type', 'activity_logs', ['entity_type'])
    op.create_index('ix_activity_logs_created_at', 'activity_logs', ['created_at'])
    op.create_index('ix_activity_logs_user_created', 'activity_logs', ['user_id', 'created_at'])
    op.create_index('ix_activity_logs_entity', 'activity_logs', ['entity_type', 'entity_id'])


def downgrade():
    op.drop_table('activity_logs')
    op.drop_table('sold_records')
    op.drop_table('imei_records')
    op.drop_table('brands')
    op.drop_table('session_tokens')
    op.drop_table('users')
