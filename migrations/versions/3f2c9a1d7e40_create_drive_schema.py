"""Create drive schema

Revision ID: 3f2c9a1d7e40
Revises:
Create Date: 2026-10-19 09:12:41.118305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f2c9a1d7e40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('auth_subject', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('storage_used', sa.BigInteger(), nullable=False),
        sa.Column('storage_quota', sa.BigInteger(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('auth_subject'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Create file_items table
    op.create_table(
        'file_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=10), nullable=False),
        sa.Column('size', sa.BigInteger(), nullable=False),
        sa.Column('mime_type', sa.String(length=100), nullable=True),
        sa.Column('storage_path', sa.String(length=500), nullable=True),
        sa.Column('owner_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('parent_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('deleted', sa.Boolean(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_id'], ['file_items.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_owner_parent', 'file_items', ['owner_id', 'parent_id'])
    op.create_index('idx_type', 'file_items', ['type'])
    op.create_index('idx_deleted', 'file_items', ['deleted', 'deleted_at'])
    op.create_index(
        'uq_live_folder_name',
        'file_items',
        ['owner_id', 'parent_id', 'name'],
        unique=True,
        postgresql_where=sa.text("type = 'FOLDER' AND deleted = false"),
    )
    op.create_index(
        'uq_live_root_folder_name',
        'file_items',
        ['owner_id', 'name'],
        unique=True,
        postgresql_where=sa.text("type = 'FOLDER' AND deleted = false AND parent_id IS NULL"),
    )

    # Create file_permissions table
    op.create_table(
        'file_permissions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('file_item_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('permission_level', sa.String(length=10), nullable=False),
        sa.Column('shared_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['file_item_id'], ['file_items.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('file_item_id', 'user_id', name='uq_permission_item_user'),
    )
    op.create_index('ix_file_permissions_file_item_id', 'file_permissions', ['file_item_id'])
    op.create_index('ix_file_permissions_user_id', 'file_permissions', ['user_id'])

    # Create download_requests table
    op.create_table(
        'download_requests',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('request_id', sa.String(length=64), nullable=False),
        sa.Column('file_item_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('download_path', sa.String(length=500), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['file_item_id'], ['file_items.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_download_requests_request_id', 'download_requests', ['request_id'], unique=True)
    op.create_index('idx_download_status_updated', 'download_requests', ['status', 'updated_at'])


def downgrade() -> None:
    op.drop_index('idx_download_status_updated', table_name='download_requests')
    op.drop_index('ix_download_requests_request_id', table_name='download_requests')
    op.drop_table('download_requests')
    op.drop_index('ix_file_permissions_user_id', table_name='file_permissions')
    op.drop_index('ix_file_permissions_file_item_id', table_name='file_permissions')
    op.drop_table('file_permissions')
    op.drop_index('uq_live_root_folder_name', table_name='file_items')
    op.drop_index('uq_live_folder_name', table_name='file_items')
    op.drop_index('idx_deleted', table_name='file_items')
    op.drop_index('idx_type', table_name='file_items')
    op.drop_index('idx_owner_parent', table_name='file_items')
    op.drop_table('file_items')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
