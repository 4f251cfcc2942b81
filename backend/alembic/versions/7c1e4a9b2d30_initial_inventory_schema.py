"""initial_inventory_schema

Revision ID: 7c1e4a9b2d30
Revises:
Create Date: 2026-10-18 09:55:12.104233

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '7c1e4a9b2d30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _team_owned() -> list[sa.Column]:
    return [
        sa.Column('team_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
    ]


def upgrade() -> None:
    op.create_table(
        'teams',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('team_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_team_id', 'users', ['team_id'])

    op.create_table(
        'inv_suppliers',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('contact_person', sa.String(100), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_team_owned(),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('team_id', 'name', name='inv_suppliers_name_team_unique'),
    )
    op.create_index('ix_inv_suppliers_team_id', 'inv_suppliers', ['team_id'])
    op.create_index('ix_inv_suppliers_name', 'inv_suppliers', ['name'])
    op.create_index('ix_inv_suppliers_is_active', 'inv_suppliers', ['is_active'])

    op.create_table(
        'inv_storage_locations',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('location_code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column(
            'parent_location_id', postgresql.UUID(as_uuid=True),
            sa.ForeignKey('inv_storage_locations.id', ondelete='CASCADE'), nullable=True,
        ),
        *_team_owned(),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('team_id', 'location_code', name='inv_storage_locations_code_team_unique'),
        sa.CheckConstraint('id != parent_location_id', name='inv_storage_locations_no_self_reference_check'),
    )
    op.create_index('ix_inv_storage_locations_team_id', 'inv_storage_locations', ['team_id'])
    op.create_index('ix_inv_storage_locations_location_code', 'inv_storage_locations', ['location_code'])
    op.create_index('ix_inv_storage_locations_is_active', 'inv_storage_locations', ['is_active'])

    owner_type = postgresql.ENUM('supplier', 'storage_location', name='inv_owner_type')
    owner_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'inv_components',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('sku', sa.String(100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('owner_type', postgresql.ENUM(name='inv_owner_type', create_type=False), nullable=False),
        sa.Column(
            'supplier_id', postgresql.UUID(as_uuid=True),
            sa.ForeignKey('inv_suppliers.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column(
            'storage_location_id', postgresql.UUID(as_uuid=True),
            sa.ForeignKey('inv_storage_locations.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit', sa.String(50), nullable=True),
        sa.Column('unit_cost', sa.Numeric(10, 2), nullable=True),
        sa.Column('reorder_level', sa.Integer(), nullable=True, server_default='0'),
        *_team_owned(),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "(owner_type = 'supplier' AND supplier_id IS NOT NULL AND storage_location_id IS NULL)"
            " OR owner_type = 'storage_location'",
            name='inv_components_owner_supplier_check',
        ),
        sa.CheckConstraint(
            "(owner_type = 'storage_location' AND storage_location_id IS NOT NULL AND supplier_id IS NULL)"
            " OR owner_type = 'supplier'",
            name='inv_components_owner_location_check',
        ),
        sa.CheckConstraint('quantity >= 0', name='inv_components_quantity_check'),
        sa.CheckConstraint('reorder_level IS NULL OR reorder_level >= 0', name='inv_components_reorder_level_check'),
        sa.CheckConstraint('unit_cost IS NULL OR unit_cost >= 0', name='inv_components_unit_cost_check'),
    )
    op.create_index('ix_inv_components_team_id', 'inv_components', ['team_id'])
    op.create_index('ix_inv_components_is_active', 'inv_components', ['is_active'])
    op.create_index('ix_inv_components_owner_type', 'inv_components', ['owner_type'])
    op.create_index('ix_inv_components_category', 'inv_components', ['category'])
    op.create_index('ix_inv_components_sku', 'inv_components', ['sku'])
    op.create_index('ix_inv_components_supplier_id', 'inv_components', ['supplier_id'])
    op.create_index('ix_inv_components_storage_location_id', 'inv_components', ['storage_location_id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('team_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('teams.id', ondelete='SET NULL'), nullable=True),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('actor_email', sa.String(255), nullable=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(100), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('before_state', sa.Text(), nullable=True),
        sa.Column('after_state', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_team_id', 'audit_logs', ['team_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('inv_components')
    postgresql.ENUM(name='inv_owner_type').drop(op.get_bind(), checkfirst=True)
    op.drop_table('inv_storage_locations')
    op.drop_table('inv_suppliers')
    op.drop_table('users')
    op.drop_table('teams')
