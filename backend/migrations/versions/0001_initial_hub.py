"""initial hub tables

Revision ID: 0001_initial_hub
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_hub'
down_revision = None
branch_labels = None
depends_on = None

TIMESTAMP = sa.text('CURRENT_TIMESTAMP')


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='Viewer'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=TIMESTAMP),
    )
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table('projects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=150), nullable=False, unique=True),
        sa.Column('slug', sa.String(length=150), nullable=False, unique=True),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=TIMESTAMP),
    )
    op.create_index('ix_projects_name', 'projects', ['name'])
    op.create_index('ix_projects_slug', 'projects', ['slug'])

    op.create_table('api_specs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('yaml', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=TIMESTAMP),
    )
    op.create_index('ix_api_specs_name', 'api_specs', ['name'])

    op.create_table('project_versions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=TIMESTAMP),
        sa.UniqueConstraint('project_id', 'name', name='uq_project_version_name'),
    )
    op.create_index('ix_project_versions_project_id', 'project_versions', ['project_id'])

    op.create_table('version_associations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('version_id', sa.Integer(), sa.ForeignKey('project_versions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('api_spec_id', sa.Integer(), sa.ForeignKey('api_specs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('endpoint_path', sa.String(length=512), nullable=False),
        sa.Column('endpoint_method', sa.String(length=16), nullable=False),
    )
    op.create_index('ix_version_associations_version_id', 'version_associations', ['version_id'])
    op.create_index('ix_version_associations_api_spec_id', 'version_associations', ['api_spec_id'])

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor_user_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity', sa.String(length=64), nullable=True),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('perms_snapshot', sa.JSON(), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=TIMESTAMP),
    )
    op.create_index('ix_audit_logs_actor_user_id', 'audit_logs', ['actor_user_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity', 'audit_logs', ['entity', 'entity_id'])


def downgrade():
    for table in ('audit_logs', 'version_associations', 'project_versions', 'api_specs', 'projects', 'users'):
        op.drop_table(table)
