"""Baseline: agencies, projects, requests and their collaboration tables.

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19

Creates:
- agencies, users, agency_members
- projects, project_members
- request_templates, requests, request_assignments, request_messages
- tags, request_tags, request_activity_log
- time_entries, client_satisfaction_ratings
- automation_rules, notifications, attachments
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_baseline'
down_revision = None
branch_labels = None
depends_on = None


def _ts(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    # ==========================================================================
    # Tenancy
    # ==========================================================================
    op.create_table(
        'agencies',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False),
        sa.Column('logo_path', sa.String(500), nullable=True),
        sa.Column('timezone', sa.String(50), nullable=False, server_default='UTC'),
        sa.Column('tier', sa.String(20), nullable=False, server_default='free'),
        sa.Column('payment_customer_id', sa.String(255), nullable=True),
        _ts('created_at'),
        _ts('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('avatar_path', sa.String(500), nullable=True),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('token_version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        _ts('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'agency_members',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('agency_id', sa.Uuid(), sa.ForeignKey('agencies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='staff'),
        sa.Column('invitation_email', sa.String(255), nullable=True),
        sa.Column('invitation_token', sa.String(128), nullable=True),
        _ts('invitation_expires_at', nullable=True),
        sa.Column('consumed_token_hash', sa.String(64), nullable=True),
        sa.Column('invited_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        _ts('joined_at', nullable=True),
        _ts('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('agency_id', 'user_id', name='uq_agency_member_user'),
    )
    op.create_index('idx_agency_members_token', 'agency_members', ['invitation_token'])
    op.create_index('idx_agency_members_consumed', 'agency_members', ['consumed_token_hash'])

    # ==========================================================================
    # Projects
    # ==========================================================================
    op.create_table(
        'projects',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('agency_id', sa.Uuid(), sa.ForeignKey('agencies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        _ts('created_at'),
        _ts('updated_at'),
        _ts('deleted_at', nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_projects_agency_status', 'projects', ['agency_id', 'status'])

    op.create_table(
        'project_members',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('project_id', sa.Uuid(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='client'),
        sa.Column('invitation_email', sa.String(255), nullable=True),
        sa.Column('invitation_token', sa.String(128), nullable=True),
        _ts('invitation_expires_at', nullable=True),
        sa.Column('consumed_token_hash', sa.String(64), nullable=True),
        sa.Column('invited_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        _ts('joined_at', nullable=True),
        _ts('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('project_id', 'user_id', name='uq_project_member_user'),
    )
    op.create_index('idx_project_members_token', 'project_members', ['invitation_token'])
    op.create_index('idx_project_members_consumed', 'project_members', ['consumed_token_hash'])

    # ==========================================================================
    # Requests
    # ==========================================================================
    op.create_table(
        'request_templates',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('agency_id', sa.Uuid(), sa.ForeignKey('agencies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('default_type', sa.String(20), nullable=False, server_default='bug'),
        sa.Column('default_priority', sa.String(20), nullable=False, server_default='normal'),
        sa.Column('title_template', sa.String(255), nullable=True),
        sa.Column('description_template', sa.Text(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        _ts('created_at'),
        _ts('updated_at'),
        _ts('deleted_at', nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'idx_request_templates_agency', 'request_templates', ['agency_id', 'is_active', 'sort_order']
    )

    op.create_table(
        'requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('project_id', sa.Uuid(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('type', sa.String(20), nullable=False, server_default='bug'),
        sa.Column('priority', sa.String(20), nullable=False, server_default='normal'),
        sa.Column('status', sa.String(20), nullable=False, server_default='submitted'),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('estimated_hours', sa.Numeric(6, 2), nullable=True),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        _ts('completed_at', nullable=True),
        sa.Column('completed_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        _ts('created_at'),
        _ts('updated_at'),
        _ts('deleted_at', nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_requests_project_status', 'requests', ['project_id', 'status'])
    op.create_index('idx_requests_project_created', 'requests', ['project_id', 'created_at'])
    op.create_index('idx_requests_due', 'requests', ['project_id', 'due_date'])

    op.create_table(
        'request_assignments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('request_id', sa.Uuid(), sa.ForeignKey('requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('assigned_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        _ts('assigned_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('request_id', 'user_id', name='uq_request_assignment'),
    )
    op.create_index('idx_request_assignments_user', 'request_assignments', ['user_id'])

    op.create_table(
        'request_messages',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('request_id', sa.Uuid(), sa.ForeignKey('requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_internal', sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts('created_at'),
        _ts('updated_at'),
        _ts('deleted_at', nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_request_messages_thread', 'request_messages', ['request_id', 'created_at'])

    op.create_table(
        'tags',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('agency_id', sa.Uuid(), sa.ForeignKey('agencies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('color', sa.String(20), nullable=False, server_default='gray'),
        _ts('created_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_tags_agency_name', 'tags', ['agency_id', 'name'])

    op.create_table(
        'request_tags',
        sa.Column('request_id', sa.Uuid(), sa.ForeignKey('requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tag_id', sa.Uuid(), sa.ForeignKey('tags.id', ondelete='CASCADE'), nullable=False),
        _ts('created_at'),
        sa.PrimaryKeyConstraint('request_id', 'tag_id'),
    )

    op.create_table(
        'request_activity_log',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('request_id', sa.Uuid(), sa.ForeignKey('requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('activity_type', sa.String(50), nullable=False),
        sa.Column('details', sa.JSON(), nullable=False),
        _ts('created_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_request_activity_request', 'request_activity_log', ['request_id', 'created_at'])

    # ==========================================================================
    # Time, ratings
    # ==========================================================================
    op.create_table(
        'time_entries',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('request_id', sa.Uuid(), sa.ForeignKey('requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('tracked_date', sa.Date(), nullable=False),
        _ts('created_at'),
        _ts('updated_at'),
        _ts('deleted_at', nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('duration_minutes > 0', name='chk_time_entry_positive'),
    )
    op.create_index('idx_time_entries_request', 'time_entries', ['request_id', 'tracked_date'])

    op.create_table(
        'client_satisfaction_ratings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('request_id', sa.Uuid(), sa.ForeignKey('requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('feedback', sa.Text(), nullable=True),
        _ts('created_at'),
        _ts('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('request_id'),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='chk_rating_range'),
    )

    # ==========================================================================
    # Automation, notifications, attachments
    # ==========================================================================
    op.create_table(
        'automation_rules',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('agency_id', sa.Uuid(), sa.ForeignKey('agencies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('trigger_type', sa.String(50), nullable=False),
        sa.Column('trigger_conditions', sa.JSON(), nullable=False),
        sa.Column('action_type', sa.String(50), nullable=False),
        sa.Column('action_config', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('run_count', sa.Integer(), nullable=False, server_default='0'),
        _ts('last_run_at', nullable=True),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        _ts('created_at'),
        _ts('updated_at'),
        _ts('deleted_at', nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'idx_automation_matching', 'automation_rules', ['agency_id', 'trigger_type', 'is_active']
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('agency_id', sa.Uuid(), sa.ForeignKey('agencies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('body', sa.Text(), nullable=True),
        sa.Column('request_id', sa.Uuid(), sa.ForeignKey('requests.id', ondelete='CASCADE'), nullable=True),
        _ts('read_at', nullable=True),
        _ts('created_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_notifications_user_unread', 'notifications', ['user_id', 'read_at'])
    op.create_index('idx_notifications_user_created', 'notifications', ['user_id', 'created_at'])

    op.create_table(
        'attachments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('agency_id', sa.Uuid(), sa.ForeignKey('agencies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('request_id', sa.Uuid(), sa.ForeignKey('requests.id', ondelete='CASCADE'), nullable=True),
        sa.Column(
            'message_id', sa.Uuid(), sa.ForeignKey('request_messages.id', ondelete='CASCADE'), nullable=True
        ),
        sa.Column('uploaded_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('filename', sa.String(255), nullable=False),
        sa.Column('storage_key', sa.String(500), nullable=False),
        sa.Column('content_type', sa.String(100), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        _ts('created_at'),
        _ts('deleted_at', nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_attachments_request', 'attachments', ['request_id'])
    op.create_index('idx_attachments_message', 'attachments', ['message_id'])


def downgrade() -> None:
    for table in (
        'attachments',
        'notifications',
        'automation_rules',
        'client_satisfaction_ratings',
        'time_entries',
        'request_activity_log',
        'request_tags',
        'tags',
        'request_messages',
        'request_assignments',
        'requests',
        'request_templates',
        'project_members',
        'projects',
        'agency_members',
        'users',
        'agencies',
    ):
        op.drop_table(table)
