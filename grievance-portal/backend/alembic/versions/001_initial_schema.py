"""Initial schema

Revision ID: 001
Revises:
Create Date: 2024-12-06 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables and indexes for the Grievance Portal application."""

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=20), server_default='employee', nullable=False),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('cluster', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint(
            "role IN ('employee', 'agent', 'manager', 'admin')",
            name='check_valid_role'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_users_is_active', 'users', ['is_active'], unique=False)

    # Create issues table
    op.create_table(
        'issues',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='open', nullable=False),
        sa.Column('priority', sa.String(length=20), server_default='medium', nullable=False),
        sa.Column('type_id', sa.String(length=50), nullable=False),
        sa.Column('sub_type_id', sa.String(length=50), nullable=True),
        sa.Column('mapped_type_id', sa.String(length=50), nullable=True),
        sa.Column('mapped_sub_type_id', sa.String(length=50), nullable=True),
        sa.Column('mapped_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('mapped_at', sa.DateTime(), nullable=True),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('assigned_to', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('cluster', sa.String(length=100), nullable=True),
        sa.Column('escalation_level', sa.Integer(), server_default='0', nullable=False),
        sa.Column('escalated_at', sa.DateTime(), nullable=True),
        sa.Column('sla_breached', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('closed_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            "status IN ('open', 'in_progress', 'pending', 'escalated', 'resolved', 'closed')",
            name='check_valid_status'
        ),
        sa.CheckConstraint(
            "priority IN ('low', 'medium', 'high', 'critical', 'urgent')",
            name='check_valid_priority'
        ),
        sa.ForeignKeyConstraint(['employee_id'], ['users.id']),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_issues_status', 'issues', ['status'], unique=False)
    op.create_index('ix_issues_priority', 'issues', ['priority'], unique=False)
    op.create_index('ix_issues_type_id', 'issues', ['type_id'], unique=False)
    op.create_index('ix_issues_employee_id', 'issues', ['employee_id'], unique=False)
    op.create_index('ix_issues_assigned_to', 'issues', ['assigned_to'], unique=False)
    op.create_index('ix_issues_city', 'issues', ['city'], unique=False)
    op.create_index('ix_issues_cluster', 'issues', ['cluster'], unique=False)
    op.create_index('ix_issues_created_at', 'issues', ['created_at'], unique=False)

    # Create issue_comments table
    op.create_table(
        'issue_comments',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('issue_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('author_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_internal', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['issue_id'], ['issues.id']),
        sa.ForeignKeyConstraint(['author_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_issue_comments_issue_id', 'issue_comments', ['issue_id'], unique=False)
    op.create_index('ix_issue_comments_created_at', 'issue_comments', ['created_at'], unique=False)

    # Create issue_audit_trail table (append-only)
    op.create_table(
        'issue_audit_trail',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('issue_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('actor_id', sa.String(length=64), nullable=False),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('previous_value', sa.String(length=255), nullable=True),
        sa.Column('new_value', sa.String(length=255), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['issue_id'], ['issues.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_issue_audit_trail_issue_id', 'issue_audit_trail', ['issue_id'], unique=False)
    op.create_index('ix_issue_audit_trail_action', 'issue_audit_trail', ['action'], unique=False)
    op.create_index('ix_issue_audit_trail_created_at', 'issue_audit_trail', ['created_at'], unique=False)

    # Create ticket_feedback table
    op.create_table(
        'ticket_feedback',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('issue_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('feedback_option', sa.String(length=100), nullable=False),
        sa.Column('sentiment', sa.String(length=20), nullable=False),
        sa.Column('agent_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('cluster', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "sentiment IN ('positive', 'neutral', 'negative')",
            name='check_valid_sentiment'
        ),
        sa.ForeignKeyConstraint(['issue_id'], ['issues.id']),
        sa.ForeignKeyConstraint(['employee_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('issue_id', 'employee_id', name='uq_feedback_issue_employee')
    )
    op.create_index('ix_ticket_feedback_issue_id', 'ticket_feedback', ['issue_id'], unique=False)
    op.create_index('ix_ticket_feedback_sentiment', 'ticket_feedback', ['sentiment'], unique=False)
    op.create_index('ix_ticket_feedback_created_at', 'ticket_feedback', ['created_at'], unique=False)


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('ticket_feedback')
    op.drop_table('issue_audit_trail')
    op.drop_table('issue_comments')
    op.drop_table('issues')
    op.drop_table('users')
