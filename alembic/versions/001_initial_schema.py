"""Initial schema - risk assessments, crisis interactions, safety plans, session summaries

Revision ID: 001_initial_schema
Revises: 
Create Date: 2024-01-01 00:00:00.000000

Creates the HARBOR persistence schema:
- risk_assessments: Append-only assessment log per session
- crisis_interactions: Calls, texts, dispatches and assessment events
- safety_plans: Per-user safety plans (latest active one is served)
- session_summaries: Final summary of each ended session (no message content)
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create risk_assessments table
    op.create_table(
        'risk_assessments',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('session_id', sa.String(64), nullable=True),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=False, default=0.0),
        sa.Column('score', sa.Float(), nullable=False, default=0.0),
        sa.Column('source', sa.String(16), nullable=False, default='text'),
        sa.Column('source_text_length', sa.Integer(), nullable=False, default=0),
        sa.Column('indicators', postgresql.ARRAY(sa.String(50)), nullable=False, default=[]),
        sa.Column('risk_factors', postgresql.JSONB(), nullable=False, default=[]),
        sa.Column('protective_factors', postgresql.JSONB(), nullable=False, default=[]),
        sa.Column('assessed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_risk_assessments_session_id', 'risk_assessments', ['session_id'])
    op.create_index('ix_risk_assessments_level', 'risk_assessments', ['level'])
    op.create_index('ix_risk_assessments_assessed_at', 'risk_assessments', ['assessed_at'])

    # Create crisis_interactions table
    op.create_table(
        'crisis_interactions',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('session_id', sa.String(64), nullable=True),
        sa.Column('action', sa.String(32), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('contact', sa.String(100), nullable=True),
        sa.Column('successful', sa.Boolean(), nullable=False, default=True),
        sa.Column('metadata', postgresql.JSONB(), nullable=False, default={}),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_crisis_interactions_session_id', 'crisis_interactions', ['session_id'])
    op.create_index('ix_crisis_interactions_action', 'crisis_interactions', ['action'])
    op.create_index('ix_crisis_interactions_successful', 'crisis_interactions', ['successful'])
    op.create_index('ix_crisis_interactions_occurred_at', 'crisis_interactions', ['occurred_at'])

    # Create safety_plans table
    op.create_table(
        'safety_plans',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('sections', postgresql.JSONB(), nullable=False, default={}),
        sa.Column('is_active', sa.Boolean(), nullable=False, default=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_safety_plans_user_id', 'safety_plans', ['user_id'])
    op.create_index('ix_safety_plans_is_active', 'safety_plans', ['is_active'])
    op.create_index('ix_safety_plans_updated_at', 'safety_plans', ['updated_at'])
    # Composite index for finding a user's active plan
    op.create_index(
        'ix_safety_plans_user_active',
        'safety_plans',
        ['user_id', 'updated_at'],
        postgresql_where=sa.text('is_active')
    )

    # Create session_summaries table
    op.create_table(
        'session_summaries',
        sa.Column('session_id', sa.String(64), nullable=False),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('counselor_id', sa.String(64), nullable=True),
        sa.Column('final_priority', sa.String(16), nullable=False),
        sa.Column('peak_severity', sa.String(16), nullable=False),
        sa.Column('message_count', sa.Integer(), nullable=False, default=0),
        sa.Column('user_message_count', sa.Integer(), nullable=False, default=0),
        sa.Column('assessment_count', sa.Integer(), nullable=False, default=0),
        sa.Column('escalated', sa.Boolean(), nullable=False, default=False),
        sa.Column('end_reason', sa.String(32), nullable=True),
        sa.Column('duration_seconds', sa.Float(), nullable=False, default=0.0),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('session_id'),
    )
    op.create_index('ix_session_summaries_user_id', 'session_summaries', ['user_id'])
    op.create_index('ix_session_summaries_peak_severity', 'session_summaries', ['peak_severity'])
    op.create_index('ix_session_summaries_escalated', 'session_summaries', ['escalated'])


def downgrade() -> None:
    op.drop_table('session_summaries')
    op.drop_table('safety_plans')
    op.drop_table('crisis_interactions')
    op.drop_table('risk_assessments')
