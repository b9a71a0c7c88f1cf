"""Support and guest queries

Revision ID: 002_support_queries
Revises: 001_initial_schema
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '002_support_queries'
down_revision = '001_initial_schema'
branch_labels = None
depends_on = None


def _claim_columns():
    return [
        sa.Column('subject', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('assigned_admin_id', sa.Integer(), sa.ForeignKey('admins.id'), nullable=True),
        sa.Column('assigned_at', sa.DateTime(), nullable=True),
        sa.Column('response_message', sa.Text(), nullable=True),
        sa.Column('responded_by', sa.Integer(), sa.ForeignKey('admins.id'), nullable=True),
        sa.Column('responded_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    op.create_table(
        'support_queries',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('user_type', sa.Enum('Customer', 'ServiceProvider', name='support_query_user_type'), nullable=False),
        sa.Column('status', sa.Enum('pending', 'resolved', name='support_query_status'), nullable=False),
        *_claim_columns()
    )
    op.create_index('ix_support_queries_user_id', 'support_queries', ['user_id'])
    op.create_index('ix_support_queries_status', 'support_queries', ['status'])
    op.create_index('ix_support_queries_created_at', 'support_queries', ['created_at'])

    op.create_table(
        'guest_queries',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(150), nullable=False),
        sa.Column('status', sa.Enum('pending', 'resolved', name='guest_query_status'), nullable=False),
        *_claim_columns()
    )
    op.create_index('ix_guest_queries_status', 'guest_queries', ['status'])
    op.create_index('ix_guest_queries_created_at', 'guest_queries', ['created_at'])


def downgrade():
    op.drop_table('guest_queries')
    op.drop_table('support_queries')
