"""create_taskly_tables

Revision ID: 3f9c2a7d1e04
Revises:
Create Date: 2026-10-16 09:12:44.208351

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d1e04'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _sync_columns() -> list[sa.Column]:
    # Timestamps are stored as UTC ISO-8601 strings
    return [
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('sync_status', sa.String(length=10), nullable=False),
        sa.Column('last_sync_at', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.String(length=32), nullable=False),
        sa.Column('updated_at', sa.String(length=32), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'categories',
        *_sync_columns(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('color', sa.String(length=20), nullable=False),
        sa.Column('icon', sa.String(length=50), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_categories_sync_status', 'categories', ['sync_status'])
    op.create_index(
        'uq_categories_name_lower', 'categories', [sa.text('lower(name)')], unique=True
    )

    op.create_table(
        'tasks',
        *_sync_columns(),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('priority', sa.String(length=10), nullable=False),
        sa.Column('due_date', sa.String(length=32), nullable=True),
        sa.Column('category_id', sa.String(length=36), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('estimated_time', sa.Integer(), nullable=True),
        sa.Column('actual_time', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tasks_sync_status', 'tasks', ['sync_status'])
    op.create_index('ix_tasks_category_id', 'tasks', ['category_id'])
    op.create_index('ix_tasks_completed', 'tasks', ['completed'])
    op.create_index('ix_tasks_due_date', 'tasks', ['due_date'])

    op.create_table(
        'subtasks',
        *_sync_columns(),
        sa.Column('task_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['task_id'], ['tasks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_subtasks_sync_status', 'subtasks', ['sync_status'])
    op.create_index('ix_subtasks_task_id', 'subtasks', ['task_id'])

    op.create_table(
        'time_sessions',
        *_sync_columns(),
        sa.Column('task_id', sa.String(length=36), nullable=False),
        sa.Column('start_time', sa.String(length=32), nullable=False),
        sa.Column('end_time', sa.String(length=32), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['task_id'], ['tasks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_time_sessions_sync_status', 'time_sessions', ['sync_status'])
    op.create_index('ix_time_sessions_task_id', 'time_sessions', ['task_id'])
    # At most one active session per task
    op.create_index(
        'uq_time_sessions_active_task',
        'time_sessions',
        ['task_id'],
        unique=True,
        sqlite_where=sa.text('end_time IS NULL'),
    )

    op.create_table(
        'sync_metadata',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('table_name', sa.String(length=50), nullable=False),
        sa.Column('record_id', sa.String(length=36), nullable=False),
        sa.Column('operation', sa.String(length=10), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.String(length=32), nullable=False),
        sa.Column('retry_count', sa.Integer(), nullable=False),
        sa.Column('error', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sync_metadata_table_record', 'sync_metadata', ['table_name', 'record_id'])
    op.create_index('ix_sync_metadata_timestamp', 'sync_metadata', ['timestamp'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_sync_metadata_timestamp', table_name='sync_metadata')
    op.drop_index('ix_sync_metadata_table_record', table_name='sync_metadata')
    op.drop_table('sync_metadata')

    op.drop_index('uq_time_sessions_active_task', table_name='time_sessions')
    op.drop_index('ix_time_sessions_task_id', table_name='time_sessions')
    op.drop_index('ix_time_sessions_sync_status', table_name='time_sessions')
    op.drop_table('time_sessions')

    op.drop_index('ix_subtasks_task_id', table_name='subtasks')
    op.drop_index('ix_subtasks_sync_status', table_name='subtasks')
    op.drop_table('subtasks')

    op.drop_index('ix_tasks_due_date', table_name='tasks')
    op.drop_index('ix_tasks_completed', table_name='tasks')
    op.drop_index('ix_tasks_category_id', table_name='tasks')
    op.drop_index('ix_tasks_sync_status', table_name='tasks')
    op.drop_table('tasks')

    op.drop_index('uq_categories_name_lower', table_name='categories')
    op.drop_index('ix_categories_sync_status', table_name='categories')
    op.drop_table('categories')
