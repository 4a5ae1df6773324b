"""Create Users, Tasks and TaskArchives tables.

Revision ID: 3f1c2a9d7e01
Revises:
Create Date: 2026-03-01 09:00:00.000000

TaskArchives holds one partition per UTC day, keyed by (archive_day, id).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7e01'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _task_columns() -> list[sa.Column]:
    return [
        sa.Column('id', sa.String(length=128), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=128), nullable=True),
        sa.Column('assignee_ids', sa.JSON(), nullable=True),
        sa.Column('assignee_names', sa.JSON(), nullable=True),
        sa.Column('taken_by_name', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    """Create the user directory and task tables."""
    op.create_table(
        'Users',
        sa.Column('id', sa.String(length=128), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=True),
        sa.Column('role', sa.String(length=50), nullable=True),
        sa.Column('pickup_opt_in', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('fcm_tokens', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_Users_role', 'Users', ['role'])
    op.create_index('ix_Users_pickup_opt_in', 'Users', ['pickup_opt_in'])

    op.create_table(
        'Tasks',
        *_task_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_Tasks_created_by', 'Tasks', ['created_by'])

    op.create_table(
        'TaskArchives',
        *_task_columns(),
        sa.Column('archive_day', sa.Date(), nullable=False),
        sa.PrimaryKeyConstraint('id', 'archive_day'),
    )
    op.create_index('ix_TaskArchives_archive_day', 'TaskArchives', ['archive_day'])
    op.create_index('ix_TaskArchives_created_by', 'TaskArchives', ['created_by'])


def downgrade() -> None:
    """Drop the user directory and task tables."""
    op.drop_index('ix_TaskArchives_created_by', table_name='TaskArchives')
    op.drop_index('ix_TaskArchives_archive_day', table_name='TaskArchives')
    op.drop_table('TaskArchives')
    op.drop_index('ix_Tasks_created_by', table_name='Tasks')
    op.drop_table('Tasks')
    op.drop_index('ix_Users_pickup_opt_in', table_name='Users')
    op.drop_index('ix_Users_role', table_name='Users')
    op.drop_table('Users')
