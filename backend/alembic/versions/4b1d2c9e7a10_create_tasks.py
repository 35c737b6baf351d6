"""create_tasks

Revision ID: 4b1d2c9e7a10
Revises:
Create Date: 2026-09-28 10:12:41.208113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4b1d2c9e7a10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('project_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('priority', sa.String(length=40), nullable=True),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('start_time', sa.String(length=5), nullable=True),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('due_time', sa.String(length=5), nullable=True),
        sa.Column('resource_count', sa.Integer(), nullable=True),
        sa.Column('manhours', sa.Float(), nullable=True),
        sa.Column(
            'depends_on_task_id',
            sa.Integer(),
            sa.ForeignKey('tasks.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        # Recurring task fields
        sa.Column('is_recurring', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('recurring_pattern', sa.String(length=20), nullable=True),
        # {"pattern": "DAILY|WEEKLY|MONTHLY|CUSTOM", "interval": 1, "daysOfWeek": [1, 3], "dayOfMonth": 15}
        sa.Column('recurring_config', sa.JSON(), nullable=True),
        sa.Column('recurring_start_date', sa.DateTime(), nullable=True),
        sa.Column('recurring_end_date', sa.DateTime(), nullable=True),
        sa.Column('last_generated_date', sa.DateTime(), nullable=True),
        sa.Column('next_generation_date', sa.DateTime(), nullable=True),
        sa.Column(
            'parent_task_id',
            sa.Integer(),
            sa.ForeignKey('tasks.id', ondelete='CASCADE'),
            nullable=True,
        ),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_tasks_id', 'tasks', ['id'], unique=False)
    op.create_index('ix_tasks_user_id', 'tasks', ['user_id'], unique=False)
    op.create_index('ix_tasks_project_id', 'tasks', ['project_id'], unique=False)
    op.create_index('ix_tasks_next_generation_date', 'tasks', ['next_generation_date'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_tasks_next_generation_date', table_name='tasks')
    op.drop_index('ix_tasks_project_id', table_name='tasks')
    op.drop_index('ix_tasks_user_id', table_name='tasks')
    op.drop_index('ix_tasks_id', table_name='tasks')
    op.drop_table('tasks')
