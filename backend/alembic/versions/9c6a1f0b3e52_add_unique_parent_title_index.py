"""add_unique_parent_title_index

Prevents two generation passes from inserting the same instance twice.
Existing duplicates must be removed first:
    python -m tasktide.db.dedupe_instances --apply

Revision ID: 9c6a1f0b3e52
Revises: 7e3f5a8c2d41
Create Date: 2026-10-14 09:03:17.774302

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '9c6a1f0b3e52'
down_revision: Union[str, None] = '7e3f5a8c2d41'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    indexes = [index['name'] for index in inspector.get_indexes('tasks')]

    if 'uq_tasks_parent_task_id_title' not in indexes:
        # Templates (parent_task_id IS NULL) are not constrained
        op.create_index(
            'uq_tasks_parent_task_id_title',
            'tasks',
            ['parent_task_id', 'title'],
            unique=True,
            postgresql_where=sa.text('parent_task_id IS NOT NULL'),
            sqlite_where=sa.text('parent_task_id IS NOT NULL'),
        )


def downgrade() -> None:
    op.drop_index('uq_tasks_parent_task_id_title', table_name='tasks')
