"""add_scheduler_state

Revision ID: 7e3f5a8c2d41
Revises: 4b1d2c9e7a10
Create Date: 2026-10-06 16:40:03.551920

"""
from datetime import datetime
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7e3f5a8c2d41'
down_revision: Union[str, None] = '4b1d2c9e7a10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    scheduler_state = op.create_table(
        'scheduler_state',
        sa.Column('id', sa.String(length=100), primary_key=True),
        sa.Column('is_running', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_run_date', sa.DateTime(), nullable=False),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    # last_run_date in the past so the first deployment runs a pass right away
    op.bulk_insert(
        scheduler_state,
        [
            {
                'id': 'recurring-task-scheduler',
                'is_running': False,
                'last_run_date': datetime(2000, 1, 1),
                'last_error': None,
                'updated_at': datetime(2000, 1, 1),
            }
        ],
    )


def downgrade() -> None:
    op.drop_table('scheduler_state')
