"""add_original_times_to_tasks

Revision ID: 9b81e3f05a6c
Revises: 4f2a9c1d7b3e
Create Date: 2026-10-06 16:47:03.551902

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '9b81e3f05a6c'
down_revision: Union[str, None] = '4f2a9c1d7b3e'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Check if columns already exist (for re-running migrations)
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    columns = [col['name'] for col in inspector.get_columns('tasks')]

    with op.batch_alter_table('tasks', schema=None) as batch_op:
        # Where the task sat before its first reschedule; never overwritten
        if 'original_start_time' not in columns:
            batch_op.add_column(sa.Column('original_start_time', sa.DateTime(), nullable=True))
        if 'original_end_time' not in columns:
            batch_op.add_column(sa.Column('original_end_time', sa.DateTime(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table('tasks', schema=None) as batch_op:
        batch_op.drop_column('original_end_time')
        batch_op.drop_column('original_start_time')
