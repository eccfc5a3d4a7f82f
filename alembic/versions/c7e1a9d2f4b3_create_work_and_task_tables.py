"""create work and task tables

Revision ID: c7e1a9d2f4b3
Revises:
Create Date: 2026-10-12 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c7e1a9d2f4b3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # work: 브랜치 단위 작업 라이프사이클 (시각은 모두 UTC)
    op.create_table('work',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('branch', sa.String(length=255), nullable=False),
        sa.Column('status', sa.Enum('STARTED', 'IN_REVIEW', 'MERGED', 'ABANDONED', 'DEPLOYED', name='workstatus'), nullable=False),
        sa.Column('pull_request_number', sa.Integer(), nullable=True),
        sa.Column('merge_commit', sa.String(length=64), nullable=True),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('merged_time', sa.DateTime(), nullable=True),
        sa.Column('deployed_time', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_work_branch', 'work', ['branch'])
    op.create_index('ix_work_merge_commit', 'work', ['merge_commit'])

    # task: 단순 시작/완료 태스크
    op.create_table('task',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=500), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    op.drop_table('task')
    op.drop_index('ix_work_merge_commit', table_name='work')
    op.drop_index('ix_work_branch', table_name='work')
    op.drop_table('work')
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS workstatus")
