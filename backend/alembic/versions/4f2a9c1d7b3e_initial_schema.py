"""initial_schema

Revision ID: 4f2a9c1d7b3e
Revises:
Create Date: 2026-09-28 10:12:41.208113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f2a9c1d7b3e'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DIFFICULTY = sa.Enum('EASY', 'MEDIUM', 'HARD', name='difficulty')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('timezone', sa.String(length=64), nullable=False, server_default='UTC'),
        sa.Column('available_days', sa.JSON(), nullable=False),
        sa.Column('study_hours_per_day', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('preferred_study_time', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_id', 'users', ['id'])

    op.create_table(
        'study_plans',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('exam_date', sa.DateTime(), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_study_plans_id', 'study_plans', ['id'])
    op.create_index('ix_study_plans_user_id', 'study_plans', ['user_id'])

    op.create_table(
        'topics',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('difficulty', DIFFICULTY, nullable=False),
    )
    op.create_index('ix_topics_id', 'topics', ['id'])

    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('plan_id', sa.Integer(), sa.ForeignKey('study_plans.id', ondelete='CASCADE'), nullable=False),
        sa.Column('topic_id', sa.Integer(), sa.ForeignKey('topics.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('type', sa.Enum('VIDEO', 'QUIZ', 'READING', 'PRACTICE', 'REVIEW', name='tasktype'), nullable=False),
        sa.Column('status', sa.Enum('PENDING', 'IN_PROGRESS', 'COMPLETED', 'SKIPPED', name='taskstatus'), nullable=False),
        sa.Column('difficulty', DIFFICULTY, nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('end_time > start_time', name='ck_tasks_interval_order'),
        sa.CheckConstraint('duration >= 1', name='ck_tasks_duration_positive'),
    )
    op.create_index('ix_tasks_id', 'tasks', ['id'])
    op.create_index('ix_tasks_plan_id', 'tasks', ['plan_id'])
    op.create_index('ix_tasks_start_time', 'tasks', ['start_time'])
    op.create_index('ix_tasks_end_time', 'tasks', ['end_time'])

    op.create_table(
        'alerts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('plan_id', sa.Integer(), sa.ForeignKey('study_plans.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'type',
            sa.Enum(
                'MISSED_TASK', 'LOW_PERFORMANCE', 'SCHEDULE_DEVIATION', 'TOPIC_DIFFICULTY',
                'STUDY_PATTERN', 'GENERAL', 'REMEDIATION', 'SCHEDULE_CHANGE',
                name='alerttype',
            ),
            nullable=False,
        ),
        sa.Column('severity', sa.Enum('LOW', 'MEDIUM', 'HIGH', name='alertseverity'), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('related_task_id', sa.Integer(), sa.ForeignKey('tasks.id', ondelete='SET NULL'), nullable=True),
        sa.Column('related_topic_id', sa.Integer(), sa.ForeignKey('topics.id', ondelete='SET NULL'), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('is_resolved', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_alerts_id', 'alerts', ['id'])
    op.create_index('ix_alerts_user_id', 'alerts', ['user_id'])
    op.create_index('ix_alerts_plan_id', 'alerts', ['plan_id'])


def downgrade() -> None:
    op.drop_table('alerts')
    op.drop_table('tasks')
    op.drop_table('topics')
    op.drop_table('study_plans')
    op.drop_table('users')
    for enum_name in ('alertseverity', 'alerttype', 'taskstatus', 'tasktype', 'difficulty'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
