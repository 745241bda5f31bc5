"""create nest tables

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c2e3f4b5d6'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, lists, permissions, tasks, completions and goals."""

    # 1. users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(30), nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(16), nullable=False, server_default='user'),
        sa.Column('hide_goals', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('hide_completed_tasks', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("role IN ('user', 'admin', 'owner')", name='ck_users_role'),
    )

    # 2. lists
    op.create_table(
        'lists',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('reset_period', sa.String(16), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "reset_period IN ('daily', 'weekly', 'fortnightly', 'monthly', 'quarterly', 'annually', 'static')",
            name='ck_lists_reset_period',
        ),
    )

    # 3. user_list_permissions
    op.create_table(
        'user_list_permissions',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('list_id', sa.Integer(), sa.ForeignKey('lists.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('permission_level', sa.String(16), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "permission_level IN ('owner', 'admin', 'user')",
            name='ck_user_list_permissions_level',
        ),
    )
    op.create_index('ix_user_list_permissions_list_id', 'user_list_permissions', ['list_id'])

    # 4. tasks
    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('list_id', sa.Integer(), sa.ForeignKey('lists.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('allow_multiple_completions', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('duration_minutes >= 0', name='ck_tasks_duration_non_negative'),
    )
    op.create_index('ix_tasks_list_id', 'tasks', ['list_id'])

    # 5. task_completions (append-only)
    op.create_table(
        'task_completions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('task_id', sa.Integer(), sa.ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('completed_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_task_completions_task_completed_at', 'task_completions', ['task_id', 'completed_at'])
    op.create_index('ix_task_completions_completed_by', 'task_completions', ['completed_by'])

    # 6. goals
    op.create_table(
        'goals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('calculation_type', sa.String(32), nullable=False),
        sa.Column('target_value', sa.Integer(), nullable=False),
        sa.Column('period_type', sa.String(16), nullable=False),
        sa.Column('list_ids', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "calculation_type IN ('percentage_task_count', 'percentage_time', 'fixed_task_count', 'fixed_time')",
            name='ck_goals_calculation_type',
        ),
        sa.CheckConstraint(
            "period_type IN ('daily', 'weekly', 'monthly', 'quarterly', 'annually')",
            name='ck_goals_period_type',
        ),
    )
    op.create_index('ix_goals_user_id', 'goals', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_goals_user_id', table_name='goals')
    op.drop_table('goals')
    op.drop_index('ix_task_completions_completed_by', table_name='task_completions')
    op.drop_index('ix_task_completions_task_completed_at', table_name='task_completions')
    op.drop_table('task_completions')
    op.drop_index('ix_tasks_list_id', table_name='tasks')
    op.drop_table('tasks')
    op.drop_index('ix_user_list_permissions_list_id', table_name='user_list_permissions')
    op.drop_table('user_list_permissions')
    op.drop_table('lists')
    op.drop_table('users')
