"""initial approval schema

Revision ID: 3b8e1c2a9f10
Revises:
Create Date: 2026-10-18 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b8e1c2a9f10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns():
    return [
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
    ]


def upgrade():
    op.create_table(
        'departments',
        *_base_columns(),
        sa.Column('parent_id', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('dept_name', sa.String(100), nullable=False),
        sa.Column('leader', sa.String(100), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('order_num', sa.Integer(), nullable=True),
        sa.Column('status', sa.Integer(), nullable=False, server_default='1'),
    )
    op.create_index('ix_departments_parent_id', 'departments', ['parent_id'])

    op.create_table(
        'permissions',
        *_base_columns(),
        sa.Column('code', sa.String(100), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('resource', sa.String(100), nullable=False),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
    )
    op.create_index('ix_permissions_code', 'permissions', ['code'], unique=True)

    op.create_table(
        'posts',
        *_base_columns(),
        sa.Column('post_code', sa.String(64), nullable=False),
        sa.Column('post_name', sa.String(100), nullable=False),
        sa.Column('post_sort', sa.Integer(), nullable=True),
        sa.Column('status', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('remark', sa.Text(), nullable=True),
    )
    op.create_index('ix_posts_post_code', 'posts', ['post_code'], unique=True)

    op.create_table(
        'post_permissions',
        *_base_columns(),
        sa.Column('post_id', sa.Integer(), sa.ForeignKey('posts.id'), nullable=False),
        sa.Column('permission_id', sa.Integer(), sa.ForeignKey('permissions.id'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
    )

    op.create_table(
        'users',
        *_base_columns(),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('real_name', sa.String(100), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('avatar', sa.String(500), nullable=True),
        sa.Column('dept_id', sa.Integer(), sa.ForeignKey('departments.id'), nullable=True),
        sa.Column('post_id', sa.Integer(), sa.ForeignKey('posts.id'), nullable=True),
        sa.Column('status', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('failed_login_attempts', sa.Integer(), nullable=True),
        sa.Column('locked_until', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_dept_id', 'users', ['dept_id'])
    op.create_index('ix_users_post_id', 'users', ['post_id'])

    op.create_table(
        'refresh_tokens',
        *_base_columns(),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('token', sa.String(500), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=True),
        sa.Column('device_info', sa.String(500), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
    )
    op.create_index('ix_refresh_tokens_token', 'refresh_tokens', ['token'], unique=True)

    op.create_table(
        'audit_logs',
        *_base_columns(),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('resource', sa.String(100), nullable=False),
        sa.Column('resource_id', sa.Integer(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('endpoint', sa.String(255), nullable=True),
        sa.Column('request_id', sa.String(100), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        'applications',
        *_base_columns(),
        sa.Column('app_no', sa.String(32), nullable=False),
        sa.Column('app_type', sa.String(20), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('applicant_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('dept_id', sa.Integer(), sa.ForeignKey('departments.id'), nullable=True),
        sa.Column('status', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_node', sa.String(100), nullable=True),
        sa.Column('route', sa.JSON(), nullable=True),
        sa.Column('node_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('submit_time', sa.DateTime(), nullable=True),
        sa.Column('finish_time', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_applications_app_no', 'applications', ['app_no'], unique=True)
    op.create_index('ix_applications_app_type', 'applications', ['app_type'])
    op.create_index('ix_applications_applicant_id', 'applications', ['applicant_id'])
    op.create_index('ix_applications_status', 'applications', ['status'])

    op.create_table(
        'leave_applications',
        *_base_columns(),
        sa.Column('app_id', sa.Integer(), sa.ForeignKey('applications.id'), nullable=False, unique=True),
        sa.Column('leave_type', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('days', sa.Numeric(5, 1), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('attachment', sa.String(500), nullable=True),
    )

    op.create_table(
        'reimburse_applications',
        *_base_columns(),
        sa.Column('app_id', sa.Integer(), sa.ForeignKey('applications.id'), nullable=False, unique=True),
        sa.Column('expense_type', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('invoice_attachment', sa.String(500), nullable=True),
        sa.Column('occur_date', sa.Date(), nullable=True),
    )

    op.create_table(
        'approval_tasks',
        *_base_columns(),
        sa.Column('app_id', sa.Integer(), sa.ForeignKey('applications.id'), nullable=False),
        sa.Column('node_name', sa.String(100), nullable=False),
        sa.Column('assignee_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('assignee_name', sa.String(100), nullable=True),
        sa.Column('status', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('action', sa.Integer(), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('finish_time', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_approval_tasks_app_id', 'approval_tasks', ['app_id'])
    op.create_index('ix_approval_tasks_assignee_id', 'approval_tasks', ['assignee_id'])

    op.create_table(
        'approval_histories',
        *_base_columns(),
        sa.Column('app_id', sa.Integer(), sa.ForeignKey('applications.id'), nullable=False),
        sa.Column('task_id', sa.Integer(), sa.ForeignKey('approval_tasks.id'), nullable=True),
        sa.Column('node_name', sa.String(100), nullable=False),
        sa.Column('approver_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('approver_name', sa.String(100), nullable=True),
        sa.Column('action', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('approve_time', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_approval_histories_app_id', 'approval_histories', ['app_id'])


def downgrade():
    for table in (
        'approval_histories',
        'approval_tasks',
        'reimburse_applications',
        'leave_applications',
        'applications',
        'audit_logs',
        'refresh_tokens',
        'users',
        'post_permissions',
        'posts',
        'permissions',
        'departments',
    ):
        op.drop_table(table)
