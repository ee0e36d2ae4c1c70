"""Initial schema: users, GTD collections and review progress.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255)),
        sa.Column('sso_id', sa.String(255)),
        sa.Column('avatar', sa.Text),
        sa.Column('auth_provider', sa.Enum('local', 'google', name='authprovider'), nullable=False, server_default='local'),
        sa.Column('created_at', sa.BigInteger, nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_sso_id', 'users', ['sso_id'], unique=True)

    op.create_table(
        'inbox_items',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('user_id', sa.String(32), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('processed', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.BigInteger, nullable=False),
    )
    op.create_index('ix_inbox_items_user_id', 'inbox_items', ['user_id'])
    op.create_index('idx_inbox_items_user_created', 'inbox_items', ['user_id', 'created_at'])

    op.create_table(
        'projects',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('user_id', sa.String(32), nullable=False),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('description', sa.Text, nullable=False, server_default=''),
        sa.Column('status', sa.Enum('active', 'on-hold', 'completed', name='projectstatus'), nullable=False, server_default='active'),
        sa.Column('created_at', sa.BigInteger, nullable=False),
    )
    op.create_index('ix_projects_user_id', 'projects', ['user_id'])
    op.create_index('idx_projects_user_created', 'projects', ['user_id', 'created_at'])

    op.create_table(
        'actions',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('user_id', sa.String(32), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        # Soft reference: nulled when the project is deleted
        sa.Column('project_id', sa.String(32)),
        sa.Column('context', sa.Enum('@home', '@office', '@phone', '@computer', '@errands', '@anywhere', name='actioncontext'), nullable=False, server_default='@anywhere'),
        sa.Column('due_date', sa.BigInteger),
        sa.Column('completed', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.BigInteger, nullable=False),
    )
    op.create_index('ix_actions_user_id', 'actions', ['user_id'])
    op.create_index('ix_actions_project_id', 'actions', ['project_id'])
    op.create_index('idx_actions_user_created', 'actions', ['user_id', 'created_at'])

    op.create_table(
        'waiting_for',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('user_id', sa.String(32), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('person', sa.String(255), nullable=False),
        sa.Column('project_id', sa.String(32)),
        sa.Column('expected_date', sa.BigInteger),
        sa.Column('completed', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.BigInteger, nullable=False),
    )
    op.create_index('ix_waiting_for_user_id', 'waiting_for', ['user_id'])
    op.create_index('ix_waiting_for_project_id', 'waiting_for', ['project_id'])
    op.create_index('idx_waiting_for_user_created', 'waiting_for', ['user_id', 'created_at'])

    op.create_table(
        'someday_maybe',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('user_id', sa.String(32), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('category', sa.Enum('personal', 'work', 'hobby', 'learning', 'other', name='somedaycategory'), nullable=False, server_default='other'),
        sa.Column('created_at', sa.BigInteger, nullable=False),
    )
    op.create_index('ix_someday_maybe_user_id', 'someday_maybe', ['user_id'])
    op.create_index('idx_someday_maybe_user_created', 'someday_maybe', ['user_id', 'created_at'])

    op.create_table(
        'review_progress',
        sa.Column('user_id', sa.String(32), primary_key=True),
        sa.Column('last_review_date', sa.BigInteger),
        sa.Column('current_step', sa.Integer, nullable=False, server_default='0'),
        sa.Column('completed_steps', sa.JSON, nullable=False),
        sa.CheckConstraint('current_step >= 0 AND current_step <= 7', name='valid_current_step'),
    )


def downgrade() -> None:
    op.drop_table('review_progress')
    op.drop_table('someday_maybe')
    op.drop_table('waiting_for')
    op.drop_table('actions')
    op.drop_table('projects')
    op.drop_table('inbox_items')
    op.drop_table('users')

    # Drop enums (no-op on backends without named enum types)
    bind = op.get_bind()
    for enum_name in ('somedaycategory', 'actioncontext', 'projectstatus', 'authprovider'):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
