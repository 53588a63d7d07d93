"""Initial schema

Revision ID: 001
Revises: 
Create Date: 2021-03-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Outstanding confirmation calls
    op.create_table(
        'active_calls',
        sa.Column('call_sid', sa.String(), nullable=False),
        sa.Column('user_number', sa.String(), nullable=False),
        sa.Column('waitlist_key', sa.String(), nullable=False),
        sa.Column('user_input', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('call_sid')
    )
    op.create_index(op.f('ix_active_calls_call_sid'), 'active_calls', ['call_sid'], unique=False)

    # Admin identities and custom claims
    op.create_table(
        'admin_users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('uid', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('password_hash', sa.String(), nullable=True),
        sa.Column('could_see_admin', sa.Boolean(), nullable=False),
        sa.Column('admin_activated', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_admin_users_id'), 'admin_users', ['id'], unique=False)
    op.create_index(op.f('ix_admin_users_uid'), 'admin_users', ['uid'], unique=True)

    # Per-admin search result and cached confirmed list
    op.create_table(
        'waitlist_search_results',
        sa.Column('admin_uid', sa.String(), nullable=False),
        sa.Column('generated_at', sa.DateTime(), nullable=False),
        sa.Column('result', sa.JSON(), nullable=False),
        sa.Column('confirmed_generated_at', sa.DateTime(), nullable=True),
        sa.Column('cached_confirmed_list', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('admin_uid')
    )
    op.create_index(
        op.f('ix_waitlist_search_results_admin_uid'), 'waitlist_search_results', ['admin_uid'], unique=False
    )


def downgrade() -> None:
    op.drop_table('waitlist_search_results')
    op.drop_table('admin_users')
    op.drop_table('active_calls')
