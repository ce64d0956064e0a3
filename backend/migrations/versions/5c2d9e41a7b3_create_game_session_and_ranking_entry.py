"""create game_session and ranking_entry

Revision ID: 5c2d9e41a7b3
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d9e41a7b3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'game_session' not in existing_tables:
        op.create_table(
            'game_session',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('session_id', sa.String(length=64), nullable=False),
            sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
            sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
            sa.Column('time_taken', sa.Float(), nullable=True),
            sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('max_level', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('device_type', sa.String(length=16), nullable=False),
            sa.Column('user_agent', sa.String(length=512), nullable=True),
            sa.Column('ip_address', sa.String(length=64), nullable=True),
            sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('is_valid', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index('ix_game_session_session_id', 'game_session', ['session_id'], unique=True)
        op.create_index('ix_game_session_time_taken', 'game_session', ['time_taken'])
        op.create_index('ix_game_session_created_at', 'game_session', ['created_at'])
        op.create_index('ix_game_session_completed_valid', 'game_session', ['is_completed', 'is_valid'])

    if 'ranking_entry' not in existing_tables:
        op.create_table(
            'ranking_entry',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(length=50), nullable=False),
            sa.Column('device_type', sa.String(length=16), nullable=False),
            sa.Column('best_time_seconds', sa.Float(), nullable=False),
            sa.Column('best_attempts', sa.Integer(), nullable=False),
            sa.Column('max_level', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('session_id', sa.String(length=64), nullable=False),
            sa.Column('total_games', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('is_valid', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint('username', 'device_type', name='uq_ranking_entry_username_device'),
        )
        op.create_index('ix_ranking_entry_username', 'ranking_entry', ['username'])
        op.create_index('ix_ranking_entry_best_time_seconds', 'ranking_entry', ['best_time_seconds'])
        op.create_index('ix_ranking_entry_device_best_time', 'ranking_entry', ['device_type', 'best_time_seconds'])


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'ranking_entry' in existing_tables:
        op.drop_table('ranking_entry')
    if 'game_session' in existing_tables:
        op.drop_table('game_session')
