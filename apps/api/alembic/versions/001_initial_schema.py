"""initial schema: profiles, completion ledgers, phase gate, teams

Revision ID: 001
Revises:
Create Date: 2025-01-15 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True)


def _user_fk(name='user_id'):
    return sa.Column(name, sa.Uuid(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)


def _timestamp(name):
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _item_ledger(table, column):
    op.create_table(
        table,
        _id(),
        _user_fk(),
        sa.Column(column, sa.Text(), nullable=False),
        _timestamp('completed_at'),
        sa.UniqueConstraint('user_id', column, name=f'uq_{table}_user_{column.replace("_id", "")}'),
    )


def upgrade() -> None:
    op.create_table(
        'profiles',
        _id(),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('location', sa.Text(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('phone_number', sa.Text(), nullable=True),
        sa.Column('role', sa.Text(), nullable=False, server_default='pilgrim'),
        sa.Column('start_date', sa.Date(), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )
    op.create_index('ix_profiles_lat_lng', 'profiles', ['latitude', 'longitude'])

    # Completion ledger
    op.create_table(
        'walk_completions',
        _id(),
        _user_fk(),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('day_of_week', sa.Text(), nullable=False),
        sa.Column('distance_km', sa.Float(), nullable=False),
        _timestamp('completed_at'),
        sa.UniqueConstraint('user_id', 'week_number', 'day_of_week', name='uq_walk_completions_user_week_day'),
        sa.CheckConstraint('week_number BETWEEN 1 AND 52', name='ck_walk_completions_week_number'),
        sa.CheckConstraint('distance_km >= 0', name='ck_walk_completions_distance'),
    )
    op.create_index('ix_walk_completions_user_id', 'walk_completions', ['user_id'])

    _item_ledger('trail_completions', 'trail_id')
    _item_ledger('book_completions', 'book_id')
    _item_ledger('video_completions', 'video_id')
    _item_ledger('magnolias_hikes_completions', 'hike_id')

    # Phase gate
    for table, stamp in (('phase_unlocks', 'unlocked_at'), ('phase_completions', 'completed_at')):
        op.create_table(
            table,
            _id(),
            _user_fk(),
            sa.Column('phase_number', sa.Integer(), nullable=False),
            _timestamp(stamp),
            sa.UniqueConstraint('user_id', 'phase_number', name=f'uq_{table}_user_phase'),
            sa.CheckConstraint('phase_number BETWEEN 1 AND 5', name=f'ck_{table}_phase_number'),
        )

    # Teams
    op.create_table(
        'teams',
        _id(),
        sa.Column('name', sa.Text(), nullable=True),
        _user_fk('created_by'),
        sa.Column('max_members', sa.Integer(), nullable=True),
        sa.Column('whatsapp_link', sa.Text(), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.CheckConstraint('max_members IS NULL OR max_members >= 1', name='ck_teams_max_members'),
    )

    op.create_table(
        'team_members',
        _id(),
        sa.Column('team_id', sa.Uuid(as_uuid=True), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        _user_fk(),
        sa.Column('role', sa.Text(), nullable=False, server_default='member'),
        _timestamp('joined_at'),
        sa.UniqueConstraint('team_id', 'user_id', name='uq_team_members_team_user'),
        sa.CheckConstraint("role IN ('leader', 'member')", name='ck_team_members_role'),
    )
    op.create_index('ix_team_members_user_id', 'team_members', ['user_id'])

    op.create_table(
        'team_invitations',
        _id(),
        sa.Column('team_id', sa.Uuid(as_uuid=True), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        _user_fk('invited_by'),
        _user_fk('invited_user_id'),
        sa.Column('status', sa.Text(), nullable=False, server_default='pending'),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.CheckConstraint("status IN ('pending', 'accepted', 'declined')", name='ck_team_invitations_status'),
    )
    op.create_index(
        'uq_team_invitations_pending',
        'team_invitations',
        ['team_id', 'invited_user_id'],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )
    op.create_index('ix_team_invitations_invited_user_id', 'team_invitations', ['invited_user_id'])

    op.create_table(
        'team_join_requests',
        _id(),
        sa.Column('team_id', sa.Uuid(as_uuid=True), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        _user_fk('requested_by'),
        sa.Column('status', sa.Text(), nullable=False, server_default='pending'),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.CheckConstraint("status IN ('pending', 'accepted', 'declined')", name='ck_team_join_requests_status'),
    )
    op.create_index(
        'uq_team_join_requests_pending',
        'team_join_requests',
        ['team_id', 'requested_by'],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )
    op.create_index('ix_team_join_requests_requested_by', 'team_join_requests', ['requested_by'])


def downgrade() -> None:
    op.drop_index('ix_team_join_requests_requested_by', table_name='team_join_requests')
    op.drop_index('uq_team_join_requests_pending', table_name='team_join_requests')
    op.drop_table('team_join_requests')
    op.drop_index('ix_team_invitations_invited_user_id', table_name='team_invitations')
    op.drop_index('uq_team_invitations_pending', table_name='team_invitations')
    op.drop_table('team_invitations')
    op.drop_index('ix_team_members_user_id', table_name='team_members')
    op.drop_table('team_members')
    op.drop_table('teams')
    op.drop_table('phase_completions')
    op.drop_table('phase_unlocks')
    op.drop_table('magnolias_hikes_completions')
    op.drop_table('video_completions')
    op.drop_table('book_completions')
    op.drop_table('trail_completions')
    op.drop_index('ix_walk_completions_user_id', table_name='walk_completions')
    op.drop_table('walk_completions')
    op.drop_index('ix_profiles_lat_lng', table_name='profiles')
    op.drop_table('profiles')
