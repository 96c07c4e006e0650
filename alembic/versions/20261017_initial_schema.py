"""Initial schema: users, rooms, room members, room analyses, roadmaps.

Revision ID: 4f1a2b3c5d6e
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '4f1a2b3c5d6e'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'Users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='student'),
        sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_Users_email', 'Users', ['email'], unique=True)

    op.create_table(
        'Rooms',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('host_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['host_id'], ['Users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_Rooms_code', 'Rooms', ['code'], unique=True)
    op.create_index('ix_Rooms_host_id', 'Rooms', ['host_id'])

    op.create_table(
        'RoomMembers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('room_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('joined_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['room_id'], ['Rooms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['Users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('room_id', 'user_id', name='uq_room_members_room_user'),
    )
    op.create_index('ix_RoomMembers_room_id', 'RoomMembers', ['room_id'])
    op.create_index('ix_RoomMembers_user_id', 'RoomMembers', ['user_id'])

    op.create_table(
        'RoomAnalyses',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('room_code', sa.String(length=16), nullable=False),
        sa.Column('file_name', sa.String(length=255), nullable=True),
        sa.Column('analysis', sa.JSON(), nullable=False),
        sa.Column('last_updated', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_RoomAnalyses_room_code', 'RoomAnalyses', ['room_code'], unique=True)

    op.create_table(
        'Roadmaps',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('room_code', sa.String(length=16), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('document_title', sa.String(length=255), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['Users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_Roadmaps_room_code', 'Roadmaps', ['room_code'])
    op.create_index('ix_Roadmaps_created_by', 'Roadmaps', ['created_by'])


def downgrade() -> None:
    op.drop_index('ix_Roadmaps_created_by', table_name='Roadmaps')
    op.drop_index('ix_Roadmaps_room_code', table_name='Roadmaps')
    op.drop_table('Roadmaps')
    op.drop_index('ix_RoomAnalyses_room_code', table_name='RoomAnalyses')
    op.drop_table('RoomAnalyses')
    op.drop_index('ix_RoomMembers_user_id', table_name='RoomMembers')
    op.drop_index('ix_RoomMembers_room_id', table_name='RoomMembers')
    op.drop_table('RoomMembers')
    op.drop_index('ix_Rooms_host_id', table_name='Rooms')
    op.drop_index('ix_Rooms_code', table_name='Rooms')
    op.drop_table('Rooms')
    op.drop_index('ix_Users_email', table_name='Users')
    op.drop_table('Users')
