"""Initial schema

Revision ID: 20260112_0001
Revises:
Create Date: 2026-01-12

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260112_0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the durable Riot response cache."""
    op.create_table(
        'riot_cache',
        sa.Column('key', sa.String(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.Column('expires_at', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('key')
    )
    op.create_index('ix_riot_cache_expires_at', 'riot_cache', ['expires_at'])


def downgrade() -> None:
    """Drop the cache table."""
    op.drop_index('ix_riot_cache_expires_at', 'riot_cache')
    op.drop_table('riot_cache')
