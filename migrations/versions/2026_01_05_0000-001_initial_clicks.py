"""Initial schema: clicks table

Revision ID: 001_initial
Revises:
Create Date: 2026-01-05 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the append-only click log:
    - one row per redirect (type='click') or crawler preview (type='preview')
    - indexes for per-site time range scans and per-source aggregation
    """
    bind = op.get_bind()
    if 'clicks' in inspect(bind).get_table_names():
        return

    op.create_table(
        'clicks',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), nullable=False, autoincrement=True),
        sa.Column('ip', sa.String(length=45), nullable=False),
        sa.Column('user_agent', sa.Text(), nullable=False),
        sa.Column('source', sa.String(length=50), nullable=False),
        sa.Column('site', sa.String(length=100), nullable=False),
        sa.Column('article_id', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=10), nullable=False, server_default='click'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_index('idx_source', 'clicks', ['source'])
    op.create_index('idx_article', 'clicks', ['article_id'])
    op.create_index('idx_created_at', 'clicks', ['created_at'])
    op.create_index('idx_site_created', 'clicks', ['site', 'created_at'])


def downgrade() -> None:
    op.drop_index('idx_site_created', table_name='clicks')
    op.drop_index('idx_created_at', table_name='clicks')
    op.drop_index('idx_article', table_name='clicks')
    op.drop_index('idx_source', table_name='clicks')
    op.drop_table('clicks')
