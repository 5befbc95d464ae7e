"""Add country to clicks

Revision ID: 002_add_country
Revises: 001_initial
Create Date: 2026-01-12 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '002_add_country'
down_revision: Union[str, None] = '001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    ISO 3166-1 alpha-2 country of the visitor, NULL when unknown.
    Rows logged before this revision keep NULL.
    """
    bind = op.get_bind()
    columns = {column['name'] for column in inspect(bind).get_columns('clicks')}
    if 'country' not in columns:
        with op.batch_alter_table('clicks') as batch_op:
            batch_op.add_column(sa.Column('country', sa.String(length=2), nullable=True))

    op.create_index('idx_site_country', 'clicks', ['site', 'country'])


def downgrade() -> None:
    op.drop_index('idx_site_country', table_name='clicks')
    with op.batch_alter_table('clicks') as batch_op:
        batch_op.drop_column('country')
