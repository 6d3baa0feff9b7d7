"""create urls and analytics tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('urls',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('short_code', sqlmodel.sql.sqltypes.AutoString(length=16), nullable=False),
        sa.Column('original_url', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('access_count', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_urls_short_code'), 'urls', ['short_code'], unique=True)
    op.create_index(op.f('ix_urls_original_url'), 'urls', ['original_url'], unique=False)

    op.create_table('analytics',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('url_id', sa.Integer(), nullable=False),
        sa.Column('last_accessed', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['url_id'], ['urls.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('url_id')
    )
    op.create_index('ix_analytics_url_id_last_accessed', 'analytics', ['url_id', 'last_accessed'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_analytics_url_id_last_accessed', table_name='analytics')
    op.drop_table('analytics')
    op.drop_index(op.f('ix_urls_original_url'), table_name='urls')
    op.drop_index(op.f('ix_urls_short_code'), table_name='urls')
    op.drop_table('urls')
