"""make urls.original_url unique

Revision ID: 0002_unique_original_url
Revises: 0001_initial
Create Date: 2026-10-18 16:00:00.000000

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '0002_unique_original_url'
down_revision: Union[str, Sequence[str], None] = '0001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Fails while racing shortens have left duplicate URLs; those codes were
    # handed out and must be merged by hand first
    op.drop_index(op.f('ix_urls_original_url'), table_name='urls')
    op.create_index(op.f('ix_urls_original_url'), 'urls', ['original_url'], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_urls_original_url'), table_name='urls')
    op.create_index(op.f('ix_urls_original_url'), 'urls', ['original_url'], unique=False)
