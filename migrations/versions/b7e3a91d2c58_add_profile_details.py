"""add_profile_details

Revision ID: b7e3a91d2c58
Revises: 8f52b6c0e7d4
Create Date: 2026-10-17 09:12:44.208391

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "b7e3a91d2c58"
down_revision: str | Sequence[str] | None = "8f52b6c0e7d4"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Add job title and bio to profiles."""
    op.add_column("profiles", sa.Column("job_title", sa.String(length=100), nullable=True))
    op.add_column("profiles", sa.Column("bio", sa.String(length=500), nullable=True))


def downgrade() -> None:
    """Drop job title and bio from profiles."""
    op.drop_column("profiles", "bio")
    op.drop_column("profiles", "job_title")
