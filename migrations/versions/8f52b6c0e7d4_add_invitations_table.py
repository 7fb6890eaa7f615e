"""add_invitations_table

Revision ID: 8f52b6c0e7d4
Revises: 4c1d7e2a9b30
Create Date: 2026-09-14 10:31:07.553120

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8f52b6c0e7d4"
down_revision: str | Sequence[str] | None = "4c1d7e2a9b30"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create invitations table with the single-pending-invitation index."""
    op.create_table(
        "invitations",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("organization_id", sa.UUID(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role_id", sa.UUID(), nullable=False),
        sa.Column("invited_by", sa.UUID(), nullable=True),
        sa.Column("token", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=10), nullable=False, server_default="INVITE"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("type IN ('INVITE', 'REQUEST')", name="ck_invitations_type"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'declined', 'expired')",
            name="ck_invitations_status",
        ),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["invited_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token"),
    )
    # At most one pending invitation per email per organization
    op.create_index(
        "uq_invitations_pending_org_email",
        "invitations",
        ["organization_id", "email"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )
    # Pending invitations addressed to a user
    op.create_index("ix_invitations_email_status", "invitations", ["email", "status"], unique=False)


def downgrade() -> None:
    """Drop invitations table."""
    op.drop_index("ix_invitations_email_status", table_name="invitations")
    op.drop_index("uq_invitations_pending_org_email", table_name="invitations")
    op.drop_table("invitations")
