"""
Add server invites.

Revision ID: 7c3d5e8f9a21
Revises: 4b1e9a7c2d10
Create Date: 2026-10-19 14:37:05.402913
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "7c3d5e8f9a21"
down_revision: str | Sequence[str] | None = "4b1e9a7c2d10"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "server_invites",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("server_id", sa.Uuid(), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        sa.Column("uses", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["server_id"], ["servers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("server_id", "created_by", name="uq_server_invites_server_creator"),
    )
    op.create_index(op.f("ix_server_invites_code"), "server_invites", ["code"], unique=True)
    op.create_index(op.f("ix_server_invites_server_id"), "server_invites", ["server_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_server_invites_server_id"), table_name="server_invites")
    op.drop_index(op.f("ix_server_invites_code"), table_name="server_invites")
    op.drop_table("server_invites")
