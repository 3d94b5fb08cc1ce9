"""add done_at to leads

Completion time of a lead; set when the status becomes ``done`` and
cleared when it goes back to ``new``.  Older deployments call this
column ``completed_at``; the repositories accept either.

Revision ID: 8d1f2e3a4b56
Revises: 5c0e7a1d2b34
Create Date: 2026-10-06 09:30:00.000000

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "8d1f2e3a4b56"
down_revision = "5c0e7a1d2b34"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "leads",
        sa.Column("done_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    with op.batch_alter_table("leads") as batch_op:
        batch_op.drop_column("done_at")
