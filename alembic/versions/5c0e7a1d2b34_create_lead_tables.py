"""create leads, lead_answers and lead_scores

Revision ID: 5c0e7a1d2b34
Revises:
Create Date: 2026-09-28 10:00:00.000000

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "5c0e7a1d2b34"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "leads",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column("language", sa.String(length=5), nullable=False, server_default="de"),
        sa.Column("company_name", sa.String(length=255), nullable=False),
        sa.Column("contact_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50)),
        sa.Column("employee_range", sa.String(length=50)),
        sa.Column("firewall_vendor", sa.String(length=100)),
        sa.Column("vpn_technology", sa.String(length=100)),
        sa.Column("zero_trust_vendor", sa.String(length=100)),
        sa.Column(
            "consent_contact", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "consent_tracking", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "discount_opt_in", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("source", sa.String(length=50)),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="new"),
        sa.CheckConstraint("status IN ('new', 'done')", name="ck_leads_status"),
    )
    op.create_index("ix_leads_created_at", "leads", ["created_at"])
    op.create_index("ix_leads_status", "leads", ["status"])

    op.create_table(
        "lead_answers",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "lead_id",
            sa.String(length=36),
            sa.ForeignKey("leads.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("question_key", sa.String(length=100), nullable=False),
        sa.Column("answer_value", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_lead_answers_lead_id", "lead_answers", ["lead_id"])

    op.create_table(
        "lead_scores",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "lead_id",
            sa.String(length=36),
            sa.ForeignKey("leads.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("score_vpn", sa.Float(), nullable=False),
        sa.Column("score_web", sa.Float(), nullable=False),
        sa.Column("score_awareness", sa.Float(), nullable=False),
        sa.Column("score_total", sa.Integer(), nullable=False),
        sa.Column("risk_level", sa.String(length=10), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.CheckConstraint(
            "score_total >= 0 AND score_total <= 100", name="ck_lead_scores_total"
        ),
        sa.CheckConstraint(
            "risk_level IN ('low', 'medium', 'high')", name="ck_lead_scores_risk"
        ),
    )


def downgrade() -> None:
    op.drop_table("lead_scores")
    op.drop_index("ix_lead_answers_lead_id", table_name="lead_answers")
    op.drop_table("lead_answers")
    op.drop_index("ix_leads_status", table_name="leads")
    op.drop_index("ix_leads_created_at", table_name="leads")
    op.drop_table("leads")
