from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.sql import func

from seccheck.models.base import Base


class LeadScore(Base):
    """The persisted score of a lead (at most one row per lead)."""

    __tablename__ = "lead_scores"
    __table_args__ = (
        CheckConstraint(
            "score_total >= 0 AND score_total <= 100", name="ck_lead_scores_total"
        ),
        CheckConstraint(
            "risk_level IN ('low', 'medium', 'high')", name="ck_lead_scores_risk"
        ),
    )

    id = Column(String(36), primary_key=True)
    lead_id = Column(
        String(36),
        ForeignKey("leads.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    score_vpn = Column(Float, nullable=False)
    score_web = Column(Float, nullable=False)
    score_awareness = Column(Float, nullable=False)
    score_total = Column(Integer, nullable=False)
    risk_level = Column(String(10), nullable=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(DateTime(timezone=True), server_default=func.now())
