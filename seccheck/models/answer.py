from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.sql import func

from seccheck.models.base import Base


class LeadAnswer(Base):
    """One questionnaire answer, stored as text."""

    __tablename__ = "lead_answers"
    __table_args__ = (Index("ix_lead_answers_lead_id", "lead_id"),)

    id = Column(String(36), primary_key=True)
    lead_id = Column(
        String(36), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False
    )
    question_key = Column(String(100), nullable=False)
    answer_value = Column(Text, nullable=False, server_default="")
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
