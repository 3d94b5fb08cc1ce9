from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, text
from sqlalchemy.sql import func

from seccheck.models.base import Base


class Lead(Base):
    """A questionnaire submission: company and contact data plus lifecycle.

    Consent flags are stored as 1/0.  ``done_at`` is set when the lead is
    marked ``done`` and cleared when it is reopened.
    """

    __tablename__ = "leads"
    __table_args__ = (
        CheckConstraint("status IN ('new', 'done')", name="ck_leads_status"),
        Index("ix_leads_created_at", "created_at"),
        Index("ix_leads_status", "status"),
    )

    id = Column(String(36), primary_key=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(DateTime(timezone=True), server_default=func.now())
    language = Column(String(5), nullable=False, server_default="de")
    company_name = Column(String(255), nullable=False)
    contact_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50))
    employee_range = Column(String(50))
    firewall_vendor = Column(String(100))
    vpn_technology = Column(String(100))
    zero_trust_vendor = Column(String(100))
    consent_contact = Column(Integer, nullable=False, server_default=text("0"))
    consent_tracking = Column(Integer, nullable=False, server_default=text("0"))
    discount_opt_in = Column(Integer, nullable=False, server_default=text("0"))
    source = Column(String(50))
    status = Column(String(20), nullable=False, server_default="new")
    done_at = Column(DateTime(timezone=True))
