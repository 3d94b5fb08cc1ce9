from seccheck.models.base import Base
from seccheck.models.lead import Lead
from seccheck.models.answer import LeadAnswer
from seccheck.models.score import LeadScore

__all__ = [
    "Base",
    "Lead",
    "LeadAnswer",
    "LeadScore",
]
