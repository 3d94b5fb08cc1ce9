"""Repository layer – all database access goes through here.

Repositories generate their statements from the live schema described by
``SchemaRepository`` so that the service layer never has to know which
columns a deployment has.
"""

from seccheck.repositories.schema_repository import SchemaRepository
from seccheck.repositories.lead_repository import LeadRepository
from seccheck.repositories.answer_repository import AnswerRepository
from seccheck.repositories.score_repository import ScoreRepository

__all__ = [
    "SchemaRepository",
    "LeadRepository",
    "AnswerRepository",
    "ScoreRepository",
]
