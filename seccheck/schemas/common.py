from enum import Enum
from pydantic import BaseModel


class LeadStatus(str, Enum):
    new = "new"
    done = "done"


class RiskLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class Language(str, Enum):
    de = "de"
    en = "en"
    fr = "fr"


class TypeClass(str, Enum):
    """Storage class of a column, used to pick NOT NULL fallbacks."""

    integer = "integer"
    real = "real"
    text = "text"
    blob = "blob"


class DiscountFilter(str, Enum):
    all = "all"
    yes = "yes"
    no = "no"


class WriteStatus(str, Enum):
    """Outcome of a best-effort (auxiliary) write."""

    persisted = "persisted"
    partial = "partial"
    skipped = "skipped"
    failed = "failed"


class ScoreSource(str, Enum):
    persisted = "persisted"
    computed = "computed"


class SuccessResponse(BaseModel):
    """Generic success response base."""

    success: bool = True
