"""Lead-specific Pydantic schemas (submission, records, read models)."""

from datetime import date, datetime
from typing import Dict, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    model_validator,
)
from typing_extensions import Self

from seccheck.schemas.common import (
    LeadStatus,
    RiskLevel,
    ScoreSource,
    SuccessResponse,
    WriteStatus,
)
from seccheck.schemas.score import ScoreResult


# ---------------------------------------------------------------------------
# Input schemas
# ---------------------------------------------------------------------------


class LeadSubmission(BaseModel):
    """Contact and company data submitted with a questionnaire.

    Unknown keys are kept (``extra="allow"``): a deployment whose
    ``leads`` table has an extra column receives the value of the
    same-named key.  Legacy spellings of the core fields are accepted as
    aliases.
    """

    model_config = ConfigDict(
        extra="allow", populate_by_name=True, str_strip_whitespace=True
    )

    company_name: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("company_name", "company", "firma"),
    )
    contact_name: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("contact_name", "contact", "ansprechpartner"),
    )
    email: EmailStr = Field(
        ..., validation_alias=AliasChoices("email", "email_address")
    )
    phone: Optional[str] = Field(
        None, validation_alias=AliasChoices("phone", "telefon")
    )
    employee_range: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "employee_range", "employees", "mitarbeiteranzahl"
        ),
    )
    firewall_vendor: Optional[str] = Field(
        None, validation_alias=AliasChoices("firewall_vendor", "firewall")
    )
    vpn_technology: Optional[str] = Field(
        None, validation_alias=AliasChoices("vpn_technology", "vpn_tech")
    )
    zero_trust_vendor: Optional[str] = Field(
        None, validation_alias=AliasChoices("zero_trust_vendor", "zero_trust")
    )
    language: Optional[str] = Field(
        None, validation_alias=AliasChoices("language", "lang", "locale")
    )
    consent_contact: bool = False
    consent_tracking: bool = False
    discount_opt_in: bool = Field(
        False, validation_alias=AliasChoices("discount_opt_in", "discount")
    )
    source: str = "security-check"


class LeadFilters(BaseModel):
    """Listing filters; every field is optional and they combine with AND."""

    date_from: Optional[date] = None
    date_to: Optional[date] = None
    status: Optional[LeadStatus] = None
    risk: Optional[RiskLevel] = None
    discount: Optional[bool] = None

    @model_validator(mode="after")
    def validate_date_range(self) -> Self:
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError(
                f"date_from ({self.date_from}) must not be after "
                f"date_to ({self.date_to})"
            )
        return self


class StatusUpdate(BaseModel):
    """Request body for POST /api/v1/leads/{lead_id}/status.

    ``status`` is a plain string: values outside
    ``LeadStatus`` are rejected by the lifecycle service, not coerced.
    """

    status: str


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


class LeadRecord(BaseModel):
    """A lead row normalised onto canonical field names.

    Columns a deployment lacks stay ``None``; columns this model does not
    know about are carried as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    created_at: Optional[datetime] = None
    language: Optional[str] = None
    company_name: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    employee_range: Optional[str] = None
    firewall_vendor: Optional[str] = None
    vpn_technology: Optional[str] = None
    zero_trust_vendor: Optional[str] = None
    source: Optional[str] = None
    consent_contact: Optional[bool] = None
    consent_tracking: Optional[bool] = None
    discount_opt_in: Optional[bool] = None
    status: str = LeadStatus.new.value
    completed_at: Optional[datetime] = None


class LeadSummary(LeadRecord):
    """One row of the admin listing: the lead plus its resolved score."""

    score_total: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    score_source: ScoreSource


class LeadDetail(BaseModel):
    """Response body for GET /api/v1/leads/{lead_id}."""

    lead: LeadRecord
    answers: Dict[str, str] = Field(default_factory=dict)
    score: ScoreResult
    score_source: ScoreSource


class ResultLead(BaseModel):
    """The PII-free slice of a lead shown on the public result page."""

    id: str
    created_at: Optional[datetime] = None
    language: Optional[str] = None
    company_name: Optional[str] = None
    employee_range: Optional[str] = None
    firewall_vendor: Optional[str] = None
    vpn_technology: Optional[str] = None
    zero_trust_vendor: Optional[str] = None


class ResultView(BaseModel):
    """Response body for GET /api/v1/result/{lead_id}."""

    lead: ResultLead
    answers: Dict[str, str] = Field(default_factory=dict)
    score: ScoreResult


# ---------------------------------------------------------------------------
# Write outcomes
# ---------------------------------------------------------------------------


class AuxiliaryWrite(BaseModel):
    """Outcome of a best-effort write (answers or score).

    ``persisted`` means every row landed; anything else means the lead was
    stored but this part of the submission was partially or entirely
    dropped.
    """

    target: str
    status: WriteStatus
    written: int = 0
    failed: int = 0
    reason: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.status != WriteStatus.persisted


class SubmissionResult(BaseModel):
    """Everything the intake service knows after a submission."""

    lead_id: str
    score: ScoreResult
    answers_write: AuxiliaryWrite
    score_write: AuxiliaryWrite

    @property
    def degraded(self) -> bool:
        return self.answers_write.degraded or self.score_write.degraded


class PurgeCounts(BaseModel):
    leads: int = 0
    answers: int = 0
    scores: int = 0


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class SubmitResponse(SuccessResponse):
    """Response body returned after a successful submission."""

    lead_id: str
    persistence: str = Field(..., pattern="^(full|degraded)$")

    @classmethod
    def from_result(cls, result: SubmissionResult) -> "SubmitResponse":
        return cls(
            lead_id=result.lead_id,
            persistence="degraded" if result.degraded else "full",
        )


class StatusUpdateResponse(SuccessResponse):
    lead_id: str
    status: LeadStatus


class PurgeResponse(SuccessResponse):
    deleted: PurgeCounts

