"""Pydantic schemas package – re-exports for convenience."""

# Common enums
from seccheck.schemas.common import (
    LeadStatus as LeadStatus,
    RiskLevel as RiskLevel,
    Language as Language,
    TypeClass as TypeClass,
    DiscountFilter as DiscountFilter,
    WriteStatus as WriteStatus,
    ScoreSource as ScoreSource,
    SuccessResponse as SuccessResponse,
)

# Score schemas
from seccheck.schemas.score import (
    ScoreResult as ScoreResult,
    ScoreRequest as ScoreRequest,
    ScoreResponse as ScoreResponse,
)

# Capability map
from seccheck.schemas.capability import (
    ColumnCapability as ColumnCapability,
    TableCapabilities as TableCapabilities,
)

# Lead schemas
from seccheck.schemas.lead import (
    LeadSubmission as LeadSubmission,
    LeadFilters as LeadFilters,
    StatusUpdate as StatusUpdate,
    LeadRecord as LeadRecord,
    LeadSummary as LeadSummary,
    LeadDetail as LeadDetail,
    ResultLead as ResultLead,
    ResultView as ResultView,
    AuxiliaryWrite as AuxiliaryWrite,
    SubmissionResult as SubmissionResult,
    PurgeCounts as PurgeCounts,
    SubmitResponse as SubmitResponse,
    StatusUpdateResponse as StatusUpdateResponse,
    PurgeResponse as PurgeResponse,
)
