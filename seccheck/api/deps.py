"""API-layer dependency functions.

Re-exports all dependency factories from ``seccheck.dependencies`` so
that endpoint modules only need to import from ``seccheck.api.deps``.
"""

from seccheck.core.database import get_db
from seccheck.dependencies import (
    # Repository factories
    get_schema_repo,
    get_lead_repo,
    get_answer_repo,
    get_score_repo,
    # Service factories
    get_lead_intake_service,
    get_lead_query_service,
    get_lead_status_service,
    get_lead_admin_service,
    # Redis
    get_redis_client,
    get_cache_service,
)

__all__ = [
    "get_db",
    "get_schema_repo",
    "get_lead_repo",
    "get_answer_repo",
    "get_score_repo",
    "get_lead_intake_service",
    "get_lead_query_service",
    "get_lead_status_service",
    "get_lead_admin_service",
    "get_redis_client",
    "get_cache_service",
]
