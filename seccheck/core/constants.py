from typing import Dict, FrozenSet, List, Tuple

LEAD_STATUSES: FrozenSet[str] = frozenset({"new", "done"})

INITIAL_STATUS: str = "new"

# Both directions are legal; re-setting the current status is a no-op
ALLOWED_TRANSITIONS: Dict[str, List[str]] = {
    "new": ["new", "done"],
    "done": ["done", "new"],
}

RISK_LEVELS: FrozenSet[str] = frozenset({"low", "medium", "high"})

# Sub-score caps; their sum is the denominator of the percentage total
SCORE_CAP_VPN: float = 2.0
SCORE_CAP_WEB: float = 3.0
SCORE_CAP_AWARENESS: float = 2.0
SCORE_CAP_TOTAL: float = SCORE_CAP_VPN + SCORE_CAP_WEB + SCORE_CAP_AWARENESS

# Risk thresholds on score_total (percentage)
RISK_LOW_MIN_TOTAL: int = 75
RISK_MEDIUM_MIN_TOTAL: int = 40

# ---------------------------------------------------------------------------
# Column-name tolerance
# ---------------------------------------------------------------------------

LEAD_ID_COLUMNS: Tuple[str, ...] = ("id", "lead_id")

# Legacy spellings of the creation timestamp, most canonical first
CREATED_AT_COLUMNS: Tuple[str, ...] = (
    "created_at",
    "createdAt",
    "created",
    "submitted_at",
)

COMPLETED_AT_COLUMNS: Tuple[str, ...] = ("done_at", "completed_at")

UPDATED_AT_COLUMNS: Tuple[str, ...] = ("updated_at", "updated")

# Canonical lead attribute -> column names seen across deployments
LEAD_ATTRIBUTE_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "company_name": ("company_name", "company", "firma"),
    "contact_name": ("contact_name", "contact", "ansprechpartner"),
    "email": ("email", "email_address"),
    "phone": ("phone", "telefon"),
    "employee_range": ("employee_range", "employees", "mitarbeiteranzahl"),
    "firewall_vendor": ("firewall_vendor", "firewall"),
    "vpn_technology": ("vpn_technology", "vpn_tech"),
    "zero_trust_vendor": ("zero_trust_vendor", "zero_trust"),
    "consent_contact": ("consent_contact",),
    "consent_tracking": ("consent_tracking",),
    "discount_opt_in": ("discount_opt_in", "discount"),
    "source": ("source",),
}

# Tri-state consent flags: stored as 1/0, read back as bool
CONSENT_FLAGS: Tuple[str, ...] = (
    "consent_contact",
    "consent_tracking",
    "discount_opt_in",
)

# Canonical ScoreResult field -> column names seen across deployments
SCORE_FIELD_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "score_vpn": ("score_vpn", "vpn_score"),
    "score_web": ("score_web", "web_score"),
    "score_awareness": ("score_awareness", "awareness_score"),
    "score_total": ("score_total", "total_score", "percent"),
    "risk_level": ("risk_level", "rating"),
}

ANSWER_KEY_COLUMN: str = "question_key"
ANSWER_VALUE_COLUMN: str = "answer_value"
ANSWER_LEAD_COLUMN: str = "lead_id"
SCORE_LEAD_COLUMN: str = "lead_id"

# Assumed shape of the leads table when introspection itself fails
MINIMUM_LEAD_COLUMNS: Tuple[str, ...] = (
    "id",
    "created_at",
    "company_name",
    "contact_name",
    "email",
    "status",
)
