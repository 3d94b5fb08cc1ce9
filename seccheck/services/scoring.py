"""
Questionnaire scoring engine.

Turns an AnswerSet (question key -> raw answer) into three bounded
sub-scores, a percentage total and a risk level:

  1. VPN / remote access      (cap 2.0)
  2. Web exposure             (cap 3.0)
  3. Awareness / resilience   (cap 2.0)
  4. Total = share of the summed caps, as an integer percentage
  5. Risk level from the total

Everything in this module is pure: no I/O, no shared state.  Unknown or
missing keys contribute nothing, so every mapping (including an empty one)
is a valid input.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Mapping, Optional

from seccheck.core.config import settings
from seccheck.core.constants import (
    RISK_LOW_MIN_TOTAL,
    RISK_MEDIUM_MIN_TOTAL,
    SCORE_CAP_AWARENESS,
    SCORE_CAP_TOTAL,
    SCORE_CAP_VPN,
    SCORE_CAP_WEB,
)
from seccheck.schemas.common import RiskLevel
from seccheck.schemas.score import ScoreResult


# ═══════════════════════════════════════════════════════════════
# Answer tables: value -> contribution
#   A value missing from a table falls back to the table's
#   "other" contribution when non-empty, 0 when empty.
# ═══════════════════════════════════════════════════════════════

VPN_IN_USE_BONUS: Dict[str, float] = {"yes": 0.5}

VPN_TECHNOLOGY_BONUS: Dict[str, float] = {
    "wireguard": 0.75,
    "ipsec": 0.75,
    "sslvpn": 0.35,
    "openvpn": 0.35,
}
VPN_TECHNOLOGY_OTHER = 0.05

VPN_SOLUTION_BONUS: Dict[str, float] = {
    "zero_trust": 0.75,
    "ztna": 0.75,
    "firewall_vpn": 0.45,
    "vpn_gateway": 0.45,
}
VPN_SOLUTION_OTHER = 0.05

SATISFACTION_BONUS: Dict[str, float] = {"satisfied": 0.25, "neutral": 0.10}

VPN_USERS_BONUS: Dict[str, float] = {"less_than_10": 0.15, "10_49": 0.10}
VPN_USERS_OTHER = 0.05

HOSTING_BONUS: Dict[str, float] = {
    "cloud": 0.7,
    "saas": 0.7,
    "managed_hosting": 0.5,
}
HOSTING_OTHER = 0.25

PROTECTION_BONUS: Dict[str, float] = {
    "none": 0.0,
    "basic": 0.75,
    "waf": 1.6,
    "waf_ddos": 2.2,
    "waf+ddos": 2.2,
}
PROTECTION_OTHER = 1.0

EXPOSED_WITHOUT_PROTECTION_PENALTY = 0.8
INCIDENT_PENALTY = 0.7

TRAINING_BONUS: Dict[str, float] = {"yes": 0.9, "partially": 0.45}
RESILIENCE_BONUS: Dict[str, float] = {"high": 0.7, "medium": 0.35}
FINANCIAL_DAMAGE_BONUS: Dict[str, float] = {"less_than_5k": 0.4, "5k_to_25k": 0.2}


# ═══════════════════════════════════════════════════════════════
# Numeric helpers
# ═══════════════════════════════════════════════════════════════

def round_half_up(value: float, places: int = 0) -> float:
    """Round half away from zero for positives (0.125 -> 0.13), unlike round()."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def percentage_total(score_vpn: float, score_web: float, score_awareness: float) -> int:
    """Integer percentage of the summed sub-scores against the summed caps."""
    raw = ((score_vpn + score_web + score_awareness) / SCORE_CAP_TOTAL) * 100
    return int(clamp(round_half_up(raw), 0, 100))


def classify_risk(score_total: int) -> RiskLevel:
    """Map a percentage total to a risk level.

    This is the only place the thresholds are applied; listings, filters,
    exports and result pages all go through it.
    """
    if score_total >= RISK_LOW_MIN_TOTAL:
        return RiskLevel.low
    if score_total >= RISK_MEDIUM_MIN_TOTAL:
        return RiskLevel.medium
    return RiskLevel.high


# ═══════════════════════════════════════════════════════════════
# Answer normalisation
# ═══════════════════════════════════════════════════════════════

def flatten_answer_value(value: Any, delimiter: Optional[str] = None) -> str:
    """Render one raw answer as the text that gets stored.

    Lists are joined with the configured delimiter, ``None`` becomes the
    empty string and booleans use their JSON spelling.
    """
    if delimiter is None:
        delimiter = settings.ANSWER_LIST_DELIMITER
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set, frozenset)):
        items = sorted(value, key=str) if isinstance(value, (set, frozenset)) else value
        return delimiter.join(flatten_answer_value(v, delimiter) for v in items if v is not None)
    return str(value).strip()


def normalize_answers(answers: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Flatten an AnswerSet to ``{question_key: text}`` preserving order.

    The same function feeds both storage and scoring, so scoring the
    in-flight answers and scoring the stored rows give identical results.
    """
    if not answers:
        return {}
    return {
        str(key).strip(): flatten_answer_value(value)
        for key, value in answers.items()
        if str(key).strip()
    }


def _lookup(value: str, table: Mapping[str, float], other: float = 0.0) -> float:
    if not value:
        return 0.0
    return table.get(value, other)


# ═══════════════════════════════════════════════════════════════
# Sub-scores
# ═══════════════════════════════════════════════════════════════

def score_vpn(get) -> float:
    vpn = 0.0
    vpn += _lookup(get("vpn_in_use"), VPN_IN_USE_BONUS)
    vpn += _lookup(get("vpn_technology"), VPN_TECHNOLOGY_BONUS, VPN_TECHNOLOGY_OTHER)
    vpn += _lookup(get("vpn_solution"), VPN_SOLUTION_BONUS, VPN_SOLUTION_OTHER)
    vpn += _lookup(get("remote_access_satisfaction"), SATISFACTION_BONUS)
    vpn += _lookup(get("vpn_users"), VPN_USERS_BONUS, VPN_USERS_OTHER)
    return clamp(round_half_up(vpn, 2), 0.0, SCORE_CAP_VPN)


def score_web(get) -> float:
    protection = get("web_protection")

    web = 0.0
    web += _lookup(get("hosting_type"), HOSTING_BONUS, HOSTING_OTHER)
    web += _lookup(protection, PROTECTION_BONUS, PROTECTION_OTHER)

    if get("critical_processes_on_website") == "yes" and protection == "none":
        web -= EXPOSED_WITHOUT_PROTECTION_PENALTY
    if get("security_incidents") == "yes":
        web -= INCIDENT_PENALTY

    return clamp(round_half_up(web, 2), 0.0, SCORE_CAP_WEB)


def score_awareness(get) -> float:
    aw = 0.0
    aw += _lookup(get("awareness_training"), TRAINING_BONUS)
    aw += _lookup(get("infrastructure_resilience"), RESILIENCE_BONUS)
    aw += _lookup(get("financial_damage_risk"), FINANCIAL_DAMAGE_BONUS)
    return clamp(round_half_up(aw, 2), 0.0, SCORE_CAP_AWARENESS)


# ═══════════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════════

def score(answers: Optional[Mapping[str, Any]] = None) -> ScoreResult:
    """Score an AnswerSet.  Total for any mapping, including ``{}``."""
    normalized = {
        key: value.lower() for key, value in normalize_answers(answers).items()
    }

    def get(key: str) -> str:
        return normalized.get(key, "")

    vpn = score_vpn(get)
    web = score_web(get)
    awareness = score_awareness(get)
    total = percentage_total(vpn, web, awareness)

    return ScoreResult(
        score_vpn=vpn,
        score_web=web,
        score_awareness=awareness,
        score_total=total,
        risk_level=classify_risk(total),
    )


EMPTY_SCORE: ScoreResult = score({})
