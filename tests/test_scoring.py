import itertools

import pytest
from pydantic import ValidationError

from seccheck.core.constants import (
    SCORE_CAP_AWARENESS,
    SCORE_CAP_TOTAL,
    SCORE_CAP_VPN,
    SCORE_CAP_WEB,
)
from seccheck.schemas.common import RiskLevel
from seccheck.schemas.score import ScoreResult
from seccheck.services.scoring import (
    EMPTY_SCORE,
    classify_risk,
    flatten_answer_value,
    normalize_answers,
    percentage_total,
    round_half_up,
    score,
)


class TestEmptyAndUnknownInput:
    def test_empty_answer_set_scores_zero_high_risk(self):
        result = score({})
        assert result.score_vpn == 0
        assert result.score_web == 0
        assert result.score_awareness == 0
        assert result.score_total == 0
        assert result.risk_level == RiskLevel.high

    def test_none_is_treated_as_empty(self):
        assert score(None) == EMPTY_SCORE

    def test_unknown_keys_contribute_nothing(self):
        assert score({"favourite_colour": "blue", "pptp": "yes"}) == EMPTY_SCORE


class TestVpnSubScore:
    def test_best_vpn_answers_are_capped_at_two(self):
        """0.5 + 0.75 + 0.75 + 0.25 + 0.15 = 2.4 is clamped to the cap."""
        result = score(
            {
                "vpn_in_use": "yes",
                "vpn_technology": "wireguard",
                "vpn_solution": "zero_trust",
                "remote_access_satisfaction": "satisfied",
                "vpn_users": "less_than_10",
            }
        )
        assert result.score_vpn == 2.0

    def test_middle_vpn_answers(self):
        """0.5 + 0.35 + 0.45 + 0.10 + 0.10 = 1.5"""
        result = score(
            {
                "vpn_in_use": "yes",
                "vpn_technology": "openvpn",
                "vpn_solution": "firewall_vpn",
                "remote_access_satisfaction": "neutral",
                "vpn_users": "10_49",
            }
        )
        assert result.score_vpn == 1.5

    def test_unlisted_values_get_the_other_bonus(self):
        """other technology 0.05 + other solution 0.05 + other users 0.05"""
        result = score(
            {
                "vpn_technology": "pptp",
                "vpn_solution": "homegrown",
                "vpn_users": "10_to_50",
            }
        )
        assert result.score_vpn == 0.15

    def test_very_satisfied_is_not_a_scored_value(self):
        assert score({"remote_access_satisfaction": "very_satisfied"}).score_vpn == 0


class TestWebSubScore:
    def test_incident_penalty_without_exposure_penalty(self):
        """0.7 + 2.2 - 0.7: the exposure penalty needs protection ``none``."""
        result = score(
            {
                "hosting_type": "cloud",
                "web_protection": "waf_ddos",
                "critical_processes_on_website": "yes",
                "security_incidents": "yes",
            }
        )
        assert result.score_web == 2.2

    def test_exposed_without_protection_clamps_to_zero(self):
        """0.25 + 0 - 0.8 - 0.7 is negative and clamps to 0."""
        result = score(
            {
                "hosting_type": "on_premise",
                "web_protection": "none",
                "critical_processes_on_website": "yes",
                "security_incidents": "yes",
            }
        )
        assert result.score_web == 0.0

    @pytest.mark.parametrize(
        "protection,expected",
        [
            ("none", 0.5),
            ("basic", 1.25),
            ("waf", 2.1),
            ("waf+ddos", 2.7),
            ("something_else", 1.5),
        ],
    )
    def test_protection_levels_on_managed_hosting(self, protection, expected):
        result = score({"hosting_type": "managed_hosting", "web_protection": protection})
        assert result.score_web == expected


class TestAwarenessSubScore:
    def test_full_awareness(self):
        result = score(
            {
                "awareness_training": "yes",
                "infrastructure_resilience": "high",
                "financial_damage_risk": "less_than_5k",
            }
        )
        assert result.score_awareness == 2.0

    def test_partial_awareness(self):
        result = score(
            {
                "awareness_training": "partially",
                "infrastructure_resilience": "medium",
                "financial_damage_risk": "5k_to_25k",
            }
        )
        assert result.score_awareness == 1.0


class TestTotalsAndRisk:
    def test_strong_answers_are_low_risk(self, strong_answers):
        """(2.0 + 2.9 + 2.0) / 7 = 98.57 % -> 99"""
        result = score(strong_answers)
        assert result.score_web == 2.9
        assert result.score_total == 99
        assert result.risk_level == RiskLevel.low

    def test_middle_answers_are_medium_risk(self):
        """(1.5 + 1.25 + 1.0) / 7 = 53.57 % -> 54"""
        result = score(
            {
                "vpn_in_use": "yes",
                "vpn_technology": "openvpn",
                "vpn_solution": "firewall_vpn",
                "remote_access_satisfaction": "neutral",
                "vpn_users": "10_49",
                "hosting_type": "managed_hosting",
                "web_protection": "basic",
                "awareness_training": "partially",
                "infrastructure_resilience": "medium",
                "financial_damage_risk": "5k_to_25k",
            }
        )
        assert result.score_total == 54
        assert result.risk_level == RiskLevel.medium

    def test_weak_answers_are_high_risk(self, weak_answers):
        result = score(weak_answers)
        assert result.score_total == 0
        assert result.risk_level == RiskLevel.high

    @pytest.mark.parametrize(
        "total,level",
        [
            (100, RiskLevel.low),
            (75, RiskLevel.low),
            (74, RiskLevel.medium),
            (40, RiskLevel.medium),
            (39, RiskLevel.high),
            (0, RiskLevel.high),
        ],
    )
    def test_classify_risk_thresholds(self, total, level):
        assert classify_risk(total) == level

    def test_denominator_is_the_sum_of_caps(self):
        assert SCORE_CAP_TOTAL == SCORE_CAP_VPN + SCORE_CAP_WEB + SCORE_CAP_AWARENESS == 7
        assert percentage_total(SCORE_CAP_VPN, SCORE_CAP_WEB, SCORE_CAP_AWARENESS) == 100

    def test_identities_hold_across_answer_combinations(self):
        options = {
            "vpn_in_use": ["yes", "no", ""],
            "vpn_technology": ["wireguard", "sslvpn", "pptp", ""],
            "hosting_type": ["saas", "managed_hosting", "on_premise"],
            "web_protection": ["none", "basic", "waf", "waf_ddos", "custom"],
            "security_incidents": ["yes", "no"],
            "awareness_training": ["yes", "partially", "no"],
            "financial_damage_risk": ["less_than_5k", "5k_to_25k", "over_25k"],
        }
        keys = list(options)
        for combination in itertools.product(*(options[k] for k in keys)):
            result = score(dict(zip(keys, combination)))
            assert 0 <= result.score_vpn <= SCORE_CAP_VPN
            assert 0 <= result.score_web <= SCORE_CAP_WEB
            assert 0 <= result.score_awareness <= SCORE_CAP_AWARENESS
            assert result.score_total == percentage_total(
                result.score_vpn, result.score_web, result.score_awareness
            )
            assert result.risk_level == classify_risk(result.score_total)


class TestNormalisation:
    def test_values_are_compared_case_and_whitespace_insensitively(self, strong_answers):
        shouted = {k: f"  {v.upper()} " for k, v in strong_answers.items()}
        assert score(shouted) == score(strong_answers)

    def test_single_item_list_scores_like_the_plain_value(self):
        assert score({"vpn_technology": ["wireguard"]}) == score(
            {"vpn_technology": "wireguard"}
        )

    def test_multi_item_list_is_an_other_value(self):
        assert score({"vpn_technology": ["wireguard", "ipsec"]}).score_vpn == 0.05

    def test_flatten_answer_value(self):
        assert flatten_answer_value(["a", "b", None]) == "a, b"
        assert flatten_answer_value(None) == ""
        assert flatten_answer_value(True) == "true"
        assert flatten_answer_value(12) == "12"
        assert flatten_answer_value("  x ") == "x"
        assert flatten_answer_value(["a", "b"], delimiter="|") == "a|b"

    def test_normalize_answers_keeps_order_and_drops_blank_keys(self):
        normalized = normalize_answers({"b": 1, " ": "x", "a": ["p", "q"]})
        assert list(normalized.items()) == [("b", "1"), ("a", "p, q")]

    def test_scoring_is_idempotent(self, strong_answers):
        assert score(strong_answers) == score(strong_answers)
        assert score(strong_answers).model_dump() == score(dict(strong_answers)).model_dump()


class TestRounding:
    def test_round_half_up_differs_from_bankers_rounding(self):
        assert round_half_up(0.125, 2) == 0.13
        assert round_half_up(2.5) == 3
        assert round(2.5) == 2

    def test_round_half_up_plain_values(self):
        assert round_half_up(1.234, 2) == 1.23
        assert round_half_up(98.57142857) == 99


class TestScoreResultValidation:
    def test_rejects_total_that_does_not_match_sub_scores(self):
        with pytest.raises(ValidationError):
            ScoreResult(
                score_vpn=2.0,
                score_web=3.0,
                score_awareness=2.0,
                score_total=50,
                risk_level="medium",
            )

    def test_rejects_risk_that_does_not_match_total(self):
        with pytest.raises(ValidationError):
            ScoreResult(
                score_vpn=2.0,
                score_web=3.0,
                score_awareness=2.0,
                score_total=100,
                risk_level="high",
            )

    def test_rejects_out_of_range_sub_score(self):
        with pytest.raises(ValidationError):
            ScoreResult(
                score_vpn=2.5,
                score_web=0,
                score_awareness=0,
                score_total=36,
                risk_level="high",
            )

    def test_rejects_unrounded_sub_score(self):
        with pytest.raises(ValidationError):
            ScoreResult(
                score_vpn=0.333,
                score_web=0,
                score_awareness=0,
                score_total=5,
                risk_level="high",
            )

    def test_accepts_consistent_values(self):
        result = ScoreResult(
            score_vpn=1.5,
            score_web=1.25,
            score_awareness=1.0,
            score_total=54,
            risk_level="medium",
        )
        assert result.risk_level == RiskLevel.medium

    def test_result_is_frozen(self):
        with pytest.raises(ValidationError):
            EMPTY_SCORE.score_total = 10
