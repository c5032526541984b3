"""Tests for score composition."""

import pytest

from mentormatch.matching.scorer import (
    BlendMode,
    compute_score,
    format_breakdown,
    round_half_up,
    tag_overlap,
)
from mentormatch.matching.weights import WeightPolicy
from mentormatch.schemas.factor import Factor
from tests.test_utils import make_scenario_a_pair, make_test_candidate, make_test_preference


class TestRoundHalfUp:
    def test_half_rounds_up(self):
        assert round_half_up(40.5) == 41
        assert round_half_up(2.5) == 3

    def test_below_half_rounds_down(self):
        assert round_half_up(40.49) == 40

    def test_float_noise(self):
        assert round_half_up(100 * (0.35 + 0.25 + 0.06 + 0.30)) == 96


class TestTagOverlap:
    def test_case_insensitive(self):
        assert tag_overlap(["Python", "Leadership"], ["python", "LEADERSHIP"]) == 1.0

    def test_share_of_seeker_tags(self):
        assert tag_overlap(["a", "b", "c", "d"], ["b", "d", "z"]) == pytest.approx(0.5)

    def test_empty_side_is_zero(self):
        assert tag_overlap([], ["python"]) == 0.0
        assert tag_overlap(["python"], []) == 0.0


class TestComputeScore:
    def test_ranked_scenario(self):
        preference, candidate = make_scenario_a_pair()

        result = compute_score(preference, candidate)

        assert result.preference_score == 96
        assert result.score == 96
        assert result.tag_score == 0.0

    def test_legacy_fallback_scenario(self):
        preference = make_test_preference(industry="Finance", role="Teacher")
        candidate = make_test_candidate(industry="Finance", current_role="Nurse")

        result = compute_score(preference, candidate, policy=WeightPolicy.LEGACY)

        assert result.score == 40

    def test_normalized_fallback_scenario(self):
        preference = make_test_preference(industry="Finance", role="Teacher")
        candidate = make_test_candidate(industry="Finance", current_role="Nurse")

        result = compute_score(preference, candidate, policy=WeightPolicy.NORMALIZED)

        # 0.40 / 0.70 of the weight on a perfect industry match
        assert result.score == 57

    def test_nothing_comparable_scores_zero(self):
        result = compute_score(make_test_preference(), make_test_candidate())

        assert result.score == 0
        assert result.breakdown == "No comparable factors | Total: 0%"
        assert len(result.trace.absent_factors) == len(Factor)

    def test_score_is_bounded(self):
        preference = make_test_preference(
            factor_order=["industry", "role"],
            industry="Finance",
            role="Analyst",
            tags=["a", "b"],
        )
        candidate = make_test_candidate(
            industry="Finance", current_role="Analyst", tags=["A", "B"]
        )

        result = compute_score(preference, candidate, blend=BlendMode.TAG_BLENDED)

        # 30 from tags + 0.7 * 100
        assert result.score == 100
        assert result.tag_score == pytest.approx(30.0)

    def test_tag_blend(self):
        preference, candidate = make_scenario_a_pair()
        preference = preference.model_copy(update={"tags": ["python", "audit"]})
        candidate = candidate.model_copy(update={"tags": ["Python", "tax"]})

        result = compute_score(preference, candidate, blend=BlendMode.TAG_BLENDED)

        # 0.5 * 30 + 0.7 * 96 = 82.2
        assert result.preference_score == 96
        assert result.tag_score == pytest.approx(15.0)
        assert result.score == 82

    def test_tags_ignored_in_preference_only_mode(self):
        preference = make_test_preference(industry="Finance", tags=["python"])
        candidate = make_test_candidate(industry="Retail", tags=["python"])

        result = compute_score(preference, candidate)

        assert result.score == 0
        assert result.tag_score == 0.0

    def test_tags_alone_can_score_in_blended_mode(self):
        preference = make_test_preference(tags=["python"])
        candidate = make_test_candidate(tags=["python"])

        result = compute_score(preference, candidate, blend=BlendMode.TAG_BLENDED)

        assert result.preference_score == 0
        assert result.score == 30

    def test_trace_records_contributions(self):
        preference, candidate = make_scenario_a_pair()

        trace = compute_score(preference, candidate).trace

        assert [c.factor for c in trace.contributions] == [
            Factor.INDUSTRY,
            Factor.ROLE,
            Factor.SENIORITY,
            Factor.EXPERIENCE,
        ]
        seniority = trace.contributions[2]
        assert seniority.raw_score == pytest.approx(0.6)
        assert seniority.contribution == pytest.approx(0.06)
        assert sum(trace.weights.values()) == pytest.approx(1.0)
        assert Factor.AVAILABILITY in trace.absent_factors

    def test_deterministic(self):
        preference, candidate = make_scenario_a_pair()

        first = compute_score(preference, candidate)
        second = compute_score(preference, candidate)

        assert first == second


class TestFormatBreakdown:
    def test_lists_factors_and_total(self):
        preference, candidate = make_scenario_a_pair()

        breakdown = compute_score(preference, candidate).breakdown

        assert breakdown.startswith("Industry: 100% x 0.35 = 0.350")
        assert "Seniority: 60% x 0.10 = 0.060" in breakdown
        assert breakdown.endswith("Total: 96%")

    def test_tag_component_shown_when_blended(self):
        preference, candidate = make_scenario_a_pair()
        preference = preference.model_copy(update={"tags": ["python", "audit"]})
        candidate = candidate.model_copy(update={"tags": ["python"]})

        result = compute_score(preference, candidate, blend=BlendMode.TAG_BLENDED)

        assert "Tags: 50% (15.0)" in result.breakdown
        assert format_breakdown(result.trace, result.score, result.tag_score) == result.breakdown
