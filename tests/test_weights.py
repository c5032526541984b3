"""Tests for priority-to-weight allocation."""

from unittest.mock import patch

import pytest

from mentormatch.matching.weights import WeightPolicy, allocate_weights, resolve_policy
from mentormatch.schemas.factor import Factor

I, R, S, E = Factor.INDUSTRY, Factor.ROLE, Factor.SENIORITY, Factor.EXPERIENCE
C, A = Factor.CULTURAL_BACKGROUND, Factor.AVAILABILITY


class TestRankedWeights:
    def test_slot_weights_with_single_tail_factor(self):
        weights = allocate_weights([I, R, S, E], {I, R, S, E})

        assert weights[I] == pytest.approx(0.35)
        assert weights[R] == pytest.approx(0.25)
        assert weights[S] == pytest.approx(0.10)
        assert weights[E] == pytest.approx(0.30)

    def test_tail_share_split_evenly(self):
        weights = allocate_weights([I, R, S, E, C], {I, R, S, E, C})

        assert weights[E] == pytest.approx(0.15)
        assert weights[C] == pytest.approx(0.15)

    def test_tail_spread_over_all_scored_when_no_tail_scored(self):
        weights = allocate_weights([I, R, S], {I, R, S})

        assert weights[I] == pytest.approx(0.45)
        assert weights[R] == pytest.approx(0.35)
        assert weights[S] == pytest.approx(0.20)

    def test_unscored_top_slot_is_renormalized(self):
        # Role did not score; its 0.25 slot is closed by rescaling
        weights = allocate_weights([I, R, S, E], {I, S, E})

        assert R not in weights
        assert sum(weights.values()) == pytest.approx(1.0)
        assert weights[I] == pytest.approx(0.35 / 0.75)

    def test_unranked_scored_factor_gets_tail_share_only(self):
        # Availability is scored but not ranked, and nothing ranked 4th+ scored
        weights = allocate_weights([I, R], {I, R, A})

        assert sum(weights.values()) == pytest.approx(1.0)
        assert weights[A] == pytest.approx(0.10 / 0.90)

    def test_weights_always_sum_to_one(self):
        for scored in ({I}, {I, R}, {S, E, C, A}, {I, R, S, E, C, A}):
            weights = allocate_weights([I, R, S, E, C, A], scored)
            assert sum(weights.values()) == pytest.approx(1.0)

    def test_only_scored_factors_get_weight(self):
        weights = allocate_weights([I, R, S, E], {R})

        assert set(weights) == {R}
        assert weights[R] == pytest.approx(1.0)


class TestFallbackWeights:
    def test_industry_and_role_fixed(self):
        weights = allocate_weights([], {I, R, S, E}, policy=WeightPolicy.LEGACY)

        assert weights[I] == pytest.approx(0.40)
        assert weights[R] == pytest.approx(0.30)
        assert weights[S] == pytest.approx(0.15)
        assert weights[E] == pytest.approx(0.15)

    def test_legacy_leaves_missing_share_unallocated(self):
        weights = allocate_weights([], {I, R}, policy=WeightPolicy.LEGACY)

        assert weights == {I: pytest.approx(0.40), R: pytest.approx(0.30)}
        assert sum(weights.values()) == pytest.approx(0.70)

    def test_normalized_rescales_to_one(self):
        weights = allocate_weights([], {I, R}, policy=WeightPolicy.NORMALIZED)

        assert sum(weights.values()) == pytest.approx(1.0)
        assert weights[I] == pytest.approx(0.40 / 0.70)

    def test_policy_accepts_string(self):
        weights = allocate_weights([], {I}, policy="normalized")

        assert weights[I] == pytest.approx(1.0)

    def test_nothing_scored_returns_empty(self):
        assert allocate_weights([], set()) == {}
        assert allocate_weights([I, R], set()) == {}


class TestResolvePolicy:
    def test_defaults_to_config(self):
        with patch("mentormatch.matching.weights.WEIGHT_POLICY", "normalized"):
            assert resolve_policy() is WeightPolicy.NORMALIZED

    def test_unknown_policy_raises(self):
        with pytest.raises(ValueError):
            resolve_policy("balanced")
