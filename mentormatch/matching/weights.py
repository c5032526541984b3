"""Priority-to-weight allocation for scored factors."""

from enum import Enum

from mentormatch.config import WEIGHT_POLICY
from mentormatch.schemas.factor import Factor

# Weights for the first three ranked factors; the rest share TAIL_WEIGHT
RANKED_SLOT_WEIGHTS = (0.35, 0.25, 0.10)
TAIL_WEIGHT = 0.30

# Used when the mentee has not ranked any factor
FALLBACK_WEIGHTS = {Factor.INDUSTRY: 0.40, Factor.ROLE: 0.30}
FALLBACK_REST_WEIGHT = 0.30


class WeightPolicy(str, Enum):
    """How the empty-order fallback treats unused industry/role share.

    LEGACY leaves it unallocated, so the weights can sum to less than 1.0.
    NORMALIZED rescales the fallback weights to sum to 1.0.
    """

    LEGACY = "legacy"
    NORMALIZED = "normalized"


def resolve_policy(policy: "WeightPolicy | str | None" = None) -> WeightPolicy:
    """Return the requested policy, defaulting to WEIGHT_POLICY from config."""
    if policy is None:
        policy = WEIGHT_POLICY
    return WeightPolicy(policy)


def _normalize(weights: dict[Factor, float]) -> dict[Factor, float]:
    total = sum(weights.values())
    if total <= 0:
        return weights
    return {factor: weight / total for factor, weight in weights.items()}


def _ranked_weights(
    factor_order: list[Factor],
    scored: set[Factor],
) -> dict[Factor, float]:
    weights: dict[Factor, float] = {}

    for factor, slot_weight in zip(factor_order, RANKED_SLOT_WEIGHTS):
        if factor in scored:
            weights[factor] = slot_weight

    tail = [f for f in factor_order[len(RANKED_SLOT_WEIGHTS):] if f in scored]
    if tail:
        share = TAIL_WEIGHT / len(tail)
        for factor in tail:
            weights[factor] = share
    else:
        # Nobody ranked 4th or lower scored: spread the tail share over every scored factor
        share = TAIL_WEIGHT / len(scored)
        for factor in scored:
            weights[factor] = weights.get(factor, 0.0) + share

    # A top-three slot whose factor did not score leaves a gap; close it
    return _normalize(weights)


def _fallback_weights(scored: set[Factor], policy: WeightPolicy) -> dict[Factor, float]:
    weights = {factor: w for factor, w in FALLBACK_WEIGHTS.items() if factor in scored}

    rest = [f for f in Factor if f in scored and f not in FALLBACK_WEIGHTS]
    if rest:
        share = FALLBACK_REST_WEIGHT / len(rest)
        for factor in rest:
            weights[factor] = share

    if policy is WeightPolicy.NORMALIZED:
        return _normalize(weights)
    return weights


def allocate_weights(
    factor_order: list[Factor],
    scored: set[Factor] | list[Factor],
    policy: WeightPolicy | str | None = None,
) -> dict[Factor, float]:
    """Allocate weights to the factors that produced a score.

    Ranked path: 0.35 / 0.25 / 0.10 to the first three ranked factors that
    scored, 0.30 split across lower-ranked scored factors, or spread across
    all scored factors when none of those scored.

    Empty order: industry 0.40, role 0.30, every other scored factor
    splits 0.30.

    Args:
        factor_order: Mentee's ranked factors, most important first.
        scored: Factors for which both sides supplied a value.
        policy: Empty-order fallback policy (None uses config).

    Returns:
        Mapping of factor to weight. Empty when nothing scored.
    """
    scored = set(scored)
    if not scored:
        return {}

    if factor_order:
        return _ranked_weights(list(factor_order), scored)
    return _fallback_weights(scored, resolve_policy(policy))
