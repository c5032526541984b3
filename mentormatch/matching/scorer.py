"""Score composition for a mentee/mentor pair."""

import logging
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from mentormatch.config import PREFERENCE_BLEND_WEIGHT, TAG_SCORE_WEIGHT
from mentormatch.matching.factors import score_factors
from mentormatch.matching.weights import WeightPolicy, allocate_weights, resolve_policy
from mentormatch.schemas.candidate import CandidateProfile
from mentormatch.schemas.factor import Factor
from mentormatch.schemas.match import FactorContribution, ScoreResult, ScoreTrace
from mentormatch.schemas.preference import PreferenceProfile

logger = logging.getLogger(__name__)


class BlendMode(str, Enum):
    """Which components make up the final score.

    PREFERENCE_ONLY is used by the batch refresh; TAG_BLENDED by the
    real-time top-match lookup.
    """

    PREFERENCE_ONLY = "preference_only"
    TAG_BLENDED = "tag_blended"


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (40.5 -> 41)."""
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _clamp(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, value))


def tag_overlap(seeker_tags: list[str], candidate_tags: list[str]) -> float:
    """Share of the seeker's tags that the candidate also has (0-1).

    Comparison is case-insensitive. Returns 0 if either side has no tags.
    """
    seeker = {t.strip().lower() for t in seeker_tags if t and t.strip()}
    candidate = {t.strip().lower() for t in candidate_tags if t and t.strip()}
    if not seeker or not candidate:
        return 0.0
    return min(len(seeker & candidate) / len(seeker), 1.0)


def format_breakdown(trace: ScoreTrace, score: int, tag_score: float = 0.0) -> str:
    """Render a trace as a one-line human-readable explanation."""
    parts = [
        f"{c.factor.label}: {c.raw_score:.0%} x {c.weight:.2f} = {c.contribution:.3f}"
        for c in trace.contributions
    ]
    if not parts:
        parts.append("No comparable factors")
    if trace.blend_mode == BlendMode.TAG_BLENDED.value:
        parts.append(f"Tags: {trace.tag_overlap:.0%} ({tag_score:.1f})")
    parts.append(f"Total: {score}%")
    return " | ".join(parts)


def compute_score(
    preference: PreferenceProfile,
    candidate: CandidateProfile,
    blend: BlendMode = BlendMode.PREFERENCE_ONLY,
    policy: WeightPolicy | str | None = None,
) -> ScoreResult:
    """Score a candidate against a seeker's preferences.

    Args:
        preference: Mentee preference profile.
        candidate: Mentor profile.
        blend: Whether to blend in tag overlap.
        policy: Weight fallback policy (None uses config).

    Returns:
        ScoreResult with final score, preference score, tag score,
        breakdown string and structured trace.
    """
    policy = resolve_policy(policy)
    blend = BlendMode(blend)

    factor_scores = score_factors(preference, candidate)
    weights = allocate_weights(preference.factor_order, set(factor_scores), policy)

    contributions = [
        FactorContribution(
            factor=factor,
            raw_score=factor_scores[factor],
            weight=weights[factor],
            contribution=factor_scores[factor] * weights[factor],
        )
        for factor in _contribution_order(preference.factor_order, weights)
    ]
    weighted_sum = sum(c.contribution for c in contributions)
    preference_score = _clamp(round_half_up(100 * weighted_sum))

    overlap = 0.0
    tag_score = 0.0
    if blend is BlendMode.TAG_BLENDED:
        overlap = tag_overlap(preference.tags, candidate.tags)
        tag_score = overlap * TAG_SCORE_WEIGHT
        score = _clamp(round_half_up(tag_score + preference_score * PREFERENCE_BLEND_WEIGHT))
    else:
        score = preference_score

    trace = ScoreTrace(
        contributions=contributions,
        absent_factors=[f for f in Factor if f not in factor_scores],
        policy=policy.value,
        blend_mode=blend.value,
        tag_overlap=overlap,
    )

    logger.debug(
        f"Scored {candidate.candidate_id} for {preference.seeker_id}: "
        f"{score} (preference {preference_score}, tags {tag_score:.1f})"
    )

    return ScoreResult(
        score=score,
        preference_score=preference_score,
        tag_score=tag_score,
        breakdown=format_breakdown(trace, score, tag_score),
        trace=trace,
    )


def _contribution_order(
    factor_order: list[Factor],
    weights: dict[Factor, float],
) -> list[Factor]:
    """Ranked factors first, then any other weighted factor in Factor order."""
    ranked = [f for f in factor_order if f in weights]
    rest = [f for f in Factor if f in weights and f not in ranked]
    return ranked + rest
