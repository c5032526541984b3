"""Ranking service: scores mentors for a mentee and keeps match_rankings current.

This service handles:
- Incremental refresh of a mentee's stored rankings (batch path)
- Real-time top-match lookup with tag blending (not persisted)
- Reading stored rankings and explaining individual scores

Refreshes for the same mentee are serialized with a per-mentee lock.
Refreshes for different mentees are independent and may run in parallel.
"""

import logging
import threading
import weakref
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from mentormatch.config import DEFAULT_TOP_N, REALTIME_TOP_N
from mentormatch.db.profiles import (
    get_candidates,
    get_candidates_with_rejects,
    get_preference,
    list_seeker_ids,
)
from mentormatch.db.rankings import (
    get_match_results,
    get_watermark,
    set_watermark,
    upsert_match_results,
)
from mentormatch.matching.scorer import BlendMode, compute_score
from mentormatch.matching.weights import WeightPolicy
from mentormatch.schemas.candidate import CandidateProfile
from mentormatch.schemas.match import MatchResult, RefreshSummary, ScoreResult
from mentormatch.schemas.preference import PreferenceProfile
from mentormatch.utils import RankingValidationError, utc_now

logger = logging.getLogger(__name__)

# Entries drop out once no refresh holds the lock
_seeker_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
_registry_lock = threading.Lock()


def _seeker_lock(seeker_id: str) -> threading.Lock:
    with _registry_lock:
        lock = _seeker_locks.get(seeker_id)
        if lock is None:
            lock = _seeker_locks[seeker_id] = threading.Lock()
        return lock


def _require_seeker_id(seeker_id: str | None) -> str:
    seeker_id = (seeker_id or "").strip()
    if not seeker_id:
        raise RankingValidationError("seeker_id is required")
    return seeker_id


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _load_preference(seeker_id: str) -> PreferenceProfile | None:
    try:
        return get_preference(seeker_id)
    except ValidationError as e:
        raise RankingValidationError(
            f"Invalid preference profile for {seeker_id}: {e}"
        ) from e


def _score_candidates(
    preference: PreferenceProfile,
    candidates: list[CandidateProfile],
    blend: BlendMode,
    policy: WeightPolicy | str | None,
) -> tuple[list[tuple[CandidateProfile, ScoreResult]], int]:
    """Score every candidate, skipping any that raise.

    Returns:
        Tuple of ((candidate, result) pairs, number of skipped candidates).
    """
    scored = []
    skipped = 0
    for candidate in candidates:
        try:
            result = compute_score(preference, candidate, blend=blend, policy=policy)
        except Exception as e:
            skipped += 1
            logger.warning(
                f"Skipping mentor {candidate.candidate_id} for {preference.seeker_id}: {e}"
            )
            continue
        scored.append((candidate, result))
    return scored, skipped


def _to_match(seeker_id: str, candidate_id: str, result: ScoreResult, now: datetime) -> MatchResult:
    return MatchResult(
        seeker_id=seeker_id,
        candidate_id=candidate_id,
        score=result.score,
        preference_score=result.preference_score,
        tag_score=result.tag_score,
        breakdown=result.breakdown,
        updated_at=now,
    )


def _rank(matches: list[MatchResult]) -> list[MatchResult]:
    return sorted(matches, key=lambda m: (-m.score, m.candidate_id))


def refresh_ranking(
    seeker_id: str,
    top_n: int = DEFAULT_TOP_N,
    full: bool = False,
    blend: BlendMode = BlendMode.PREFERENCE_ONLY,
    policy: WeightPolicy | str | None = None,
) -> RefreshSummary:
    """Recompute and store a mentee's mentor rankings.

    Pipeline:
    1. Load the mentee's preference profile (absent -> empty summary)
    2. Load mentors changed since the lastPaired watermark, or all mentors
       when there is no watermark, full=True, or the preferences changed
       after the watermark
    3. Score each mentor, skipping (and logging) any that fail
    4. Keep mentors with a score above zero
    5. Upsert rankings keyed by (mentee, mentor) in chunks of 10
    6. Advance the watermark, even when nothing matched
    7. Return counts and the top-N by score

    Args:
        seeker_id: Mentee user id.
        top_n: Number of rankings to include in the summary.
        full: Rescan every mentor regardless of the watermark.
        blend: Score blend mode (batch refresh uses preference only).
        policy: Weight fallback policy (None uses config).

    Returns:
        RefreshSummary with created/updated/total counts and top rankings.

    Raises:
        RankingValidationError: Missing seeker id or invalid stored preferences.
        BackendUnavailableError: The store kept failing transiently.
        SchemaError: The store rejected a column.
    """
    seeker_id = _require_seeker_id(seeker_id)
    with _seeker_lock(seeker_id):
        return _refresh_locked(seeker_id, top_n, full, BlendMode(blend), policy)


def _refresh_locked(
    seeker_id: str,
    top_n: int,
    full: bool,
    blend: BlendMode,
    policy: WeightPolicy | str | None,
) -> RefreshSummary:
    preference = _load_preference(seeker_id)
    if preference is None:
        logger.info(f"No preference profile for {seeker_id}, nothing to rank")
        return RefreshSummary(seeker_id=seeker_id)

    run_started = utc_now()
    watermark = get_watermark(seeker_id)

    incremental = watermark is not None and not full
    if incremental and preference.updated_at is not None:
        if _as_utc(preference.updated_at) > _as_utc(watermark):
            logger.info(f"Preferences for {seeker_id} changed since last run, rescanning all mentors")
            incremental = False

    candidates, rejected = get_candidates_with_rejects(
        updated_after=watermark if incremental else None
    )
    logger.info(
        f"Scoring {len(candidates)} mentors for {seeker_id} "
        f"({'incremental' if incremental else 'full scan'})"
    )

    scored, skipped = _score_candidates(preference, candidates, blend, policy)
    skipped += len(rejected)
    matches = [
        _to_match(seeker_id, candidate.candidate_id, result, run_started)
        for candidate, result in scored
        if result.score > 0
    ]

    created, updated = upsert_match_results(seeker_id, matches, now=run_started)
    set_watermark(seeker_id, run_started)

    ranked = _rank(matches)
    logger.info(
        f"Refreshed rankings for {seeker_id}: {len(ranked)} matches "
        f"({created} created, {updated} updated, {skipped} skipped)"
    )

    return RefreshSummary(
        seeker_id=seeker_id,
        created=created,
        updated=updated,
        total=len(ranked),
        skipped=skipped,
        incremental=incremental,
        top=ranked[:top_n],
    )


def get_top_matches(
    seeker_id: str,
    n: int = REALTIME_TOP_N,
    blend: BlendMode = BlendMode.TAG_BLENDED,
    policy: WeightPolicy | str | None = None,
) -> list[MatchResult]:
    """Score every mentor for a mentee now and return the best n.

    Results are not written to match_rankings, so stored rankings always
    come from one blend mode (the batch refresh).

    Args:
        seeker_id: Mentee user id.
        n: Number of matches to return.
        blend: Score blend mode (real-time path blends tags by default).
        policy: Weight fallback policy (None uses config).

    Returns:
        Up to n MatchResult objects with score > 0, best first.
    """
    seeker_id = _require_seeker_id(seeker_id)
    if n < 1:
        raise RankingValidationError("n must be at least 1")

    preference = _load_preference(seeker_id)
    if preference is None:
        return []

    now = utc_now()
    scored, _ = _score_candidates(preference, get_candidates(), BlendMode(blend), policy)
    matches = [
        _to_match(seeker_id, candidate.candidate_id, result, now)
        for candidate, result in scored
        if result.score > 0
    ]
    return _rank(matches)[:n]


def get_stored_matches(seeker_id: str, limit: int = DEFAULT_TOP_N) -> list[MatchResult]:
    """Return a mentee's persisted rankings, best score first."""
    seeker_id = _require_seeker_id(seeker_id)
    return get_match_results(seeker_id, limit=limit)


def explain_matches(
    seeker_id: str,
    candidate_id: str | None = None,
    blend: BlendMode = BlendMode.PREFERENCE_ONLY,
    policy: WeightPolicy | str | None = None,
) -> list[tuple[CandidateProfile, ScoreResult]]:
    """Score mentors for a mentee and return full results for inspection.

    Args:
        seeker_id: Mentee user id.
        candidate_id: Only explain this mentor (None explains all).
        blend: Score blend mode.
        policy: Weight fallback policy (None uses config).

    Returns:
        (candidate, ScoreResult) pairs sorted by score descending.
    """
    seeker_id = _require_seeker_id(seeker_id)
    preference = _load_preference(seeker_id)
    if preference is None:
        return []

    candidates = get_candidates()
    if candidate_id is not None:
        candidates = [c for c in candidates if c.candidate_id == candidate_id]

    scored, _ = _score_candidates(preference, candidates, BlendMode(blend), policy)
    return sorted(scored, key=lambda pair: (-pair[1].score, pair[0].candidate_id))


def refresh_all_rankings(full: bool = False, top_n: int = DEFAULT_TOP_N) -> dict[str, Any]:
    """Refresh rankings for every mentee with a preference profile.

    A failing mentee is logged and counted; the remaining mentees still run.

    Returns:
        Dict with seekers, refreshed, failed, matches, created, updated counts.
    """
    stats = {
        "seekers": 0,
        "refreshed": 0,
        "failed": 0,
        "matches": 0,
        "created": 0,
        "updated": 0,
    }

    for seeker_id in list_seeker_ids():
        stats["seekers"] += 1
        try:
            summary = refresh_ranking(seeker_id, top_n=top_n, full=full)
        except Exception as e:
            stats["failed"] += 1
            logger.exception(f"Ranking refresh failed for {seeker_id}: {e}")
            continue

        stats["refreshed"] += 1
        stats["matches"] += summary.total
        stats["created"] += summary.created
        stats["updated"] += summary.updated

    logger.info(f"Refresh complete: {stats}")
    return stats
