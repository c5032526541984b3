"""Match ranking and watermark database operations."""

from datetime import datetime

from mentormatch.config import UPSERT_BATCH_SIZE
from mentormatch.db.connection import get_connection
from mentormatch.db.retry import run_with_retry, unwrap
from mentormatch.schemas.match import MatchResult
from mentormatch.utils import utc_now

_RANKING_COLUMNS = (
    "seeker_id",
    "candidate_id",
    "score",
    "preference_score",
    "tag_score",
    "breakdown",
    "updated_at",
)


def _row_to_match(row) -> MatchResult:
    return MatchResult(
        seeker_id=row["seeker_id"],
        candidate_id=row["candidate_id"],
        score=row["score"],
        preference_score=row["preference_score"],
        tag_score=row["tag_score"] or 0.0,
        breakdown=row["breakdown"] or "",
        updated_at=row["updated_at"],
    )


def get_match_results(seeker_id: str, limit: int | None = None) -> list[MatchResult]:
    """Retrieve stored rankings for a mentee, best score first.

    Args:
        seeker_id: Mentee user id.
        limit: Maximum number of rows (None for all).

    Returns:
        List of MatchResult objects sorted by score descending.
    """
    def _read():
        with get_connection() as db:
            cursor = db.cursor(dictionary=True)
            ph = db.placeholder
            query = (
                f"SELECT * FROM match_rankings WHERE seeker_id = {ph} "
                f"ORDER BY score DESC, candidate_id"
            )
            params: tuple = (seeker_id,)
            if limit is not None:
                query += f" LIMIT {ph}"
                params = (seeker_id, limit)
            cursor.execute(query, params)
            return cursor.fetchall()

    rows = unwrap(run_with_retry("Select match_rankings", _read))
    return [_row_to_match(row) for row in rows]


def count_match_results(seeker_id: str | None = None) -> int:
    """Count stored ranking rows, optionally for one mentee."""
    def _read():
        with get_connection() as db:
            cursor = db.cursor(dictionary=True)
            ph = db.placeholder
            if seeker_id is None:
                cursor.execute("SELECT COUNT(*) AS total FROM match_rankings")
            else:
                cursor.execute(
                    f"SELECT COUNT(*) AS total FROM match_rankings WHERE seeker_id = {ph}",
                    (seeker_id,),
                )
            return cursor.fetchone()

    row = unwrap(run_with_retry("Count match_rankings", _read))
    return row["total"]


def _write_batch(batch: list[MatchResult], now: datetime) -> int:
    """Upsert one chunk of rankings in a single transaction."""
    with get_connection() as db:
        cursor = db.cursor()
        ph = db.placeholder
        placeholders = ", ".join([ph] * len(_RANKING_COLUMNS))
        try:
            for result in batch:
                cursor.execute(
                    f"""
                    INSERT INTO match_rankings ({", ".join(_RANKING_COLUMNS)})
                    VALUES ({placeholders})
                    ON CONFLICT (seeker_id, candidate_id) DO UPDATE SET
                        score = excluded.score,
                        preference_score = excluded.preference_score,
                        tag_score = excluded.tag_score,
                        breakdown = excluded.breakdown,
                        updated_at = excluded.updated_at
                    """,
                    (
                        result.seeker_id,
                        result.candidate_id,
                        result.score,
                        result.preference_score,
                        result.tag_score,
                        result.breakdown,
                        db.timestamp(result.updated_at or now),
                    ),
                )
            db.commit()
        except Exception:
            db.rollback()
            raise
    return len(batch)


def upsert_match_results(
    seeker_id: str,
    results: list[MatchResult],
    batch_size: int = UPSERT_BATCH_SIZE,
    now: datetime | None = None,
) -> tuple[int, int]:
    """Create or update ranking rows keyed by (seeker_id, candidate_id).

    Existing rows are looked up first so the caller can report how many
    rows were created versus updated. Writes go out in fixed-size chunks,
    each its own transaction, run sequentially through the retry policy.

    Args:
        seeker_id: Mentee user id (every result must belong to it).
        results: Rankings to write.
        batch_size: Rows per write chunk.
        now: Timestamp stamped on rows without updated_at.

    Returns:
        Tuple of (created, updated) counts.

    Raises:
        BackendUnavailableError: A chunk kept failing transiently.
        SchemaError: The store rejected a column.
    """
    if not results:
        return 0, 0

    foreign = {r.seeker_id for r in results} - {seeker_id}
    if foreign:
        raise ValueError(f"results for other seekers passed to upsert: {sorted(foreign)}")

    existing = {match.candidate_id for match in get_match_results(seeker_id)}
    created = sum(1 for r in results if r.candidate_id not in existing)
    updated = len(results) - created

    stamp = now or utc_now()
    for start in range(0, len(results), batch_size):
        batch = results[start:start + batch_size]
        label = f"Upsert match_rankings [{start}:{start + len(batch)}]"
        unwrap(run_with_retry(label, lambda batch=batch: _write_batch(batch, stamp)))

    return created, updated


def get_watermark(seeker_id: str) -> datetime | None:
    """Return the mentee's lastPaired timestamp, or None if never ranked."""
    def _read():
        with get_connection() as db:
            cursor = db.cursor(dictionary=True)
            ph = db.placeholder
            cursor.execute(
                f"SELECT last_paired FROM seeker_watermarks WHERE seeker_id = {ph}",
                (seeker_id,),
            )
            return cursor.fetchone()

    row = unwrap(run_with_retry("Select seeker_watermarks", _read))
    if row is None:
        return None

    value = row["last_paired"]
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return value


def set_watermark(seeker_id: str, timestamp: datetime) -> None:
    """Advance (or set) the mentee's lastPaired timestamp."""
    def _write():
        with get_connection() as db:
            cursor = db.cursor()
            ph = db.placeholder
            cursor.execute(
                f"""
                INSERT INTO seeker_watermarks (seeker_id, last_paired)
                VALUES ({ph}, {ph})
                ON CONFLICT (seeker_id) DO UPDATE SET last_paired = excluded.last_paired
                """,
                (seeker_id, db.timestamp(timestamp)),
            )
            db.commit()

    unwrap(run_with_retry("Update LastPaired", _write))
