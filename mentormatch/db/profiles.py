"""Mentee preference and mentor profile database operations."""

import json
import logging
from datetime import datetime

from pydantic import ValidationError

from mentormatch.db.connection import DatabaseConnection, get_connection
from mentormatch.db.retry import run_with_retry, unwrap
from mentormatch.schemas.candidate import CandidateProfile
from mentormatch.schemas.preference import PreferenceProfile
from mentormatch.utils import utc_now

logger = logging.getLogger(__name__)

_PREFERENCE_COLUMNS = (
    "seeker_id",
    "industry",
    "role",
    "seniority",
    "previous_roles",
    "mentoring_style",
    "years_experience",
    "cultural_background",
    "availability",
    "factor_order",
    "tags",
    "updated_at",
)

_MENTOR_COLUMNS = (
    "candidate_id",
    "industry",
    "role",
    "seniority_level",
    "previous_roles",
    "mentoring_style",
    "years_experience",
    "cultural_background",
    "availability",
    "tags",
    "updated_at",
)


def _load_json_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, str):
        return json.loads(value) if value else []
    return list(value)


def _upsert_sql(db: DatabaseConnection, table: str, columns: tuple[str, ...]) -> str:
    key, *rest = columns
    placeholders = ", ".join([db.placeholder] * len(columns))
    updates = ", ".join(f"{col} = excluded.{col}" for col in rest)
    return (
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) "
        f"ON CONFLICT ({key}) DO UPDATE SET {updates}"
    )


def _row_to_preference(row) -> PreferenceProfile:
    return PreferenceProfile(
        seeker_id=row["seeker_id"],
        industry=row["industry"],
        role=row["role"],
        seniority=row["seniority"],
        previous_roles=row["previous_roles"],
        mentoring_style=row["mentoring_style"],
        years_experience=row["years_experience"],
        cultural_background=row["cultural_background"],
        availability=row["availability"],
        factor_order=_load_json_list(row["factor_order"]),
        tags=_load_json_list(row["tags"]),
        updated_at=row["updated_at"],
    )


def _row_to_candidate(row) -> CandidateProfile:
    return CandidateProfile(
        candidate_id=row["candidate_id"],
        industry=row["industry"],
        current_role=row["role"],
        seniority_level=row["seniority_level"],
        previous_roles=row["previous_roles"],
        mentoring_style=row["mentoring_style"],
        years_experience=row["years_experience"],
        cultural_background=row["cultural_background"],
        availability=row["availability"],
        tags=_load_json_list(row["tags"]),
        updated_at=row["updated_at"],
    )


def save_preferences(profiles: list[PreferenceProfile]) -> int:
    """Insert or replace mentee preference profiles.

    Profiles without updated_at are stamped with the current time.

    Args:
        profiles: Preference profiles to store.

    Returns:
        Number of profiles written.
    """
    def _write() -> int:
        with get_connection() as db:
            cursor = db.cursor()
            sql = _upsert_sql(db, "mentee_preferences", _PREFERENCE_COLUMNS)
            for p in profiles:
                cursor.execute(
                    sql,
                    (
                        p.seeker_id, p.industry, p.role, p.seniority,
                        p.previous_roles, p.mentoring_style, p.years_experience,
                        p.cultural_background, p.availability,
                        json.dumps([f.value for f in p.factor_order]),
                        json.dumps(p.tags),
                        db.timestamp(p.updated_at or utc_now()),
                    ),
                )
            db.commit()
        return len(profiles)

    return unwrap(run_with_retry("Save mentee_preferences", _write))


def save_preference(profile: PreferenceProfile) -> None:
    """Insert or replace a single mentee preference profile."""
    save_preferences([profile])


def save_candidates(candidates: list[CandidateProfile]) -> int:
    """Insert or replace mentor profiles.

    Profiles without updated_at are stamped with the current time.

    Args:
        candidates: Mentor profiles to store.

    Returns:
        Number of profiles written.
    """
    def _write() -> int:
        with get_connection() as db:
            cursor = db.cursor()
            sql = _upsert_sql(db, "mentor_profiles", _MENTOR_COLUMNS)
            for c in candidates:
                cursor.execute(
                    sql,
                    (
                        c.candidate_id, c.industry, c.current_role, c.seniority_level,
                        c.previous_roles, c.mentoring_style, c.years_experience,
                        c.cultural_background, c.availability,
                        json.dumps(c.tags),
                        db.timestamp(c.updated_at or utc_now()),
                    ),
                )
            db.commit()
        return len(candidates)

    return unwrap(run_with_retry("Save mentor_profiles", _write))


def save_candidate(candidate: CandidateProfile) -> None:
    """Insert or replace a single mentor profile."""
    save_candidates([candidate])


def get_preference(seeker_id: str) -> PreferenceProfile | None:
    """Retrieve a mentee's preference profile.

    Args:
        seeker_id: Mentee user id.

    Returns:
        PreferenceProfile if found, None otherwise.
    """
    def _read():
        with get_connection() as db:
            cursor = db.cursor(dictionary=True)
            ph = db.placeholder
            cursor.execute(
                f"SELECT * FROM mentee_preferences WHERE seeker_id = {ph}",
                (seeker_id,),
            )
            return cursor.fetchone()

    row = unwrap(run_with_retry("Select mentee_preferences", _read))
    if row is None:
        return None
    return _row_to_preference(row)


def get_candidates_with_rejects(
    updated_after: datetime | None = None,
) -> tuple[list[CandidateProfile], list[str]]:
    """Retrieve mentor profiles, optionally only those changed after a time.

    Each row is validated on its own. A row that fails validation is logged
    and reported by id instead of failing the whole read.

    Args:
        updated_after: Only return mentors updated strictly after this
            timestamp. None returns every mentor.

    Returns:
        Tuple of (valid CandidateProfile objects ordered by candidate id,
        ids of rows that failed validation).
    """
    def _read():
        with get_connection() as db:
            cursor = db.cursor(dictionary=True)
            ph = db.placeholder
            if updated_after is None:
                cursor.execute("SELECT * FROM mentor_profiles ORDER BY candidate_id")
            else:
                cursor.execute(
                    f"SELECT * FROM mentor_profiles WHERE updated_at > {ph} ORDER BY candidate_id",
                    (db.timestamp(updated_after),),
                )
            return cursor.fetchall()

    rows = unwrap(run_with_retry("Select mentor_profiles", _read))

    candidates: list[CandidateProfile] = []
    rejected: list[str] = []
    for row in rows:
        try:
            candidates.append(_row_to_candidate(row))
        except (ValidationError, json.JSONDecodeError) as e:
            rejected.append(row["candidate_id"])
            logger.warning(f"Skipping invalid mentor profile {row['candidate_id']}: {e}")
    return candidates, rejected


def get_candidates(updated_after: datetime | None = None) -> list[CandidateProfile]:
    """Retrieve valid mentor profiles; invalid rows are logged and left out."""
    candidates, _ = get_candidates_with_rejects(updated_after)
    return candidates


def list_seeker_ids() -> list[str]:
    """Return the ids of all mentees with a preference profile."""
    def _read():
        with get_connection() as db:
            cursor = db.cursor(dictionary=True)
            cursor.execute("SELECT seeker_id FROM mentee_preferences ORDER BY seeker_id")
            return cursor.fetchall()

    rows = unwrap(run_with_retry("Select mentee_preferences", _read))
    return [row["seeker_id"] for row in rows]


def count_candidates() -> int:
    """Return the number of stored mentor profiles."""
    def _read():
        with get_connection() as db:
            cursor = db.cursor(dictionary=True)
            cursor.execute("SELECT COUNT(*) AS total FROM mentor_profiles")
            return cursor.fetchone()

    row = unwrap(run_with_retry("Count mentor_profiles", _read))
    return row["total"]
