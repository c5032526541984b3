"""Tests for profile, ranking and watermark database operations."""

import sqlite3
from datetime import UTC, datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from mentormatch.db.connection import get_connection
from mentormatch.db.profiles import (
    count_candidates,
    get_candidates,
    get_candidates_with_rejects,
    get_preference,
    list_seeker_ids,
    save_candidate,
    save_candidates,
    save_preference,
)
from mentormatch.db.rankings import (
    _write_batch,
    count_match_results,
    get_match_results,
    get_watermark,
    set_watermark,
    upsert_match_results,
)
from mentormatch.schemas.factor import Factor
from mentormatch.schemas.match import MatchResult
from mentormatch.utils import BackendUnavailableError, SchemaError
from tests.test_utils import make_test_candidate, make_test_preference

JAN = datetime(2026, 1, 1, tzinfo=UTC)
FEB = datetime(2026, 2, 1, tzinfo=UTC)
MAR = datetime(2026, 3, 1, tzinfo=UTC)


def _match(candidate_id: str, score: int, seeker_id: str = "mentee-1") -> MatchResult:
    return MatchResult(
        seeker_id=seeker_id,
        candidate_id=candidate_id,
        score=score,
        preference_score=score,
        breakdown=f"Total: {score}%",
    )


class TestInitDatabase:
    def test_creates_database(self, temp_db):
        assert temp_db.exists()


class TestPreferences:
    def test_round_trip(self, temp_db):
        save_preference(
            make_test_preference(
                factor_order=["industry", "role"],
                tags=["Python", "Leadership"],
                industry="Finance",
                years_experience=5,
            )
        )

        profile = get_preference("mentee-1")

        assert profile.industry == "Finance"
        assert profile.years_experience == 5
        assert profile.factor_order == [Factor.INDUSTRY, Factor.ROLE]
        assert profile.tags == ["Python", "Leadership"]
        assert profile.updated_at is not None

    def test_missing_returns_none(self, temp_db):
        assert get_preference("nobody") is None

    def test_save_replaces_existing(self, temp_db):
        save_preference(make_test_preference(industry="Finance"))
        save_preference(make_test_preference(industry="Technology"))

        assert get_preference("mentee-1").industry == "Technology"
        assert list_seeker_ids() == ["mentee-1"]

    def test_list_seeker_ids_sorted(self, temp_db):
        save_preference(make_test_preference(seeker_id="b"))
        save_preference(make_test_preference(seeker_id="a"))

        assert list_seeker_ids() == ["a", "b"]


class TestCandidates:
    def test_round_trip(self, temp_db):
        save_candidate(
            make_test_candidate(current_role="Auditor", seniority_level="Senior", tags=["audit"])
        )

        [candidate] = get_candidates()

        assert candidate.candidate_id == "mentor-1"
        assert candidate.current_role == "Auditor"
        assert candidate.seniority_level == "Senior"
        assert candidate.tags == ["audit"]

    def test_upsert_is_idempotent(self, temp_db):
        mentor = make_test_candidate(industry="Finance")
        save_candidates([mentor])
        save_candidates([mentor])

        assert count_candidates() == 1

    def test_updated_after_filter(self, temp_db):
        save_candidates([
            make_test_candidate("old", updated_at=JAN),
            make_test_candidate("new", updated_at=MAR),
        ])

        changed = get_candidates(updated_after=FEB)

        assert [c.candidate_id for c in changed] == ["new"]

    def test_updated_after_is_strict(self, temp_db):
        save_candidate(make_test_candidate("edge", updated_at=FEB))

        assert get_candidates(updated_after=FEB) == []

    def test_updated_after_compares_across_timezones(self, temp_db):
        # 10:00 at UTC+11 is still January 31 in UTC
        sydney = datetime(2026, 2, 1, 10, tzinfo=timezone(timedelta(hours=11)))
        save_candidate(make_test_candidate("c1", updated_at=sydney))

        assert get_candidates(updated_after=FEB) == []
        assert len(get_candidates(updated_after=JAN)) == 1


    def test_invalid_row_reported_not_raised(self, temp_db):
        save_candidate(make_test_candidate("good", industry="Finance"))
        with get_connection() as db:
            db.execute(
                "INSERT INTO mentor_profiles (candidate_id, years_experience, updated_at) VALUES (?, ?, ?)",
                ("bad", "ten years", "2026-01-01T00:00:00.000000+00:00"),
            )
            db.commit()

        candidates, rejected = get_candidates_with_rejects()

        assert [c.candidate_id for c in candidates] == ["good"]
        assert rejected == ["bad"]
        assert [c.candidate_id for c in get_candidates()] == ["good"]


class TestUpsertMatchResults:
    def test_counts_created_and_updated(self, temp_db):
        created, updated = upsert_match_results("mentee-1", [_match("a", 50), _match("b", 60)])
        assert (created, updated) == (2, 0)

        created, updated = upsert_match_results("mentee-1", [_match("b", 70), _match("c", 10)])
        assert (created, updated) == (1, 1)

    def test_no_duplicate_rows(self, temp_db):
        upsert_match_results("mentee-1", [_match("a", 50)])
        upsert_match_results("mentee-1", [_match("a", 80)])

        results = get_match_results("mentee-1")

        assert len(results) == 1
        assert results[0].score == 80
        assert count_match_results() == 1

    def test_empty_results(self, temp_db):
        assert upsert_match_results("mentee-1", []) == (0, 0)

    def test_rejects_other_seekers(self, temp_db):
        with pytest.raises(ValueError):
            upsert_match_results("mentee-1", [_match("a", 50, seeker_id="mentee-2")])

    def test_writes_in_chunks(self, temp_db):
        matches = [_match(f"c{i:02d}", 50) for i in range(25)]

        with patch("mentormatch.db.rankings._write_batch", wraps=_write_batch) as mock_write:
            upsert_match_results("mentee-1", matches, batch_size=10)

        assert [len(c.args[0]) for c in mock_write.call_args_list] == [10, 10, 5]
        assert count_match_results("mentee-1") == 25

    def test_stamps_updated_at(self, temp_db):
        upsert_match_results("mentee-1", [_match("a", 50)], now=FEB)

        [result] = get_match_results("mentee-1")

        assert result.updated_at == FEB

    def test_transient_failure_surfaces_as_unavailable(self, temp_db, no_sleep):
        with patch(
            "mentormatch.db.rankings._write_batch",
            side_effect=TimeoutError("timed out"),
        ):
            with pytest.raises(BackendUnavailableError):
                upsert_match_results("mentee-1", [_match("a", 50)])

        assert no_sleep.call_count == 2
        assert count_match_results() == 0

    def test_unknown_column_surfaces_as_schema_error(self, temp_db, no_sleep):
        with patch(
            "mentormatch.db.rankings._write_batch",
            side_effect=sqlite3.OperationalError("table match_rankings has no column named scoer"),
        ):
            with pytest.raises(SchemaError):
                upsert_match_results("mentee-1", [_match("a", 50)])

        no_sleep.assert_not_called()


class TestGetMatchResults:
    def test_sorted_by_score_descending(self, temp_db):
        upsert_match_results("mentee-1", [_match("a", 20), _match("b", 90), _match("c", 55)])

        results = get_match_results("mentee-1")

        assert [r.candidate_id for r in results] == ["b", "c", "a"]

    def test_limit(self, temp_db):
        upsert_match_results("mentee-1", [_match("a", 20), _match("b", 90), _match("c", 55)])

        assert len(get_match_results("mentee-1", limit=2)) == 2

    def test_scoped_to_seeker(self, temp_db):
        upsert_match_results("mentee-1", [_match("a", 20)])
        upsert_match_results("mentee-2", [_match("a", 30, seeker_id="mentee-2")])

        assert [r.score for r in get_match_results("mentee-2")] == [30]


class TestWatermark:
    def test_absent_until_set(self, temp_db):
        assert get_watermark("mentee-1") is None

    def test_set_and_advance(self, temp_db):
        set_watermark("mentee-1", JAN)
        set_watermark("mentee-1", MAR)

        assert get_watermark("mentee-1") == MAR

    def test_naive_timestamp_treated_as_utc(self, temp_db):
        set_watermark("mentee-1", datetime(2026, 1, 1))

        assert get_watermark("mentee-1") == JAN
