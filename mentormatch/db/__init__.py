"""Database access for profiles, rankings and watermarks."""

from mentormatch.db.connection import get_connection, init_tables
from mentormatch.db.profiles import (
    count_candidates,
    get_candidates,
    get_candidates_with_rejects,
    get_preference,
    list_seeker_ids,
    save_candidate,
    save_candidates,
    save_preference,
    save_preferences,
)
from mentormatch.db.rankings import (
    count_match_results,
    get_match_results,
    get_watermark,
    set_watermark,
    upsert_match_results,
)

__all__ = [
    "get_connection",
    "init_tables",
    "count_candidates",
    "get_candidates",
    "get_candidates_with_rejects",
    "get_preference",
    "list_seeker_ids",
    "save_candidate",
    "save_candidates",
    "save_preference",
    "save_preferences",
    "count_match_results",
    "get_match_results",
    "get_watermark",
    "set_watermark",
    "upsert_match_results",
]
