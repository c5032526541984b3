"""Service layer for mentormatch ranking operations."""

from mentormatch.services.import_service import load_profiles_from_file
from mentormatch.services.ranking_service import (
    explain_matches,
    get_stored_matches,
    get_top_matches,
    refresh_all_rankings,
    refresh_ranking,
)

__all__ = [
    "load_profiles_from_file",
    "explain_matches",
    "get_stored_matches",
    "get_top_matches",
    "refresh_all_rankings",
    "refresh_ranking",
]
