"""Import service for seeding mentee preferences and mentor profiles.

This service wraps profile loading for use in the CLI and tests.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from mentormatch.db.connection import init_tables
from mentormatch.db.profiles import save_candidates, save_preferences
from mentormatch.schemas.candidate import CandidateProfile
from mentormatch.schemas.preference import PreferenceProfile
from mentormatch.utils import RankingValidationError

logger = logging.getLogger(__name__)


def load_profiles_from_file(file_path: Path) -> dict[str, int]:
    """Load profiles from a JSON file and upsert them into the database.

    The file holds one object with optional "preferences" and "mentors"
    arrays. Re-importing the same file updates rows in place.

    Args:
        file_path: Path to the JSON profiles file.

    Returns:
        Dict with the number of preferences and mentors written.

    Raises:
        RankingValidationError: A profile failed validation.
    """
    init_tables()

    with open(file_path) as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise RankingValidationError(
            f"{file_path} must contain an object with 'preferences' and 'mentors'"
        )

    try:
        preferences = [PreferenceProfile(**p) for p in data.get("preferences", [])]
        mentors = [CandidateProfile(**m) for m in data.get("mentors", [])]
    except ValidationError as e:
        raise RankingValidationError(f"Invalid profile in {file_path}: {e}") from e

    stats = {
        "preferences": save_preferences(preferences),
        "mentors": save_candidates(mentors),
    }

    logger.info(f"Loaded profiles from {file_path}: {stats}")
    return stats
