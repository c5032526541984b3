"""Shared pytest fixtures for all tests."""

from unittest.mock import patch

import pytest


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary database for testing.

    Patches DB_PATH and DATA_DIR at the connection module level.
    """
    db_path = tmp_path / "test.db"
    data_dir = tmp_path

    # Patch at db.connection where they're used at runtime
    with (
        patch("mentormatch.db.connection.DB_PATH", db_path),
        patch("mentormatch.db.connection.DATA_DIR", data_dir),
        patch("mentormatch.db.connection.DATABASE_URL", None),  # Force SQLite
    ):
        from mentormatch.db.connection import init_tables

        init_tables()
        yield db_path


@pytest.fixture
def no_sleep():
    """Skip retry backoff delays."""
    with patch("mentormatch.db.retry.time.sleep") as mock_sleep:
        yield mock_sleep
