import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Environment detection
IS_CLOUD = os.getenv("DATABASE_URL", "") != ""

# Paths (local development only)
DATA_DIR = Path("data")
DB_PATH = DATA_DIR / "mentormatch.db"

# Database (PostgreSQL when set, SQLite otherwise)
DATABASE_URL = os.getenv("DATABASE_URL")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Ranking settings
DEFAULT_TOP_N = 10
REALTIME_TOP_N = 1
UPSERT_BATCH_SIZE = 10

# Backend retry policy (linear backoff: attempt * RETRY_BACKOFF_SECONDS)
RETRY_ATTEMPTS = 3
RETRY_BACKOFF_SECONDS = 0.3

# Profiles
MAX_TAGS = 30
MAX_FACTORS = 8

# Scoring
TAG_SCORE_WEIGHT = 30
PREFERENCE_BLEND_WEIGHT = 0.7

# "legacy" keeps the fixed empty-order fallback as-is, "normalized" rescales it to 1.0
WEIGHT_POLICY = os.getenv("WEIGHT_POLICY", "legacy").lower()
