"""Scheduled entrypoint for the batch ranking refresh.

This module refreshes stored rankings for every mentee when triggered by a
scheduler (cron, Cloud Scheduler, etc.):

1. INIT: Create the ranking tables if they don't exist
2. REFRESH: Rescore mentors changed since each mentee's last refresh
3. SAVE: Upsert rankings into `match_rankings` and advance the watermark

Results can be read later via:
- CLI: `mentormatch results --seeker <id>`
- Direct DB query: SELECT * FROM match_rankings WHERE seeker_id = ... ORDER BY score DESC
"""

import logging
import os
import sys
import time

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Main scheduled job execution.

    Set FULL_REFRESH=1 to rescore every mentor instead of only changed ones.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    start_time = time.time()
    logger.info("Starting MentorMatch scheduled runner")

    try:
        from mentormatch.db.connection import init_tables

        logger.info("Step 1/2: Initializing database tables")
        init_tables()

        from mentormatch.services.ranking_service import refresh_all_rankings

        full = os.getenv("FULL_REFRESH", "").lower() in ("1", "true", "yes")
        logger.info(f"Step 2/2: Refreshing rankings ({'full' if full else 'incremental'})")
        stats = refresh_all_rankings(full=full)
        logger.info(f"Refresh complete: {stats}")

        if stats["failed"]:
            logger.error(f"{stats['failed']} of {stats['seekers']} mentees failed to refresh")
            return 1

        elapsed = time.time() - start_time
        logger.info(f"Scheduled runner completed successfully in {elapsed:.2f}s")
        return 0

    except Exception as e:
        logger.exception(f"Scheduled runner failed with error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
