#!/usr/bin/env python3
"""Review request job for Railway Cron.

Schedule:
- Run hourly (or daily) in Railway Cron Jobs.

Behavior:
- Hand review requests whose send time has passed (and which are neither
  completed nor expired) to the notifier, in one batch
- Report how many requests expired without a review (read-only count)

Run (local / Railway):
  cd services/api
  python -m scripts.process_review_requests

Optional env vars:
  REVIEW_REQUEST_BATCH_SIZE=100
"""

import asyncio
import os
import sys
import time

from dotenv import load_dotenv


# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

load_dotenv()

from souq_trust.services.notifier import LoggingNotifier  # noqa: E402
from souq_trust.services.reviews import ReviewService  # noqa: E402
from souq_trust.settings import get_settings  # noqa: E402
from souq_trust.stores.postgres import close_db, init_db, ping_db  # noqa: E402


async def main() -> None:
    await init_db()
    await ping_db()

    try:
        settings = get_settings()
        reviews = ReviewService()
        start = time.monotonic()

        stats = await reviews.process_pending_review_requests(
            LoggingNotifier(),
            batch_size=settings.review_request_batch_size,
        )
        expired = await reviews.expire_old_requests()

        # Final output for Railway logs
        print(
            {
                "ok": True,
                "processed": stats.processed,
                "errors": stats.errors,
                "expired": expired,
                "duration_ms": int((time.monotonic() - start) * 1000),
            }
        )
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
