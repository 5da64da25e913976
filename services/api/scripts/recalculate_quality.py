#!/usr/bin/env python3
"""Bulk listing quality recalculation (one-off or nightly cron).

Behavior:
- Recalculate the quality score of every ACTIVE listing
- Optionally recalculate trust metrics for every owner of those listings,
  since trust embeds the mean listing quality

Run (local / Railway):
  cd services/api
  python -m scripts.recalculate_quality

Optional env vars:
  RECALCULATE_TRUST=1
"""

import asyncio
import os
import sys

from dotenv import load_dotenv


# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

load_dotenv()

from sqlalchemy import select  # noqa: E402

from souq_trust.models import Listing  # noqa: E402
from souq_trust.services.container import build_services  # noqa: E402
from souq_trust.services.errors import TrustError  # noqa: E402
from souq_trust.services.trust import ListingStatus  # noqa: E402
from souq_trust.stores.postgres import close_db, get_session, init_db, ping_db  # noqa: E402
from souq_trust.stores.redis import build_result_cache, close_redis, init_redis  # noqa: E402


async def _active_owner_ids() -> list[str]:
    async with get_session() as session:
        result = await session.execute(
            select(Listing.owner_id).where(Listing.status == ListingStatus.ACTIVE).distinct()
        )
        return list(result.scalars().all())


async def main() -> None:
    # Initialize shared connections (same as API lifespan, but for a one-off cron run)
    await init_db()
    await ping_db()
    try:
        await init_redis()
    except Exception as e:
        # Without Redis there is nothing to invalidate; scores still land in Postgres.
        print(f"Redis unavailable, continuing without result cache: {e}")

    try:
        services = build_services(cache=build_result_cache())
        quality = await services.quality_scoring.recalculate_all()

        trust = {"recalculated": 0, "errors": 0}
        if os.getenv("RECALCULATE_TRUST", "").strip() in ("1", "true", "yes"):
            for owner_id in await _active_owner_ids():
                try:
                    await services.trust_scoring.recalculate(owner_id)
                    trust["recalculated"] += 1
                except TrustError:
                    trust["errors"] += 1

        print(
            {
                "ok": True,
                "quality": {"processed": quality.processed, "errors": quality.errors},
                "trust": trust,
            }
        )
    finally:
        await close_redis()
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
