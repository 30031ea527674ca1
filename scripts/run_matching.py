"""Run one batch match of all active listings against open solicitations.

Usage:
    python scripts/run_matching.py
    python scripts/run_matching.py --min-score 60 --chunk-size 25

Intended for a scheduler (cron, systemd timer); prints the run statistics
as JSON on stdout.
"""

import argparse
import asyncio
import json
import logging
import os
import sys

# Ensure src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

logging.basicConfig(level=logging.INFO, format="%(levelname)s  %(message)s")
logger = logging.getLogger(__name__)


async def run(min_score, chunk_size) -> int:
    from lease_match.infra.database import async_session, init_db
    from lease_match.services.batch_matcher import run_matching_job

    await init_db()

    async with async_session() as session:
        stats = await run_matching_job(session, min_score=min_score, chunk_size=chunk_size)

    print(json.dumps(stats.to_dict(), indent=2))

    if stats.errors:
        logger.warning("Run finished with %d error(s)", len(stats.errors))
    logger.info(
        "Done. Processed: %d, Matched: %d, Persisted: %d",
        stats.processed, stats.matched, stats.persisted,
    )
    # Only persistence failures are worth a non-zero exit for a scheduler
    return 1 if any(e.startswith("Error upserting") for e in stats.errors) else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Match listings against solicitations")
    parser.add_argument("--min-score", type=float, help="Minimum overall score to store")
    parser.add_argument("--chunk-size", type=int, help="Listings per worker chunk")
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args.min_score, args.chunk_size)))
