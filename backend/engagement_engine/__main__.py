"""
Scheduler entry point for the scoring batch job.

Usage:
    python -m engagement_engine                          # all accounts, all clients
    python -m engagement_engine --account-id 3           # one account
    python -m engagement_engine --account-id 3 --client-id 42
    python -m engagement_engine --create-tables --seed   # local demo database
"""

import argparse
import json
import logging
import sys

from .config import configure_logging
from .db import SessionLocal, init_db
from .recompute import RecomputeError, recompute_scores
from .seed import seed_if_needed

logger = logging.getLogger("engagement_engine")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="engagement_engine", description="Recompute client E-Score / ROIzometer")
    parser.add_argument("--account-id", type=int, default=None)
    parser.add_argument("--client-id", type=int, default=None)
    parser.add_argument("--create-tables", action="store_true", help="create missing tables first")
    parser.add_argument("--seed", action="store_true", help="seed demo data if the database is empty")
    args = parser.parse_args(argv)

    configure_logging()

    if args.create_tables:
        init_db()

    with SessionLocal() as db:
        if args.seed:
            seed_if_needed(db)
        try:
            summary = recompute_scores(db, account_id=args.account_id, client_id=args.client_id)
        except RecomputeError as e:
            logger.error("Score recalculation failed: %s", e)
            print(json.dumps({"error": str(e)}))
            return 1

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
