#!/usr/bin/env python3
"""
Campus Match entry point.

Usage:
    python main.py --mode serve
    python main.py --mode batch [--company-ids ID ...] [--student-ids ID ...] [--scope jobs]
"""
import sys
import json
import signal
import logging
import argparse
import threading

from tenacity import retry, stop_after_attempt, wait_fixed

from core.app_context import AppContext
from core.config_loader import load_config
from core.exceptions import MatchingError
from database.database import init_db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@retry(stop=stop_after_attempt(5), wait=wait_fixed(2))
def wait_for_database(ctx: AppContext) -> None:
    """Create missing tables, retrying while the database comes up."""
    init_db(ctx.db_engine)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Campus Match - student/company matching engine")
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    parser.add_argument("--mode", choices=["serve", "batch"], default="serve",
                        help="serve: run the API; batch: regenerate matches and exit")
    parser.add_argument("--company-ids", nargs="*", default=None,
                        help="Companies to include in the batch (default: first active companies)")
    parser.add_argument("--student-ids", nargs="*", default=None,
                        help="Students to include in the batch (default: first active students)")
    parser.add_argument("--scope", choices=["all", "jobs", "internships"], default="all",
                        help="Posting kinds that contribute company skills")
    return parser.parse_args(argv)


def run_batch(ctx: AppContext, args: argparse.Namespace) -> int:
    stop_event = threading.Event()

    def signal_handler(sig, frame):
        logger.info("Shutdown signal received, cancelling batch")
        stop_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        result = ctx.engine.run_batch(
            company_ids=args.company_ids,
            student_ids=args.student_ids,
            scope=args.scope,
            stop_event=stop_event
        )
    except MatchingError as e:
        logger.error(f"Batch rejected: {e}")
        return 2

    print(json.dumps(result.to_dict(), indent=2))
    return 1 if result.failed or result.cancelled else 0


def main(argv=None) -> int:
    args = parse_args(argv)
    config = load_config(args.config)
    ctx = AppContext.build(config)

    try:
        wait_for_database(ctx)

        if args.mode == "batch":
            return run_batch(ctx, args)

        from web.backend.app import run_server
        run_server(ctx)
        return 0
    finally:
        ctx.close()


if __name__ == "__main__":
    sys.exit(main())
