"""Recompute stored matches for every request (or the given ones).

Usage:
    python scripts/recompute_matches.py [--request-id N ...] [--workers N] [--verbose]

Exit codes: 0 success, 1 unrecoverable failure, 2 some pairs failed,
130 interrupted.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from railmatch.core.exceptions import RailMatchException
from railmatch.core.logging_config import configure_logging
from railmatch.database.db import init_db
from railmatch.services.match_sync_service import MatchSyncService

logger = logging.getLogger("railmatch.scripts.recompute_matches")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_PARTIAL = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rescore requests against eligible offers and upsert matches.")
    parser.add_argument(
        "--request-id",
        dest="request_ids",
        type=int,
        action="append",
        help="Only recompute this request (repeatable). Default: all requests.",
    )
    parser.add_argument("--workers", type=int, default=None, help="Worker threads (default: SYNC_MAX_WORKERS).")
    parser.add_argument("--verbose", action="store_true", help="Log every written match.")
    return parser


def run(args: argparse.Namespace, stop_event: threading.Event, service: MatchSyncService | None = None) -> int:
    if args.workers is not None and args.workers < 1:
        logger.error("recompute.invalid_workers", extra={"event": "recompute.invalid_workers", "workers": args.workers})
        return EXIT_FAILURE

    try:
        if service is None:
            init_db()
            service = MatchSyncService()
        with service:
            summary = service.recompute(args.request_ids, stop_event=stop_event, max_workers=args.workers)
    except (RailMatchException, SQLAlchemyError) as exc:
        logger.error("recompute.failed", extra={"event": "recompute.failed", "error": str(exc)})
        return EXIT_FAILURE

    logger.info(
        "recompute.summary",
        extra={
            "event": "recompute.summary",
            "requests_processed": summary.requests_processed,
            "pairs_scored": summary.pairs_scored,
            "matches_written": summary.matches_written,
            "error_count": len(summary.errors),
            "cancelled": summary.cancelled,
        },
    )
    if summary.cancelled:
        return EXIT_INTERRUPTED
    if summary.errors:
        return EXIT_PARTIAL
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)

    stop_event = threading.Event()

    def _interrupt(signum, frame) -> None:
        logger.warning("recompute.interrupted", extra={"event": "recompute.interrupted"})
        stop_event.set()

    signal.signal(signal.SIGINT, _interrupt)
    return run(args, stop_event)


if __name__ == "__main__":
    sys.exit(main())
