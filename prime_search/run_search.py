# prime_search/run_search.py
"""
Execution harness: 1 escalation loop + N worker threads.

Ctrl+C (or SIGTERM) stops the search gracefully; the next digit length is
checkpointed and the next run resumes from it.

Usage:
    python -m prime_search.run_search [workers] [rounds] [--run-dir DIR]
"""
from __future__ import annotations
import argparse
import logging
import signal
import sys
from typing import List, Optional

from pydantic import ValidationError

from .config import MAX_WORKERS, VERSION, SearchConfig, default_workers
from .escalation import DEFAULT_COOLDOWN, MAX_DIGITS
from .search import PrimeSearch, SearchLockedError
from .sinks import summary_lines

logger = logging.getLogger("prime_search")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="prime-search",
        description="Escalating-digit probable prime search (producer/consumer)",
    )
    ap.add_argument("workers", type=int, nargs="?", default=None,
                    help=f"Worker threads (default: core count, max {MAX_WORKERS})")
    ap.add_argument("rounds", type=int, nargs="?", default=10,
                    help="Miller-Rabin rounds (accepted; a single base-2 witness is used)")
    ap.add_argument("--run-dir", default=".", help="Directory for state, CSV log and summary")
    ap.add_argument("--cooldown", type=float, default=DEFAULT_COOLDOWN,
                    help="Seconds between generated candidates")
    ap.add_argument("--max-digits", type=int, default=MAX_DIGITS, help="Digit length ceiling")
    ap.add_argument("--quiet", action="store_true", help="Do not echo each result")
    ap.add_argument("--log-level", default="WARNING",
                    choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return ap


def config_from_args(args: argparse.Namespace) -> SearchConfig:
    return SearchConfig(
        workers=args.workers if args.workers is not None else default_workers(),
        rounds=args.rounds,
        run_dir=args.run_dir,
        cooldown=args.cooldown,
        max_digits=args.max_digits,
        echo_results=not args.quiet,
    )


def install_signal_handlers(search: PrimeSearch) -> None:
    def _handler(signum, frame):
        print(f"\n{signal.Signals(signum).name} received. Stopping...", flush=True)
        search.request_stop()

    signal.signal(signal.SIGINT, _handler)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handler)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry: configure, start, wait for stop, checkpoint, summarize."""
    ap = build_parser()
    args = ap.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Lift Python's big-int -> str limit (3.11+); echoed candidates can be very long.
    if hasattr(sys, "set_int_max_str_digits"):
        sys.set_int_max_str_digits(0)

    try:
        cfg = config_from_args(args)
    except ValidationError as exc:
        ap.error(str(exc))
    logger.info("Configuration: %s", cfg)

    search = PrimeSearch(cfg)
    try:
        search.acquire_lock()
    except SearchLockedError as exc:
        print(f"[LOCK] {exc}", file=sys.stderr, flush=True)
        return 1

    try:
        install_signal_handlers(search)

        print(f"+{'='*46}+", flush=True)
        print(f"|  PRIME SEARCH v{VERSION:<5s} (producer / consumer)   |", flush=True)
        print(f"|  Workers: {cfg.workers:<3d} | Rounds: {cfg.rounds:<3d} | Start: {search.current.get():<7d}|", flush=True)
        print(f"+{'='*46}+", flush=True)
        print(f"[LOG] {cfg.csv_path}", flush=True)

        search.start()
        search.wait()
        snap = search.shutdown()

        print(f"\n{'='*50}", flush=True)
        for line in summary_lines(snap):
            print(f"  {line}", flush=True)
        print(f"  Next digit length: {search.current.get()}", flush=True)
        print(f"{'='*50}", flush=True)
    finally:
        search.release_lock()
        print("Shutdown complete.", flush=True)

    return 0


if __name__ == "__main__":
    sys.exit(main())
