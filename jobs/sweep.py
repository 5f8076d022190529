"""
Run one ingestion sweep over all active sources.

Meant for a time-based scheduler (cron, Cloud Scheduler, systemd timer):

    python -m jobs.sweep
    python -m jobs.sweep --run-type retry --workers 4

Exit code 0 when the sweep completed, even if some sources failed;
1 when the active sources could not be listed.
"""
from __future__ import annotations

import argparse
import signal
import sys
import threading
import time

from feedsweep.config import ConfigError, load_settings
from feedsweep.errors import StoreUnavailable
from feedsweep.logging_utils import configure_logging, log_event
from feedsweep.run import build_orchestrator
from feedsweep.schemas import RunType


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Scrape every active source once.")
    p.add_argument("--run-type", default=RunType.SCHEDULED.value, choices=[t.value for t in RunType])
    p.add_argument("--workers", type=int, default=None, help="sources processed concurrently")
    p.add_argument("--delay", type=float, default=None, help="minimum seconds between feed requests")
    p.add_argument("--timeout", type=float, default=None, help="per-feed network timeout in seconds")
    p.add_argument("--db", default=None, help="SQLite path (overrides FEEDSWEEP_DB_PATH)")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        settings = load_settings(
            db_path=args.db,
            max_workers=args.workers,
            pacing_delay_s=args.delay,
            fetch_timeout_s=args.timeout,
        )
    except ConfigError as exc:
        print(f"ERROR config: {exc}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    # SIGTERM stops the sweep between sources; the source in flight finishes
    cancel = threading.Event()
    previous = None
    if threading.current_thread() is threading.main_thread():
        previous = signal.signal(signal.SIGTERM, lambda signum, frame: cancel.set())

    t0 = time.perf_counter()
    try:
        result = build_orchestrator(settings).run_sweep(args.run_type, cancel=cancel)
    except StoreUnavailable as exc:
        elapsed_ms = int((time.perf_counter() - t0) * 1000)
        log_event("run_end", status="error", run_type=args.run_type, elapsed_ms=elapsed_ms, error=str(exc))
        print(f"ERROR run_type={args.run_type} error={exc}")
        return 1
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)

    elapsed_ms = int((time.perf_counter() - t0) * 1000)
    log_event(
        "run_end",
        status="ok",
        sweep_id=result.sweep_id,
        run_type=args.run_type,
        elapsed_ms=elapsed_ms,
        counts={
            "sources": result.sources_processed,
            "new": result.total_new,
            "duplicates": result.total_duplicates,
            "errors": result.sources_failed,
        },
    )
    print(
        f"OK sweep_id={result.sweep_id} sources={result.sources_processed} "
        f"new={result.total_new} duplicates={result.total_duplicates} "
        f"errors={result.sources_failed} cancelled={result.cancelled}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
