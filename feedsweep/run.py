# feedsweep/run.py
from __future__ import annotations

import threading

from feedsweep.config import Settings, load_settings
from feedsweep.logging_utils import configure_logging
from feedsweep.orchestrator import Orchestrator
from feedsweep.pacing import RateLimiter
from feedsweep.rss_fetch import FeedFetcher
from feedsweep.schemas import RunType, SweepResult
from feedsweep.store import SqliteArticleStore


def build_fetcher(settings: Settings) -> FeedFetcher:
    return FeedFetcher(timeout_s=settings.fetch_timeout_s, user_agent=settings.user_agent)


def build_store(settings: Settings) -> SqliteArticleStore:
    return SqliteArticleStore(settings.db_path)


def build_orchestrator(settings: Settings) -> Orchestrator:
    """Wire the sweep's collaborators once, from settings. Nothing here is a module-level singleton."""
    return Orchestrator(
        build_store(settings),
        build_fetcher(settings),
        limiter=RateLimiter(settings.pacing_delay_s),
        max_workers=settings.max_workers,
    )


def run_sweep(
    *,
    settings: Settings | None = None,
    run_type: RunType | str = RunType.SCHEDULED,
    cancel: threading.Event | None = None,
) -> SweepResult:
    """Single entry point for the scheduler job and the admin API."""
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    return build_orchestrator(settings).run_sweep(run_type, cancel=cancel)
