# feedsweep/orchestrator.py
"""
The sweep: for every active source, fetch its feed, store the items not
seen before, and record one Run with the outcome.

Failure boundaries:
- listing sources fails -> the sweep raises (nothing else can happen)
- a source fails (no feed URL, fetch, parse) -> that source's Run is failed, sweep goes on
- an item fails (duplicate check, persist) -> that item is skipped, source goes on
"""
from __future__ import annotations

import logging
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Protocol

from feedsweep.error_codes import (
    DUPLICATE_CHECK_UNAVAILABLE,
    PERSIST_CONFLICT,
    PERSIST_UNAVAILABLE,
    SOURCES_UNAVAILABLE,
    STORE_UNAVAILABLE,
    UNEXPECTED_ERROR,
)
from feedsweep.errors import IngestError, NoFeedConfigured, PersistConflict, StoreError, StoreUnavailable
from feedsweep.logging_utils import log_event
from feedsweep.normalize import build_article, fingerprint
from feedsweep.pacing import NoPacing, RateLimiter
from feedsweep.run_tracker import RunTracker, utc_now
from feedsweep.schemas import RawItem, Run, RunStatus, RunType, Source, SourceOutcome, SweepResult
from feedsweep.store import ArticleStore, is_novel


class Fetcher(Protocol):
    def fetch(self, url: str) -> list[RawItem]: ...


class Orchestrator:
    def __init__(
        self,
        store: ArticleStore,
        fetcher: Fetcher,
        *,
        limiter: RateLimiter | None = None,
        max_workers: int = 1,
        clock: Callable[[], datetime] = utc_now,
        tracker: RunTracker | None = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.store = store
        self.fetcher = fetcher
        self.limiter = limiter or NoPacing()
        self.max_workers = max_workers
        self.clock = clock
        self.tracker = tracker or RunTracker(store, clock=clock)

    # =====================================================================
    # Sweep
    # =====================================================================

    def run_sweep(
        self,
        run_type: RunType | str = RunType.SCHEDULED,
        *,
        cancel: threading.Event | None = None,
    ) -> SweepResult:
        """
        Process every active source once and return the aggregate result.

        Scheduled and manual triggers are handled identically; run_type is
        only recorded on each Run. `cancel` is checked before each source
        starts; a source already in flight finishes its cycle.

        Raises StoreUnavailable only if the active sources cannot be listed.
        """
        run_type = RunType(run_type)
        sweep = SweepResult(
            sweep_id=uuid.uuid4().hex,
            run_type=run_type,
            started_at=self.clock(),
        )

        try:
            sources = self.store.list_active_sources()
        except StoreUnavailable as exc:
            log_event(
                "sources_unavailable",
                level=logging.ERROR,
                sweep_id=sweep.sweep_id,
                error_code=SOURCES_UNAVAILABLE,
                error=str(exc),
            )
            raise

        sweep.sources_total = len(sources)
        log_event(
            "sweep_started",
            sweep_id=sweep.sweep_id,
            run_type=run_type.value,
            sources=len(sources),
            workers=self.max_workers,
        )

        if self.max_workers == 1:
            for source in sources:
                outcome = self._scrape_unless_cancelled(source, run_type, cancel)
                if outcome is None:
                    break
                sweep.outcomes.append(outcome)
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="feedsweep") as pool:
                futures = [
                    pool.submit(self._scrape_unless_cancelled, source, run_type, cancel)
                    for source in sources
                ]
                # Results in source order, not completion order
                for future in futures:
                    outcome = future.result()
                    if outcome is not None:
                        sweep.outcomes.append(outcome)

        sweep.cancelled = len(sweep.outcomes) < len(sources)
        sweep.sources_processed = len(sweep.outcomes)
        sweep.sources_failed = sum(1 for o in sweep.outcomes if o.status == RunStatus.FAILED)
        sweep.total_new = sum(o.new for o in sweep.outcomes)
        sweep.total_duplicates = sum(o.duplicates for o in sweep.outcomes)
        sweep.total_item_errors = sum(o.item_errors for o in sweep.outcomes)
        sweep.completed_at = self.clock()

        log_event(
            "sweep_finished",
            sweep_id=sweep.sweep_id,
            run_type=run_type.value,
            sources_processed=sweep.sources_processed,
            total_new_articles=sweep.total_new,
            duplicates=sweep.total_duplicates,
            item_errors=sweep.total_item_errors,
            errors=sweep.sources_failed,
            cancelled=sweep.cancelled,
        )
        return sweep

    def _scrape_unless_cancelled(
        self,
        source: Source,
        run_type: RunType,
        cancel: threading.Event | None,
    ) -> SourceOutcome | None:
        if cancel is not None and cancel.is_set():
            log_event("source_skipped_cancelled", source_id=source.id)
            return None
        return self.scrape_source(source, run_type)

    # =====================================================================
    # One source
    # =====================================================================

    def scrape_source(self, source: Source, run_type: RunType | str = RunType.SCHEDULED) -> SourceOutcome:
        """Run one source's cycle. Never raises for source- or item-level failures."""
        run_type = RunType(run_type)

        try:
            if not source.feed_url.strip():
                run = self.tracker.start(source, run_type)
                return self._fail(source, run, NoFeedConfigured(f"no feed URL for source {source.name}"))

            self.limiter.wait()
            run = self.tracker.start(source, run_type)
        except StoreUnavailable as exc:
            log_event(
                "run_start_failed",
                level=logging.ERROR,
                source_id=source.id,
                error_code=STORE_UNAVAILABLE,
                error=str(exc),
            )
            return SourceOutcome(
                source_id=source.id,
                source_name=source.name,
                status=RunStatus.FAILED,
                error_code=STORE_UNAVAILABLE,
                error_message=str(exc),
            )

        log_event("source_started", source_id=source.id, source=source.name, url=source.feed_url, run_id=run.id)

        try:
            items = self.fetcher.fetch(source.feed_url)
        except Exception as exc:
            return self._fail(source, run, exc)

        item_errors = self._ingest_items(source, run, items)

        try:
            self.tracker.complete(run)
        except StoreError as exc:
            # Write failed, or the row left "running" behind our back
            log_event(
                "run_finalize_failed",
                level=logging.ERROR,
                source_id=source.id,
                run_id=run.id,
                error_code=exc.code,
                error=str(exc),
            )
            return self._outcome(source, run, item_errors, status=RunStatus.FAILED,
                                 error_code=exc.code, error_message=str(exc))

        log_event(
            "source_completed",
            source_id=source.id,
            source=source.name,
            run_id=run.id,
            total_items=run.found_count,
            new_articles=run.new_count,
            duplicates=run.duplicate_count,
            item_errors=item_errors,
            duration_s=run.duration_seconds,
        )
        return self._outcome(source, run, item_errors)

    def _ingest_items(self, source: Source, run: Run, items: list[RawItem]) -> int:
        """Dedupe and store items in feed order. Returns the number of items skipped on error."""
        item_errors = 0

        for item in items:
            self.tracker.item_found(run)
            content_hash = fingerprint(item)

            try:
                if not is_novel(self.store, content_hash):
                    self.tracker.item_duplicate(run)
                    log_event("item_duplicate", level=logging.DEBUG, source_id=source.id, hash=content_hash[:8])
                    continue
            except StoreUnavailable as exc:
                # Unknown is not "novel": skip rather than risk a second copy
                item_errors += 1
                log_event(
                    "item_check_failed",
                    level=logging.WARNING,
                    source_id=source.id,
                    title=item.title,
                    error_code=DUPLICATE_CHECK_UNAVAILABLE,
                    error=str(exc),
                )
                continue

            article = build_article(source, item, content_hash, scraped_at=self.clock())

            try:
                self.store.create(article)
            except PersistConflict as exc:
                if self._stored_by_someone_else(content_hash):
                    self.tracker.item_duplicate(run)
                    log_event("item_duplicate", level=logging.DEBUG, source_id=source.id,
                              hash=content_hash[:8], raced=True)
                else:
                    # Same 8-char id prefix, different content
                    item_errors += 1
                    log_event(
                        "item_persist_failed",
                        level=logging.ERROR,
                        source_id=source.id,
                        article_id=article.id,
                        error_code=PERSIST_CONFLICT,
                        error=str(exc),
                    )
                continue
            except StoreUnavailable as exc:
                item_errors += 1
                log_event(
                    "item_persist_failed",
                    level=logging.ERROR,
                    source_id=source.id,
                    article_id=article.id,
                    error_code=PERSIST_UNAVAILABLE,
                    error=str(exc),
                )
                continue

            self.tracker.item_new(run)
            log_event("item_saved", level=logging.DEBUG, source_id=source.id, article_id=article.id,
                      title=item.title, hash=content_hash[:8])

        return item_errors

    def _stored_by_someone_else(self, content_hash: str) -> bool:
        try:
            return self.store.exists(content_hash)
        except StoreUnavailable:
            return False

    # =====================================================================
    # Helpers
    # =====================================================================

    def _fail(self, source: Source, run: Run, exc: Exception) -> SourceOutcome:
        error_code = exc.code if isinstance(exc, IngestError) else UNEXPECTED_ERROR
        error_message = str(exc) if isinstance(exc, IngestError) else f"{type(exc).__name__}: {exc}"

        log_event(
            "source_failed",
            level=logging.ERROR,
            source_id=source.id,
            source=source.name,
            url=source.feed_url,
            run_id=run.id,
            error_code=error_code,
            error=error_message,
        )

        try:
            self.tracker.fail(run, error_code=error_code, error_message=error_message)
        except StoreError as store_exc:
            log_event(
                "run_finalize_failed",
                level=logging.ERROR,
                source_id=source.id,
                run_id=run.id,
                error_code=store_exc.code,
                error=str(store_exc),
            )

        return self._outcome(source, run, 0, status=RunStatus.FAILED,
                             error_code=error_code, error_message=error_message)

    @staticmethod
    def _outcome(
        source: Source,
        run: Run,
        item_errors: int,
        *,
        status: RunStatus | None = None,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> SourceOutcome:
        return SourceOutcome(
            source_id=source.id,
            source_name=source.name,
            run_id=run.id,
            status=status or run.status,
            found=run.found_count,
            new=run.new_count,
            duplicates=run.duplicate_count,
            item_errors=item_errors,
            error_code=error_code,
            error_message=error_message,
        )
