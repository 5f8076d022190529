# feedsweep/run_tracker.py
from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from feedsweep.errors import RunStateError
from feedsweep.schemas import TERMINAL_STATUSES, Run, RunStatus, RunType, Source
from feedsweep.store import ArticleStore


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RunTracker:
    """
    Lifecycle of one Run per source cycle: running -> completed | failed.

    Counters live on the Run object while the cycle is in flight; the store
    sees the row twice, once at start and once at finalization.
    processed_count is never incremented here (it belongs downstream).
    """

    def __init__(
        self,
        store: ArticleStore,
        *,
        clock: Callable[[], datetime] = utc_now,
        timer: Callable[[], float] = time.perf_counter,
    ):
        self.store = store
        self._clock = clock
        self._timer = timer
        self._t0: dict[str, float] = {}

    def start(self, source: Source, run_type: RunType = RunType.SCHEDULED) -> Run:
        run = Run(
            id=f"run_{source.id}_{uuid.uuid4().hex[:12]}",
            source_id=source.id,
            source_name=source.name,
            run_type=run_type,
            status=RunStatus.RUNNING,
            started_at=self._clock(),
        )
        self.store.create_run(run)
        self._t0[run.id] = self._timer()
        return run

    @staticmethod
    def _require_running(run: Run) -> None:
        if run.status in TERMINAL_STATUSES:
            raise RunStateError(f"run {run.id} already {run.status.value}")

    def item_found(self, run: Run) -> None:
        self._require_running(run)
        run.found_count += 1

    def item_new(self, run: Run) -> None:
        self._require_running(run)
        run.new_count += 1

    def item_duplicate(self, run: Run) -> None:
        self._require_running(run)
        run.duplicate_count += 1

    def complete(self, run: Run) -> Run:
        return self._finalize(run, RunStatus.COMPLETED)

    def fail(self, run: Run, *, error_code: str, error_message: str) -> Run:
        return self._finalize(run, RunStatus.FAILED, error_code=error_code, error_message=error_message)

    def _finalize(
        self,
        run: Run,
        status: RunStatus,
        *,
        error_code: str | None = None,
        error_message: str = "",
    ) -> Run:
        self._require_running(run)

        t0 = self._t0.pop(run.id, None)
        final = run.model_copy(
            update={
                "status": status,
                "error_code": error_code,
                "error_message": error_message,
                "completed_at": self._clock(),
                "duration_seconds": round(self._timer() - t0, 3) if t0 is not None else 0.0,
            }
        )

        # The store refuses to overwrite a row that is no longer running.
        # If the write fails the caller's Run stays running.
        self.store.finalize_run(final)

        for field in ("status", "error_code", "error_message", "completed_at", "duration_seconds"):
            setattr(run, field, getattr(final, field))
        return run
