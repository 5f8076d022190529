from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from feedsweep.errors import RunStateError, StoreUnavailable
from feedsweep.run_tracker import RunTracker
from feedsweep.schemas import RunStatus, RunType

from conftest import make_source


START = datetime(2026, 1, 14, 12, 0, 0, tzinfo=timezone.utc)


class Ticker:
    """Clock + timer that advance one second per call."""

    def __init__(self):
        self.n = 0

    def clock(self):
        self.n += 1
        return START + timedelta(seconds=self.n)

    def timer(self):
        self.n += 1
        return float(self.n)


def _tracker(store):
    t = Ticker()
    return RunTracker(store, clock=t.clock, timer=t.timer)


def test_start_persists_running_run_with_zero_counts(store):
    tracker = _tracker(store)
    run = tracker.start(make_source("a"), RunType.RETRY)

    stored = store.get_run(run.id)
    assert stored.status == RunStatus.RUNNING
    assert stored.run_type == RunType.RETRY
    assert (stored.found_count, stored.new_count, stored.processed_count, stored.duplicate_count) == (0, 0, 0, 0)
    assert stored.source_id == "a"
    assert stored.source_name == "A"
    assert stored.completed_at is None


def test_complete_writes_counts_and_duration(store):
    tracker = _tracker(store)
    run = tracker.start(make_source("a"))
    for _ in range(3):
        tracker.item_found(run)
    tracker.item_new(run)
    tracker.item_new(run)
    tracker.item_duplicate(run)

    tracker.complete(run)

    stored = store.get_run(run.id)
    assert stored.status == RunStatus.COMPLETED
    assert stored.found_count == 3
    assert stored.new_count == 2
    assert stored.duplicate_count == 1
    assert stored.processed_count == 0
    assert stored.duration_seconds > 0
    assert stored.completed_at is not None
    assert stored.error_code is None


def test_fail_records_error(store):
    tracker = _tracker(store)
    run = tracker.start(make_source("a"))
    tracker.fail(run, error_code="FETCH_TIMEOUT", error_message="timeout after 30s")

    stored = store.get_run(run.id)
    assert stored.status == RunStatus.FAILED
    assert stored.error_code == "FETCH_TIMEOUT"
    assert stored.error_message == "timeout after 30s"


def test_terminal_run_cannot_be_finalized_again(store):
    tracker = _tracker(store)
    run = tracker.start(make_source("a"))
    tracker.complete(run)

    with pytest.raises(RunStateError):
        tracker.fail(run, error_code="X", error_message="late")
    with pytest.raises(RunStateError):
        tracker.complete(run)
    with pytest.raises(RunStateError):
        tracker.item_found(run)

    assert store.get_run(run.id).status == RunStatus.COMPLETED


def test_failed_finalize_write_leaves_run_running(store):
    tracker = _tracker(store)
    run = tracker.start(make_source("a"))

    def broken(_run):
        raise StoreUnavailable("disk gone")

    store.finalize_run = broken
    with pytest.raises(StoreUnavailable):
        tracker.complete(run)

    assert run.status == RunStatus.RUNNING
    assert run.completed_at is None
    assert run.id not in tracker._t0


def test_runs_for_different_sources_are_independent(store):
    tracker = _tracker(store)
    a = tracker.start(make_source("a"))
    b = tracker.start(make_source("b"))

    tracker.fail(a, error_code="FETCH_UNREACHABLE", error_message="HTTP 503")
    tracker.complete(b)

    assert store.get_run(a.id).status == RunStatus.FAILED
    assert store.get_run(b.id).status == RunStatus.COMPLETED
