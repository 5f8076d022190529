from __future__ import annotations

from pydantic import BaseModel

from feedsweep.error_codes import (
    FETCH_TIMEOUT,
    FETCH_UNREACHABLE,
    MALFORMED_FEED,
    NO_FEED_CONFIGURED,
    PERSIST_CONFLICT,
    RUN_STATE,
    STORE_UNAVAILABLE,
)


class IngestError(Exception):
    """Base for every error the ingestion core raises. `code` is a stable error code."""

    code = "INGEST_ERROR"


# --- source-level ---

class FetchError(IngestError):
    """Raised when a source's feed cannot be retrieved or parsed."""


class FetchUnreachable(FetchError):
    code = FETCH_UNREACHABLE

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status


class FetchTimeout(FetchError):
    code = FETCH_TIMEOUT


class MalformedFeed(FetchError):
    code = MALFORMED_FEED


class NoFeedConfigured(IngestError):
    code = NO_FEED_CONFIGURED


# --- store ---

class StoreError(IngestError):
    pass


class StoreUnavailable(StoreError):
    """The store could not answer. Never to be read as "not found"."""

    code = STORE_UNAVAILABLE


class PersistConflict(StoreError):
    """An article with the same fingerprint (or id) is already stored."""

    code = PERSIST_CONFLICT


class RunStateError(StoreError):
    """A run was asked to leave a terminal status."""

    code = RUN_STATE


# --- HTTP ---

class ProblemDetails(BaseModel):
    status: int
    code: str
    message: str
    request_id: str
    run_id: str | None = None


def problem(*, status: int, code: str, message: str, request_id: str, run_id: str | None = None) -> ProblemDetails:
    return ProblemDetails(status=status, code=code, message=message, request_id=request_id, run_id=run_id)
