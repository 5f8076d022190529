"""Stable failure codes for fetch, dedupe and persist operations.

Used by: rss_fetch, orchestrator, logging, runs.error_code column, API problem details.
"""

# Source-level: fail that source's run only
FETCH_UNREACHABLE = "FETCH_UNREACHABLE"
FETCH_TIMEOUT = "FETCH_TIMEOUT"
MALFORMED_FEED = "MALFORMED_FEED"
NO_FEED_CONFIGURED = "NO_FEED_CONFIGURED"

# Item-level: skip the item, keep going
DUPLICATE_CHECK_UNAVAILABLE = "DUPLICATE_CHECK_UNAVAILABLE"
PERSIST_CONFLICT = "PERSIST_CONFLICT"
PERSIST_UNAVAILABLE = "PERSIST_UNAVAILABLE"

# Sweep-level: the only fatal one
SOURCES_UNAVAILABLE = "SOURCES_UNAVAILABLE"

RUN_STATE = "RUN_STATE"
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"
STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
NOT_FOUND = "NOT_FOUND"
