"""
Load tracked sources into the store.

    python -m jobs.seed_sources                    # built-in defaults
    python -m jobs.seed_sources --file sources.json

The file is a JSON list of {"id", "name", "feed_url", "active"?, ...}.
Existing sources with the same id are replaced.
"""
from __future__ import annotations

import argparse
import json
import sys

from pydantic import ValidationError

from feedsweep.config import load_settings
from feedsweep.feeds import DEFAULT_SOURCES
from feedsweep.logging_utils import log_event
from feedsweep.schemas import Source
from feedsweep.store import SqliteArticleStore


def load_sources(path: str | None) -> list[Source]:
    if path is None:
        raw = DEFAULT_SOURCES
    else:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)

    if not isinstance(raw, list):
        raise ValueError("sources file must contain a JSON list")
    return [Source(**entry) for entry in raw]


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Insert or replace tracked sources.")
    p.add_argument("--file", default=None, help="JSON list of sources")
    p.add_argument("--db", default=None, help="SQLite path (overrides FEEDSWEEP_DB_PATH)")
    args = p.parse_args(argv)

    try:
        sources = load_sources(args.file)
    except (OSError, ValueError, ValidationError) as exc:
        print(f"ERROR sources: {exc}", file=sys.stderr)
        return 2

    store = SqliteArticleStore(load_settings(db_path=args.db).db_path)
    for source in sources:
        store.upsert_source(source)
        log_event("source_seeded", source_id=source.id, active=source.active)

    print(f"OK seeded={len(sources)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
