# feedsweep/db.py
from __future__ import annotations

import os
import sqlite3
from pathlib import Path

from feedsweep.config import DEFAULT_DB_PATH


SCHEMA_VERSION = 1
BUSY_TIMEOUT_S = 30.0


class InvalidDbPathError(Exception):
    """Raised when the configured database path points to an invalid location."""
    pass


def resolve_db_path(db_path: str | None = None) -> str:
    """Explicit path wins, then FEEDSWEEP_DB_PATH, then the local default."""
    return db_path or os.environ.get("FEEDSWEEP_DB_PATH") or DEFAULT_DB_PATH


def get_conn(db_path: str | None = None) -> sqlite3.Connection:
    """
    Open a SQLite connection to the DB path.
    Rows come back as sqlite3.Row so serializers can read columns by name.
    """
    resolved = resolve_db_path(db_path)
    if resolved == ":memory:":
        conn = sqlite3.connect(resolved)
        conn.row_factory = sqlite3.Row
        return conn

    path = Path(resolved)

    # e.g. "Z:\" on Windows, "/" on Unix
    root = path.anchor or (path.parts[0] if path.parts else None)
    if path.is_absolute() and root and not Path(root).exists():
        raise InvalidDbPathError(
            f"database path '{resolved}' has a root '{root}' that doesn't exist"
        )

    # Ensure parent directory exists (e.g., ./data/)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path), timeout=BUSY_TIMEOUT_S)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """
    Create required tables if they don't exist.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS sources (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            feed_url TEXT NOT NULL DEFAULT '',
            active INTEGER NOT NULL DEFAULT 1,
            last_scraped_at TEXT,
            domain TEXT NOT NULL DEFAULT '',
            news_page_url TEXT NOT NULL DEFAULT '',
            description TEXT NOT NULL DEFAULT '',
            schema_version INTEGER NOT NULL DEFAULT 1
        );
        """
    )

    # content_hash UNIQUE is what keeps one row per fingerprint under concurrent writers
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS articles (
            id TEXT PRIMARY KEY,
            source_id TEXT NOT NULL,
            source_name TEXT NOT NULL,
            url TEXT NOT NULL,
            title TEXT NOT NULL,
            content TEXT NOT NULL,
            summary TEXT NOT NULL DEFAULT '',
            published_at TEXT,
            scraped_at TEXT NOT NULL,
            source_type TEXT NOT NULL DEFAULT 'rss',
            content_hash TEXT NOT NULL UNIQUE,
            word_count INTEGER NOT NULL DEFAULT 0,
            language TEXT NOT NULL DEFAULT 'en',
            processed INTEGER NOT NULL DEFAULT 0,
            classification_json TEXT,
            top_entities_json TEXT NOT NULL DEFAULT '[]',
            schema_version INTEGER NOT NULL DEFAULT 1
        );
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS runs (
            id TEXT PRIMARY KEY,
            source_id TEXT NOT NULL,
            source_name TEXT NOT NULL,
            run_type TEXT NOT NULL DEFAULT 'scheduled',
            status TEXT NOT NULL,
            found_count INTEGER NOT NULL DEFAULT 0,
            new_count INTEGER NOT NULL DEFAULT 0,
            processed_count INTEGER NOT NULL DEFAULT 0,
            duplicate_count INTEGER NOT NULL DEFAULT 0,
            error_code TEXT,
            error_message TEXT NOT NULL DEFAULT '',
            started_at TEXT NOT NULL,
            completed_at TEXT,
            duration_seconds REAL NOT NULL DEFAULT 0,
            schema_version INTEGER NOT NULL DEFAULT 1
        );
        """
    )

    conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_sources_active
        ON sources(active)
    """)
    conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_runs_source
        ON runs(source_id, started_at)
    """)
    conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_articles_source
        ON articles(source_id, scraped_at)
    """)

    conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION};")
    conn.commit()
