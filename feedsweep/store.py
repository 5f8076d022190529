# feedsweep/store.py
"""
ArticleStore: the persistence contract the ingestion core depends on,
and its SQLite implementation.
"""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator, Protocol

from feedsweep import repo
from feedsweep.db import InvalidDbPathError, get_conn, init_db, resolve_db_path
from feedsweep.errors import RunStateError, StoreUnavailable
from feedsweep.records import UnknownSchemaVersion
from feedsweep.schemas import Article, Run, Source


class ArticleStore(Protocol):
    def list_active_sources(self) -> list[Source]: ...

    def exists(self, content_hash: str) -> bool: ...

    def create(self, article: Article) -> None: ...

    def create_run(self, run: Run) -> None: ...

    def finalize_run(self, run: Run) -> None: ...


def is_novel(store: ArticleStore, content_hash: str) -> bool:
    """True if no stored article has this fingerprint. Raises StoreUnavailable when the store cannot tell."""
    return not store.exists(content_hash)


class SqliteArticleStore:
    """
    One connection per operation, so a single instance is safe to share
    across worker threads. Uniqueness per fingerprint is the UNIQUE
    constraint on articles.content_hash, not an in-process check.

    Every sqlite failure other than a uniqueness violation is reported as
    StoreUnavailable; exists() never answers False because of an error.
    """

    def __init__(self, db_path: str | None = None):
        self.db_path = resolve_db_path(db_path)
        if self.db_path == ":memory:":
            raise ValueError("SqliteArticleStore needs a file path; :memory: is per-connection")
        self._initialized = False

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = get_conn(self.db_path)
        except (sqlite3.Error, InvalidDbPathError, OSError) as exc:
            raise StoreUnavailable(f"cannot open store at {self.db_path}: {exc}") from exc

        try:
            if not self._initialized:
                init_db(conn)
                self._initialized = True
            yield conn
        except (sqlite3.Error, UnknownSchemaVersion) as exc:
            raise StoreUnavailable(f"{type(exc).__name__}: {exc}") from exc
        finally:
            conn.close()

    # --- core contract ---

    def list_active_sources(self) -> list[Source]:
        with self._conn() as conn:
            return repo.list_active_sources(conn)

    def exists(self, content_hash: str) -> bool:
        with self._conn() as conn:
            return repo.article_exists(conn, content_hash=content_hash)

    def create(self, article: Article) -> None:
        """Raises PersistConflict if the fingerprint or id is taken, StoreUnavailable otherwise."""
        with self._conn() as conn:
            repo.insert_article(conn, article)

    def create_run(self, run: Run) -> None:
        with self._conn() as conn:
            repo.insert_run(conn, run)

    def finalize_run(self, run: Run) -> None:
        with self._conn() as conn:
            if not repo.finalize_run(conn, run):
                raise RunStateError(f"run {run.id} is not running; refusing to overwrite it")

    # --- reads + admin writes ---

    def upsert_source(self, source: Source) -> None:
        with self._conn() as conn:
            repo.upsert_source(conn, source)

    def list_sources(self) -> list[Source]:
        with self._conn() as conn:
            return repo.list_sources(conn)

    def get_article(self, article_id: str) -> Article | None:
        with self._conn() as conn:
            return repo.get_article(conn, article_id=article_id)

    def count_articles(self, content_hash: str | None = None) -> int:
        with self._conn() as conn:
            return repo.count_articles(conn, content_hash=content_hash)

    def get_run(self, run_id: str) -> Run | None:
        with self._conn() as conn:
            return repo.get_run_by_id(conn, run_id=run_id)

    def latest_run(self) -> Run | None:
        with self._conn() as conn:
            return repo.get_latest_run(conn)

    def list_runs(self, source_id: str | None = None, limit: int = 50) -> list[Run]:
        with self._conn() as conn:
            return repo.list_runs(conn, source_id=source_id, limit=limit)

    def report_runs_by_day(self, limit: int = 7) -> list[dict]:
        with self._conn() as conn:
            return repo.report_runs_by_day(conn, limit=limit)
