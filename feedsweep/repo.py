from __future__ import annotations

import sqlite3

from feedsweep.errors import PersistConflict
from feedsweep.records import (
    ARTICLE_COLUMNS,
    RUN_COLUMNS,
    SOURCE_COLUMNS,
    article_from_row,
    article_to_row,
    run_from_row,
    run_to_row,
    source_from_row,
    source_to_row,
)
from feedsweep.schemas import Article, Run, RunStatus, Source


def _insert_sql(table: str, columns: tuple[str, ...], *, verb: str = "INSERT") -> str:
    cols = ", ".join(columns)
    params = ", ".join(f":{c}" for c in columns)
    return f"{verb} INTO {table} ({cols}) VALUES ({params});"


# --- sources ---

def upsert_source(conn: sqlite3.Connection, source: Source) -> None:
    conn.execute(_insert_sql("sources", SOURCE_COLUMNS, verb="INSERT OR REPLACE"), source_to_row(source))
    conn.commit()


def list_active_sources(conn: sqlite3.Connection) -> list[Source]:
    rows = conn.execute(
        f"""
        SELECT {", ".join(SOURCE_COLUMNS)}
        FROM sources
        WHERE active = 1
        ORDER BY id;
        """
    ).fetchall()
    return [source_from_row(row) for row in rows]


def list_sources(conn: sqlite3.Connection) -> list[Source]:
    rows = conn.execute(
        f"SELECT {', '.join(SOURCE_COLUMNS)} FROM sources ORDER BY id;"
    ).fetchall()
    return [source_from_row(row) for row in rows]


# --- articles ---

def article_exists(conn: sqlite3.Connection, *, content_hash: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM articles WHERE content_hash = ? LIMIT 1;",
        (content_hash,),
    ).fetchone()
    return row is not None


def insert_article(conn: sqlite3.Connection, article: Article) -> None:
    """
    Plain INSERT (not OR IGNORE): a second writer for the same fingerprint
    must learn it lost, so the UNIQUE violation surfaces as PersistConflict.
    """
    try:
        conn.execute(_insert_sql("articles", ARTICLE_COLUMNS), article_to_row(article))
        conn.commit()
    except sqlite3.IntegrityError as exc:
        conn.rollback()
        raise PersistConflict(
            f"article already stored (id={article.id}, hash={article.content_hash[:8]}): {exc}"
        ) from exc


def get_article(conn: sqlite3.Connection, *, article_id: str) -> Article | None:
    row = conn.execute(
        f"SELECT {', '.join(ARTICLE_COLUMNS)} FROM articles WHERE id = ? LIMIT 1;",
        (article_id,),
    ).fetchone()
    if row is None:
        return None
    return article_from_row(row)


def count_articles(conn: sqlite3.Connection, *, content_hash: str | None = None) -> int:
    if content_hash is None:
        row = conn.execute("SELECT COUNT(*) FROM articles;").fetchone()
    else:
        row = conn.execute("SELECT COUNT(*) FROM articles WHERE content_hash = ?;", (content_hash,)).fetchone()
    return int(row[0])


# --- runs ---

def insert_run(conn: sqlite3.Connection, run: Run) -> None:
    conn.execute(_insert_sql("runs", RUN_COLUMNS), run_to_row(run))
    conn.commit()


def finalize_run(conn: sqlite3.Connection, run: Run) -> bool:
    """
    Write a run's terminal state. Only touches a row still marked running.

    Returns False when no running row matched (unknown id, or already finalized).
    """
    row = run_to_row(run)
    cur = conn.execute(
        """
        UPDATE runs
        SET status = :status, found_count = :found_count, new_count = :new_count,
            processed_count = :processed_count, duplicate_count = :duplicate_count,
            error_code = :error_code, error_message = :error_message,
            completed_at = :completed_at, duration_seconds = :duration_seconds
        WHERE id = :id AND status = :running;
        """,
        {**row, "running": RunStatus.RUNNING.value},
    )
    conn.commit()
    return cur.rowcount == 1


def get_run_by_id(conn: sqlite3.Connection, *, run_id: str) -> Run | None:
    row = conn.execute(
        f"SELECT {', '.join(RUN_COLUMNS)} FROM runs WHERE id = ? LIMIT 1;",
        (run_id,),
    ).fetchone()
    if row is None:
        return None
    return run_from_row(row)


def get_latest_run(conn: sqlite3.Connection) -> Run | None:
    row = conn.execute(
        f"""
        SELECT {", ".join(RUN_COLUMNS)}
        FROM runs
        ORDER BY started_at DESC, rowid DESC
        LIMIT 1;
        """
    ).fetchone()
    if row is None:
        return None
    return run_from_row(row)


def list_runs(conn: sqlite3.Connection, *, source_id: str | None = None, limit: int = 50) -> list[Run]:
    if source_id is None:
        rows = conn.execute(
            f"""
            SELECT {", ".join(RUN_COLUMNS)}
            FROM runs
            ORDER BY started_at DESC, rowid DESC
            LIMIT ?;
            """,
            (limit,),
        ).fetchall()
    else:
        rows = conn.execute(
            f"""
            SELECT {", ".join(RUN_COLUMNS)}
            FROM runs
            WHERE source_id = ?
            ORDER BY started_at DESC, rowid DESC
            LIMIT ?;
            """,
            (source_id, limit),
        ).fetchall()
    return [run_from_row(row) for row in rows]


def report_runs_by_day(conn: sqlite3.Connection, *, limit: int = 7) -> list[dict]:
    rows = conn.execute(
        """
        SELECT
            substr(started_at, 1, 10) AS day,
            COUNT(*) AS runs,
            COALESCE(SUM(CASE WHEN status = 'failed' THEN 1 ELSE 0 END), 0) AS failed,
            COALESCE(SUM(found_count), 0) AS found,
            COALESCE(SUM(new_count), 0) AS new,
            COALESCE(SUM(duplicate_count), 0) AS duplicates
        FROM runs
        GROUP BY day
        ORDER BY day DESC
        LIMIT ?;
        """,
        (limit,),
    ).fetchall()

    out: list[dict] = []
    for day, runs, failed, found, new, duplicates in rows:
        out.append(
            {
                "day": day,
                "runs": runs,
                "failed": failed,
                "found": found,
                "new": new,
                "duplicates": duplicates,
            }
        )
    return out
