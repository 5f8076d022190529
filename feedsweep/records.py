# feedsweep/records.py
"""
Explicit row mapping for each stored record type.

Every row carries the schema_version it was written with; from_row refuses
versions it does not know instead of guessing at the column layout.
"""
from __future__ import annotations

import json
import sqlite3
from datetime import datetime

from feedsweep.schemas import Article, Run, RunStatus, RunType, Source, SourceType


SOURCE_SCHEMA_VERSION = 1
ARTICLE_SCHEMA_VERSION = 1
RUN_SCHEMA_VERSION = 1


class UnknownSchemaVersion(ValueError):
    pass


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _check_version(row: sqlite3.Row, expected: int, kind: str) -> None:
    version = row["schema_version"]
    if version != expected:
        raise UnknownSchemaVersion(f"{kind} row has schema_version={version}, expected {expected}")


# --- Source ---

SOURCE_COLUMNS = (
    "id", "name", "feed_url", "active", "last_scraped_at",
    "domain", "news_page_url", "description", "schema_version",
)


def source_to_row(source: Source) -> dict:
    return {
        "id": source.id,
        "name": source.name,
        "feed_url": source.feed_url,
        "active": 1 if source.active else 0,
        "last_scraped_at": _ts(source.last_scraped_at),
        "domain": source.domain,
        "news_page_url": source.news_page_url,
        "description": source.description,
        "schema_version": SOURCE_SCHEMA_VERSION,
    }


def source_from_row(row: sqlite3.Row) -> Source:
    _check_version(row, SOURCE_SCHEMA_VERSION, "source")
    return Source(
        id=row["id"],
        name=row["name"],
        feed_url=row["feed_url"],
        active=bool(row["active"]),
        last_scraped_at=_parse_ts(row["last_scraped_at"]),
        domain=row["domain"],
        news_page_url=row["news_page_url"],
        description=row["description"],
    )


# --- Article ---

ARTICLE_COLUMNS = (
    "id", "source_id", "source_name", "url", "title", "content", "summary",
    "published_at", "scraped_at", "source_type", "content_hash", "word_count",
    "language", "processed", "classification_json", "top_entities_json", "schema_version",
)


def article_to_row(article: Article) -> dict:
    return {
        "id": article.id,
        "source_id": article.source_id,
        "source_name": article.source_name,
        "url": article.url,
        "title": article.title,
        "content": article.content,
        "summary": article.summary,
        "published_at": _ts(article.published_at),
        "scraped_at": _ts(article.scraped_at),
        "source_type": article.source_type.value,
        "content_hash": article.content_hash,
        "word_count": article.word_count,
        "language": article.language,
        "processed": 1 if article.processed else 0,
        "classification_json": json.dumps(article.classification) if article.classification is not None else None,
        "top_entities_json": json.dumps(article.top_entities),
        "schema_version": ARTICLE_SCHEMA_VERSION,
    }


def article_from_row(row: sqlite3.Row) -> Article:
    _check_version(row, ARTICLE_SCHEMA_VERSION, "article")
    classification = row["classification_json"]
    return Article(
        id=row["id"],
        source_id=row["source_id"],
        source_name=row["source_name"],
        url=row["url"],
        title=row["title"],
        content=row["content"],
        summary=row["summary"],
        published_at=_parse_ts(row["published_at"]),
        scraped_at=_parse_ts(row["scraped_at"]),
        source_type=SourceType(row["source_type"]),
        content_hash=row["content_hash"],
        word_count=row["word_count"],
        language=row["language"],
        processed=bool(row["processed"]),
        classification=json.loads(classification) if classification else None,
        top_entities=json.loads(row["top_entities_json"] or "[]"),
    )


# --- Run ---

RUN_COLUMNS = (
    "id", "source_id", "source_name", "run_type", "status",
    "found_count", "new_count", "processed_count", "duplicate_count",
    "error_code", "error_message", "started_at", "completed_at",
    "duration_seconds", "schema_version",
)


def run_to_row(run: Run) -> dict:
    return {
        "id": run.id,
        "source_id": run.source_id,
        "source_name": run.source_name,
        "run_type": run.run_type.value,
        "status": run.status.value,
        "found_count": run.found_count,
        "new_count": run.new_count,
        "processed_count": run.processed_count,
        "duplicate_count": run.duplicate_count,
        "error_code": run.error_code,
        "error_message": run.error_message,
        "started_at": _ts(run.started_at),
        "completed_at": _ts(run.completed_at),
        "duration_seconds": run.duration_seconds,
        "schema_version": RUN_SCHEMA_VERSION,
    }


def run_from_row(row: sqlite3.Row) -> Run:
    _check_version(row, RUN_SCHEMA_VERSION, "run")
    return Run(
        id=row["id"],
        source_id=row["source_id"],
        source_name=row["source_name"],
        run_type=RunType(row["run_type"]),
        status=RunStatus(row["status"]),
        found_count=row["found_count"],
        new_count=row["new_count"],
        processed_count=row["processed_count"],
        duplicate_count=row["duplicate_count"],
        error_code=row["error_code"],
        error_message=row["error_message"],
        started_at=_parse_ts(row["started_at"]),
        completed_at=_parse_ts(row["completed_at"]),
        duration_seconds=row["duration_seconds"],
    )
