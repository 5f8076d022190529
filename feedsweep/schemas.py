from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class SourceType(str, Enum):
    RSS = "rss"
    WEB = "web"
    MANUAL = "manual"


class RunType(str, Enum):
    SCHEDULED = "scheduled"
    MANUAL = "manual"
    RETRY = "retry"


class RunStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset([RunStatus.COMPLETED, RunStatus.FAILED])


class Source(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    feed_url: str = ""
    active: bool = True
    last_scraped_at: datetime | None = None
    domain: str = ""
    news_page_url: str = ""
    description: str = ""


class RawItem(BaseModel):
    """One entry of a parsed feed, before fingerprinting."""

    link: str
    title: str
    content: str = ""
    published_at: datetime | None = None


class Article(BaseModel):
    id: str
    source_id: str
    source_name: str
    url: str
    title: str
    content: str
    summary: str = ""
    published_at: datetime | None = None
    scraped_at: datetime
    source_type: SourceType = SourceType.RSS
    content_hash: str = Field(..., min_length=64, max_length=64)
    word_count: int = 0
    language: str = "en"
    processed: bool = False
    # Owned by the downstream classifier; opaque here.
    classification: dict[str, Any] | None = None
    top_entities: list[dict[str, Any]] = Field(default_factory=list)


class Run(BaseModel):
    id: str
    source_id: str
    source_name: str
    run_type: RunType = RunType.SCHEDULED
    status: RunStatus = RunStatus.RUNNING
    found_count: int = 0
    new_count: int = 0
    processed_count: int = 0
    duplicate_count: int = 0
    error_code: str | None = None
    error_message: str = ""
    started_at: datetime
    completed_at: datetime | None = None
    duration_seconds: float = 0.0


class SourceOutcome(BaseModel):
    source_id: str
    source_name: str
    run_id: str | None = None
    status: RunStatus
    found: int = 0
    new: int = 0
    duplicates: int = 0
    item_errors: int = 0
    error_code: str | None = None
    error_message: str | None = None


class SweepResult(BaseModel):
    sweep_id: str
    run_type: RunType
    started_at: datetime
    completed_at: datetime | None = None
    sources_total: int = 0
    sources_processed: int = 0
    sources_failed: int = 0
    total_new: int = 0
    total_duplicates: int = 0
    total_item_errors: int = 0
    cancelled: bool = False
    outcomes: list[SourceOutcome] = Field(default_factory=list)
